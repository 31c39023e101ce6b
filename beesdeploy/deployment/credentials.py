#!/usr/bin/env python3
"""
Credential providers.

The deploy step asks a provider for any API key, secret or application id
that configuration did not supply.
"""

import getpass
import sys

from ..errors import ConfigurationError


class CredentialProvider:
    """Interface for supplying missing credentials (console prompt or fixed values)."""

    def api_key(self):
        raise NotImplementedError("Subclasses must implement api_key()")

    def api_secret(self):
        raise NotImplementedError("Subclasses must implement api_secret()")

    def app_id(self):
        raise NotImplementedError("Subclasses must implement app_id()")


class ConsoleCredentialProvider(CredentialProvider):
    """Prompts on the console. Blocks until a line is entered."""

    def __init__(self, stdin=None, stdout=None):
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout

    def _prompt(self, text):
        self.stdout.write(text)
        self.stdout.flush()
        line = self.stdin.readline()
        return line.strip() if line else None

    def api_key(self):
        return self._prompt("Enter your CloudBees API key: ")

    def api_secret(self):
        if self.stdin is sys.stdin and sys.stdin.isatty():
            return getpass.getpass("Enter your CloudBees API secret: ")
        return self._prompt("Enter your CloudBees API secret: ")

    def app_id(self):
        return self._prompt("Enter application ID (ex: account/appname): ")


class StaticCredentialProvider(CredentialProvider):
    """Returns fixed values. Used for non-interactive runs and tests."""

    def __init__(self, api_key=None, api_secret=None, app_id=None):
        self._api_key = api_key
        self._api_secret = api_secret
        self._app_id = app_id
        self.requests = []

    def api_key(self):
        self.requests.append('api_key')
        return self._api_key

    def api_secret(self):
        self.requests.append('api_secret')
        return self._api_secret

    def app_id(self):
        self.requests.append('app_id')
        return self._app_id


def acquire_credentials(config, provider):
    """
    Return (api_key, secret), asking the provider only for missing values.
    """
    api_key = config.api_key
    secret = config.secret

    if not api_key:
        api_key = provider.api_key()
    if not secret:
        secret = provider.api_secret()

    if not api_key or not secret:
        raise ConfigurationError(
            "API credentials not set",
            "set bees.apikey and bees.secret (or bees.api.key / bees.api.secret in ~/.bees/bees.config)"
        )

    print(f"[OK] API credentials loaded (key={_mask(api_key)}, secret={'*' * len(secret or '')})")
    return api_key, secret


def _mask(value):
    if not value:
        return ''
    if len(value) <= 5:
        return '*' * len(value)
    return f"{value[:3]}...{value[-2:]}"
