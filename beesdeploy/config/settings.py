#!/usr/bin/env python3
"""
Effective configuration resolution.

Each setting is looked up, highest precedence first, in:
  1. explicit overrides (-D key=value on the command line)
  2. environment variables derived from the override key (bees.proxyHost -> BEES_PROXYHOST)
  3. project settings (the `settings:` block of bees-deploy.yaml)
  4. the user config file (~/.bees/bees.config)
  5. built-in defaults
"""

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

from ..errors import ConfigReadError

DEFAULT_API_URL = "https://api.cloudbees.com/api"

# (setting name, override key, user config key, default)
SETTINGS = (
    ('app_id', 'bees.appid', None, None),
    ('api_key', 'bees.apikey', 'bees.api.key', None),
    ('secret', 'bees.secret', 'bees.api.secret', None),
    ('api_url', 'bees.api.url', 'bees.api.url', DEFAULT_API_URL),
    ('environment', 'bees.environment', None, None),
    ('message', 'bees.message', None, None),
    ('delta', 'bees.delta', None, 'true'),
    ('proxy_host', 'bees.proxyHost', 'bees.api.proxy.host', None),
    ('proxy_port', 'bees.proxyPort', 'bees.api.proxy.port', None),
    ('proxy_user', 'bees.proxyUser', 'bees.api.proxy.user', None),
    ('proxy_password', 'bees.proxyPassword', 'bees.api.proxy.password', None),
    ('container_type', 'bees.containerType', None, None),
    ('verbose', 'bees.api.verbose', 'bees.api.verbose', 'false'),
    ('app_domain', 'bees.project.app.domain', 'bees.project.app.domain', None),
)

SETTING_NAMES = tuple(s[0] for s in SETTINGS)


@dataclass(frozen=True)
class EffectiveConfig:
    app_id: str = None
    api_key: str = None
    secret: str = None
    api_url: str = DEFAULT_API_URL
    environment: str = None
    message: str = None
    delta: str = 'true'
    proxy_host: str = None
    proxy_port: str = None
    proxy_user: str = None
    proxy_password: str = None
    container_type: str = None
    verbose: str = 'false'
    app_domain: str = None
    variables: dict = field(default_factory=dict)

    @property
    def is_delta(self):
        """Incremental deploy unless delta is set to something other than 'true'."""
        return self.delta is None or self.delta.lower() == 'true'

    @property
    def is_verbose(self):
        return self.verbose is not None and self.verbose.lower() == 'true'

    def proxy_port_number(self):
        """Proxy port as int, or None. Raises ValueError for non-numeric ports."""
        if self.proxy_port is None or self.proxy_port == '':
            return None
        return int(self.proxy_port)


def user_config_path():
    return Path.home() / ".bees" / "bees.config"


def parse_properties(text):
    """
    Parse Java-properties style text into a dict.

    Supports `key=value`, `key: value` and `key value` lines, `#` and `!`
    comments, and backslash line continuations.
    """
    properties = {}
    logical = ''

    for raw_line in text.splitlines():
        line = raw_line.lstrip() if not logical else raw_line.strip()
        if not logical and (not line or line[0] in '#!'):
            continue

        if _ends_with_continuation(line):
            logical += line[:-1]
            continue
        logical += line

        key, value = _split_property(logical)
        if key:
            properties[key] = _unescape(value)
        logical = ''

    if logical:
        key, value = _split_property(logical)
        if key:
            properties[key] = _unescape(value)

    return properties


def _ends_with_continuation(line):
    trailing = len(line) - len(line.rstrip('\\'))
    return trailing % 2 == 1


def _split_property(line):
    i = 0
    while i < len(line):
        ch = line[i]
        if ch == '\\':
            i += 2
            continue
        if ch in '=:' or ch.isspace():
            break
        i += 1

    key = line[:i]
    rest = line[i:].lstrip()
    if rest and rest[0] in '=:':
        rest = rest[1:].lstrip()
    return _unescape(key), rest


def _unescape(value):
    if '\\' not in value:
        return value
    replacements = {'t': '\t', 'n': '\n', 'r': '\r', 'f': '\f'}
    out = []
    i = 0
    while i < len(value):
        ch = value[i]
        if ch == '\\' and i + 1 < len(value):
            nxt = value[i + 1]
            out.append(replacements.get(nxt, nxt))
            i += 2
        else:
            out.append(ch)
            i += 1
    return ''.join(out)


def load_user_config(path=None):
    """
    Read the optional user config file.

    A missing file yields an empty dict. A file that exists but cannot be
    read is reported and ignored.
    """
    config_path = Path(path) if path else user_config_path()
    if not config_path.exists():
        return {}

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            return parse_properties(f.read())
    except (OSError, UnicodeDecodeError) as e:
        error = ConfigReadError(f"Could not read config file {config_path}", e)
        print(f"ERROR: {error}", file=sys.stderr)
        return {}


def env_var_name(override_key):
    """bees.proxyHost -> BEES_PROXYHOST"""
    return override_key.upper().replace('.', '_')


def parse_overrides(pairs):
    """Turn ['bees.appid=acme/app', 'bees.delta'] into a dict. A bare key means 'true'."""
    overrides = {}
    for pair in pairs or []:
        key, sep, value = pair.partition('=')
        key = key.strip()
        if not key:
            continue
        overrides[key] = value if sep else 'true'
    return overrides


def format_setting_value(value):
    """Render a YAML scalar the way settings are written in the config file."""
    if value is None:
        return None
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def get_setting(name, overrides=None, environ=None, project_settings=None, user_config=None):
    """Resolve a single setting by name using the overlay precedence."""
    for setting_name, override_key, config_key, default in SETTINGS:
        if setting_name != name:
            continue

        overrides = overrides or {}
        environ = os.environ if environ is None else environ
        project_settings = project_settings or {}
        user_config = user_config or {}

        if override_key in overrides:
            return overrides[override_key]
        env_value = environ.get(env_var_name(override_key))
        if env_value is not None:
            return env_value
        if project_settings.get(name) is not None:
            return format_setting_value(project_settings[name])
        if config_key and user_config.get(config_key) is not None:
            return user_config[config_key]
        return default

    raise KeyError(f"Unknown setting: {name}")


def resolve_config(overrides=None, environ=None, project_settings=None, user_config=None, variables=None):
    """
    Build the EffectiveConfig for one run.

    user_config defaults to the contents of ~/.bees/bees.config.
    """
    if user_config is None:
        user_config = load_user_config()

    values = {
        name: get_setting(name, overrides, environ, project_settings, user_config)
        for name in SETTING_NAMES
    }
    return EffectiveConfig(variables=dict(variables or {}), **values)
