#!/usr/bin/env python3
"""
HTTP client for the CloudBees/Stax deployment API.

Every call is a signed POST: the request parameters (plus api_key, format,
v, timestamp and sig_version) are sorted by name, concatenated as
key+value, suffixed with the API secret and MD5-hashed into `sig`.
"""

import hashlib
import json
import sys
import time
import xml.etree.ElementTree as ET
from pathlib import Path
from urllib.parse import quote

import requests

from .base import DeployClient, DeployResponse
from ..errors import BeesClientError

CHUNK_SIZE = 64 * 1024


class HashWriteProgress:
    """
    Prints a row of '#' marks as the archive is read for upload.

    requests builds the multipart body in memory, so the marks track reading
    the archive into that body, not bytes leaving the socket.
    """

    def __init__(self, width=50, stream=None):
        self.width = width
        self.stream = stream or sys.stdout
        self.marks = 0

    def __call__(self, bytes_written, total):
        if total <= 0:
            return
        target = int(self.width * min(bytes_written, total) / total)
        if target > self.marks:
            self.stream.write('#' * (target - self.marks))
            self.marks = target
        if bytes_written >= total:
            self.stream.write('\n')
        self.stream.flush()


def calculate_signature(params, secret):
    signing_string = ''.join(f"{key}{params[key]}" for key in sorted(params))
    signing_string += secret
    return hashlib.md5(signing_string.encode('utf-8')).hexdigest()


def _read_archive(archive_file, progress=None):
    """Read the archive into memory in chunks, reporting read progress."""
    total = Path(archive_file).stat().st_size
    chunks = []
    read = 0
    with open(archive_file, 'rb') as f:
        while True:
            chunk = f.read(CHUNK_SIZE)
            if not chunk:
                break
            chunks.append(chunk)
            read += len(chunk)
            if progress:
                progress(read, total)
    if progress and total == 0:
        progress(0, 0)
    return b''.join(chunks)


class BeesClient(DeployClient):
    """Deploy client talking to the platform API over HTTP (requests)."""

    def __init__(self, configuration):
        super().__init__(configuration)
        self._session = None

    def _get_session(self):
        """Lazy initialization of the requests session."""
        if self._session is None:
            self._session = requests.Session()
            proxies = self._get_proxies()
            if proxies:
                self._session.proxies.update(proxies)
        return self._session

    def close(self):
        if self._session is not None:
            self._session.close()
            self._session = None

    def _get_proxies(self):
        config = self.configuration
        if not config.proxy_host:
            return {}

        auth = ''
        if config.proxy_user:
            auth = quote(config.proxy_user, safe='')
            if config.proxy_password:
                auth += ':' + quote(config.proxy_password, safe='')
            auth += '@'

        port = f":{config.proxy_port}" if config.proxy_port else ''
        proxy_url = f"http://{auth}{config.proxy_host}{port}"
        return {'http': proxy_url, 'https': proxy_url}

    def _signed_params(self, action, params):
        config = self.configuration
        signed = {
            'action': action,
            'api_key': config.api_key,
            'format': config.format,
            'v': config.version,
            'timestamp': str(int(time.time())),
            'sig_version': '1',
        }
        for key, value in params.items():
            if value is not None:
                signed[key] = str(value)
        signed['sig'] = calculate_signature(signed, config.secret)
        return signed

    def _trace(self, message):
        if self.verbose:
            print(message)

    def _post(self, action, params, files=None):
        data = self._signed_params(action, params)
        self._trace(f"API call: {action} -> {self.configuration.api_url}")

        try:
            response = self._get_session().post(self.configuration.api_url, data=data, files=files)
        except requests.RequestException as e:
            raise BeesClientError(f"Request to {self.configuration.api_url} failed", cause=e) from e

        self._trace(f"API response ({response.status_code}): {response.text}")
        return self._parse_response(response)

    def _parse_response(self, response):
        try:
            root = ET.fromstring(response.content)
        except ET.ParseError as e:
            if response.status_code >= 400:
                raise BeesClientError(
                    f"API request failed with HTTP {response.status_code}",
                    status_code=response.status_code
                ) from e
            raise BeesClientError("Could not parse API response", cause=e) from e

        if root.tag == 'error':
            message = root.findtext('message') or 'Unknown error'
            raise BeesClientError(f"API error: {message}", status_code=response.status_code)

        if response.status_code >= 400:
            raise BeesClientError(
                f"API request failed with HTTP {response.status_code}",
                status_code=response.status_code
            )
        return root

    def deploy_archive(self, args):
        archive_path = Path(args.archive_file)
        params = {
            'app_id': args.app_id,
            'environment': args.environment,
            'description': args.description,
            'archiveType': args.archive_type,
            'create': 'false',
            'incrementalDeployment': 'true' if args.incremental else 'false',
            'parameters': json.dumps(args.params or {}, sort_keys=True),
            'variables': json.dumps(args.variables or {}, sort_keys=True),
        }

        content = _read_archive(archive_path, args.progress)
        files = {'archive': (archive_path.name, content, 'application/octet-stream')}

        root = self._post('application.deployArchive', params, files=files)
        app_id = root.findtext('id')
        url = root.findtext('url')
        if not app_id:
            raise BeesClientError("API response did not include an application id")
        return DeployResponse(id=app_id, url=url)
