#!/usr/bin/env python3
"""
Base deploy client interface and request/response types.
"""

from dataclasses import dataclass, field


@dataclass
class ClientConfiguration:
    api_url: str
    api_key: str
    secret: str
    format: str = 'xml'
    version: str = '1.0'
    proxy_host: str = None
    proxy_port: int = None
    proxy_user: str = None
    proxy_password: str = None


@dataclass
class DeployArgs:
    app_id: str
    archive_file: str
    archive_type: str = 'war'
    environment: str = ''
    description: str = None
    incremental: bool = False
    params: dict = field(default_factory=dict)
    variables: dict = field(default_factory=dict)
    progress: object = None


@dataclass
class DeployResponse:
    id: str
    url: str


class DeployClient:
    """Base interface for remote deployment API clients."""

    def __init__(self, configuration):
        self.configuration = configuration
        self.verbose = False

    def set_verbose(self, verbose):
        self.verbose = verbose

    def deploy_archive(self, args):
        """Upload and activate one archive. Returns a DeployResponse."""
        raise NotImplementedError("Subclasses must implement deploy_archive()")

    def close(self):
        """Release any connection held by the client."""
