"""
Deployment API client package.

Provides the narrow DeployClient interface and the HTTP implementation
used against the platform API.
"""

from .base import ClientConfiguration, DeployArgs, DeployClient, DeployResponse
from .bees import BeesClient, HashWriteProgress


def get_deploy_client(configuration):
    """Factory function to create the deploy client for a configuration."""
    return BeesClient(configuration)


__all__ = [
    'BeesClient', 'ClientConfiguration', 'DeployArgs', 'DeployClient',
    'DeployResponse', 'HashWriteProgress', 'get_deploy_client'
]
