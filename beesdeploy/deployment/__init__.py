"""
Deployment package.

This package contains modules for packaging the deployment archive, reading
the application descriptor, acquiring credentials and running the deploy.
"""

__all__ = ['orchestrator', 'archive', 'descriptor', 'credentials', 'utils']
