#!/usr/bin/env python3
"""
Error kinds raised by the deploy pipeline.

Only ConfigReadError is non-fatal; everything else aborts the run.
"""


class BeesDeployError(Exception):
    """Base class for all deploy errors."""

    def __init__(self, message, cause=None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self):
        if self.cause is not None and str(self.cause):
            return f"{self.message}: {self.cause}"
        return self.message


class ConfigReadError(BeesDeployError):
    """User config file exists but could not be read."""


class ConfigurationError(BeesDeployError):
    """A required setting is missing or malformed."""


class MissingApplicationId(ConfigurationError):
    def __init__(self, message="No application id specified", cause=None):
        super().__init__(message, cause)


class UnqualifiedApplicationId(ConfigurationError):
    def __init__(self, app_id, cause=None):
        super().__init__(
            f"default app domain could not be determined, appid needs to be fully-qualified ({app_id})",
            cause
        )
        self.app_id = app_id


class PackagingError(BeesDeployError):
    """Creating the deployment archive failed."""

    def __init__(self, message="Failed to create the deployment package", cause=None):
        super().__init__(message, cause)


class DeploymentError(BeesDeployError):
    """Wraps any failure between credential acquisition and the remote call."""

    def __init__(self, message="Deployment failed", cause=None):
        super().__init__(message, cause)


class BeesClientError(BeesDeployError):
    """Remote API returned an error or could not be reached."""

    def __init__(self, message, status_code=None, cause=None):
        super().__init__(message, cause)
        self.status_code = status_code
