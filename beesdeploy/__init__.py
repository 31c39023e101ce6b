"""
beesdeploy - package a web application archive and deploy it to the CloudBees platform API.
"""

__version__ = "0.1.0"
