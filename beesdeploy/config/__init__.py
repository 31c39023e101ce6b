"""
Configuration package.

Resolves the effective deploy settings and validates project files.
"""

__all__ = ['settings', 'validation']
