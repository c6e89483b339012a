"""
Authentication Package

Google credentials for the Drive API.
"""

from backend.auth.credentials import CredentialsError, CredentialsLoader

__all__ = [
    "CredentialsError",
    "CredentialsLoader",
]
