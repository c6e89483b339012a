"""
Backend Module

Stateless relay that receives chunk uploads over HTTP and stores them in
Google Drive.

Public API:
    - create_app: Flask application factory
    - StorageFactory / create_storage: Remote storage selection
    - CredentialsLoader: Google credential discovery

Usage:
    from backend import create_app

    app = create_app()
    app.run(port=5000)
"""

from backend.app import create_app
from backend.auth.credentials import CredentialsError, CredentialsLoader
from backend.factory import StorageFactory, create_storage
from backend.interfaces.storage_interface import StorageError, StoredFile

__all__ = [
    "CredentialsError",
    "CredentialsLoader",
    "StorageError",
    "StorageFactory",
    "StoredFile",
    "create_app",
    "create_storage",
]
