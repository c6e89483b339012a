"""
Credentials Loader

Finds Google credentials for the Drive API, in order:
1. GOOGLE_JSON_KEY: service-account key as inline JSON (hosted deployments)
2. GOOGLE_SERVICE_ACCOUNT_FILE: service-account key file (local development)
3. GOOGLE_TOKEN_PATH: authorized-user token with a refresh token

Authorized-user tokens are refreshed automatically and written back.
Obtaining such a token in the first place (browser consent flow) is out of
scope; bring a token.json produced elsewhere.
"""

import json
import logging
import os
from typing import Any, Dict, Optional

from google.auth.credentials import Credentials
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import credentials as user_credentials
from google.oauth2 import service_account

from backend.constants import DRIVE_SCOPES
from config.settings import (
    GOOGLE_JSON_KEY,
    GOOGLE_SERVICE_ACCOUNT_FILE,
    GOOGLE_TOKEN_PATH,
)


class CredentialsError(Exception):
    """Credentials are missing, malformed or cannot be refreshed"""


class CredentialsLoader:
    """
    Loads and caches Google credentials.

    Usage:
        loader = CredentialsLoader()
        credentials = loader.get_credentials()
    """

    def __init__(
        self,
        json_key: Optional[str] = GOOGLE_JSON_KEY,
        service_account_file: Optional[str] = GOOGLE_SERVICE_ACCOUNT_FILE,
        token_path: Optional[str] = GOOGLE_TOKEN_PATH,
        scopes=DRIVE_SCOPES,
    ):
        """
        Initialize credentials loader.

        Nothing is read until get_credentials() is called.

        Args:
            json_key: Service-account key JSON string
            service_account_file: Path to a service-account key file
            token_path: Path to an authorized-user token.json
            scopes: OAuth scopes to request
        """
        self.logger = logging.getLogger(__name__)
        self.json_key = json_key
        self.service_account_file = service_account_file
        self.token_path = token_path
        self.scopes = list(scopes)
        self.credentials: Optional[Credentials] = None
        self.source: Optional[str] = None

    def has_credentials(self) -> bool:
        """True if one of the credential sources is present"""
        return bool(
            self.json_key
            or (self.service_account_file and os.path.exists(self.service_account_file))
            or (self.token_path and os.path.exists(self.token_path)),
        )

    def get_credentials(self) -> Credentials:
        """
        Get valid credentials, loading them on first use.

        Raises:
            CredentialsError: If no usable credentials are found
        """
        if self.credentials is None:
            self.credentials = self._load()

        self._refresh_if_needed()
        return self.credentials

    def _load(self) -> Credentials:
        if self.json_key:
            self.source = "GOOGLE_JSON_KEY"
            return self._from_json_key(self.json_key)

        if self.service_account_file and os.path.exists(self.service_account_file):
            self.source = self.service_account_file
            try:
                credentials = service_account.Credentials.from_service_account_file(
                    self.service_account_file,
                    scopes=self.scopes,
                )
            except (ValueError, GoogleAuthError) as e:
                raise CredentialsError(
                    f"Invalid service account file {self.service_account_file}: {e}",
                ) from e
            self.logger.info(f"Using service account from {self.service_account_file}")
            return credentials

        if self.token_path and os.path.exists(self.token_path):
            self.source = self.token_path
            try:
                credentials = user_credentials.Credentials.from_authorized_user_file(
                    self.token_path,
                    self.scopes,
                )
            except ValueError as e:
                raise CredentialsError(f"Invalid token file {self.token_path}: {e}") from e
            self.logger.info(f"Using authorized-user token from {self.token_path}")
            return credentials

        self.logger.error("No Google credentials found")
        raise CredentialsError("Missing Google Credentials")

    def _from_json_key(self, raw: str) -> Credentials:
        try:
            info: Dict[str, Any] = json.loads(raw)
        except json.JSONDecodeError as e:
            self.logger.error(f"Error parsing GOOGLE_JSON_KEY: {e}")
            raise CredentialsError("Invalid Google JSON Key format") from e

        try:
            credentials = service_account.Credentials.from_service_account_info(
                info,
                scopes=self.scopes,
            )
        except (ValueError, GoogleAuthError) as e:
            self.logger.error(f"GOOGLE_JSON_KEY is not a service account key: {e}")
            raise CredentialsError("Invalid Google JSON Key format") from e

        self.logger.info("Using service account from GOOGLE_JSON_KEY")
        return credentials

    def _refresh_if_needed(self) -> None:
        """Refresh expired authorized-user tokens and save them back"""
        credentials = self.credentials
        if not isinstance(credentials, user_credentials.Credentials):
            # Service-account credentials refresh themselves on request
            return

        if credentials.valid:
            return

        if not credentials.refresh_token:
            raise CredentialsError(
                "Credentials invalid and cannot be refreshed (no refresh token)",
            )

        self.logger.info("Access token expired, refreshing...")
        try:
            credentials.refresh(Request())
        except GoogleAuthError as e:
            raise CredentialsError(f"Token refresh failed: {e}") from e
        self._save_token()
        self.logger.info("Access token refreshed successfully")

    def _save_token(self) -> None:
        """Save refreshed credentials back to token.json"""
        try:
            with open(self.token_path, "w") as token_file:
                token_file.write(self.credentials.to_json())
            self.logger.debug("Credentials saved to token file")
        except OSError as e:
            self.logger.warning(f"Failed to save credentials: {e}")
