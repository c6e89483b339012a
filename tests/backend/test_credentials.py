"""
Credentials Loader Tests

To run:
    pytest tests/backend/test_credentials.py -v
"""

import json

import pytest
from google.oauth2 import credentials as user_credentials

from backend.auth.credentials import CredentialsError, CredentialsLoader


def make_loader(**kwargs) -> CredentialsLoader:
    kwargs.setdefault("json_key", None)
    kwargs.setdefault("service_account_file", None)
    kwargs.setdefault("token_path", None)
    return CredentialsLoader(**kwargs)


@pytest.mark.unit
def test_missing_credentials():
    loader = make_loader()

    assert loader.has_credentials() is False
    with pytest.raises(CredentialsError, match="Missing Google Credentials"):
        loader.get_credentials()


@pytest.mark.unit
def test_invalid_json_key():
    loader = make_loader(json_key="{not json")

    assert loader.has_credentials() is True
    with pytest.raises(CredentialsError, match="Invalid Google JSON Key format"):
        loader.get_credentials()


@pytest.mark.unit
def test_json_key_that_is_not_a_service_account():
    loader = make_loader(json_key=json.dumps({"type": "service_account"}))

    with pytest.raises(CredentialsError, match="Invalid Google JSON Key format"):
        loader.get_credentials()


@pytest.mark.unit
def test_missing_files_are_not_credentials(tmp_path):
    loader = make_loader(
        service_account_file=str(tmp_path / "service_account.json"),
        token_path=str(tmp_path / "token.json"),
    )

    assert loader.has_credentials() is False


@pytest.mark.unit
def test_expired_user_token_is_refreshed_and_saved(tmp_path, monkeypatch):
    token_path = tmp_path / "token.json"
    token_path.write_text(
        json.dumps(
            {
                "refresh_token": "refresh-me",
                "client_id": "client.apps.googleusercontent.com",
                "client_secret": "secret",
                "token_uri": "https://oauth2.googleapis.com/token",
            },
        ),
    )

    def fake_refresh(self, request):
        self.token = "fresh-access-token"

    monkeypatch.setattr(user_credentials.Credentials, "refresh", fake_refresh)
    loader = make_loader(token_path=str(token_path))

    credentials = loader.get_credentials()

    assert credentials.token == "fresh-access-token"
    assert loader.source == str(token_path)
    assert json.loads(token_path.read_text())["token"] == "fresh-access-token"


@pytest.mark.unit
def test_user_token_without_refresh_token(tmp_path, monkeypatch):
    stale = user_credentials.Credentials(token=None)
    monkeypatch.setattr(
        user_credentials.Credentials,
        "from_authorized_user_file",
        classmethod(lambda cls, path, scopes=None: stale),
    )
    token_path = tmp_path / "token.json"
    token_path.write_text("{}")

    with pytest.raises(CredentialsError, match="cannot be refreshed"):
        make_loader(token_path=str(token_path)).get_credentials()
