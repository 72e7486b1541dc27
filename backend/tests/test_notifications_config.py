# backend/tests/test_notifications_config.py

import pytest

from app.notifications.config import (
    DEFAULT_PORT,
    get_firebase_settings,
    get_server_settings,
)
from app.utils.config import EnvVarInvalidError, EnvVarMissingError


def test_firebase_settings_from_env(monkeypatch) -> None:
    monkeypatch.setenv("FIREBASE_PROJECT_ID", "my-project")
    monkeypatch.setenv("FIREBASE_PRIVATE_KEY", "line1\\nline2\\n")
    monkeypatch.setenv("FIREBASE_CLIENT_EMAIL", "sa@my-project.iam.gserviceaccount.com")
    monkeypatch.delenv("FIREBASE_HTTP_TIMEOUT_SECONDS", raising=False)

    settings = get_firebase_settings()
    info = settings.to_service_account_info()

    assert settings.private_key == "line1\nline2\n"
    assert info["type"] == "service_account"
    assert info["project_id"] == "my-project"
    assert info["client_email"] == "sa@my-project.iam.gserviceaccount.com"
    assert info["client_x509_cert_url"].endswith("sa%40my-project.iam.gserviceaccount.com")
    assert settings.to_app_options() == {"projectId": "my-project"}


def test_firebase_settings_http_timeout(monkeypatch) -> None:
    monkeypatch.setenv("FIREBASE_HTTP_TIMEOUT_SECONDS", "15")

    settings = get_firebase_settings()

    assert settings.http_timeout_seconds == 15
    assert settings.to_app_options()["httpTimeout"] == 15


def test_firebase_settings_missing_required_value(monkeypatch) -> None:
    monkeypatch.delenv("FIREBASE_CLIENT_EMAIL", raising=False)

    with pytest.raises(EnvVarMissingError) as excinfo:
        get_firebase_settings()

    assert excinfo.value.name == "FIREBASE_CLIENT_EMAIL"


def test_server_settings_defaults_and_override(monkeypatch) -> None:
    monkeypatch.delenv("PORT", raising=False)
    assert get_server_settings().port == DEFAULT_PORT

    monkeypatch.setenv("PORT", "8080")
    assert get_server_settings().port == 8080

    monkeypatch.setenv("PORT", "not-a-number")
    with pytest.raises(EnvVarInvalidError):
        get_server_settings()
