# backend/tests/test_notifications_client.py

import pytest
import firebase_admin
from firebase_admin import credentials, messaging

from app.notifications.client import FirebaseMessagingClient
from app.notifications.config import get_firebase_settings
from app.notifications.errors import FirebaseNotInitializedError
from app.utils.config import EnvVarMissingError


class _FakeApp:
    name = "push-relay"


def _patch_firebase(monkeypatch) -> list:
    """
    firebase_admin の初期化まわりを差し替え、initialize_app の呼び出しを記録する。
    """
    calls: list = []

    def fake_get_app(name="[DEFAULT]"):
        raise ValueError(f"app {name} does not exist")

    def fake_certificate(info):
        return ("certificate", info["client_email"])

    def fake_initialize_app(credential=None, options=None, name="[DEFAULT]"):
        calls.append((credential, options, name))
        return _FakeApp()

    monkeypatch.setattr(firebase_admin, "get_app", fake_get_app)
    monkeypatch.setattr(credentials, "Certificate", fake_certificate)
    monkeypatch.setattr(firebase_admin, "initialize_app", fake_initialize_app)
    return calls


def test_ensure_initialized_is_idempotent(monkeypatch) -> None:
    calls = _patch_firebase(monkeypatch)
    client = FirebaseMessagingClient(get_firebase_settings)

    assert client.initialized is False
    assert client.ensure_initialized() is True
    assert client.ensure_initialized() is True

    assert client.initialized is True
    assert len(calls) == 1
    _, options, name = calls[0]
    assert options["projectId"] == "dummy-project"
    assert name == "push-relay"


def test_ensure_initialized_reuses_existing_app(monkeypatch) -> None:
    calls = _patch_firebase(monkeypatch)
    existing = _FakeApp()
    monkeypatch.setattr(firebase_admin, "get_app", lambda name="[DEFAULT]": existing)

    client = FirebaseMessagingClient(get_firebase_settings)

    assert client.ensure_initialized() is True
    assert calls == []


def test_ensure_initialized_failure_is_logged_not_raised(monkeypatch, caplog) -> None:
    _patch_firebase(monkeypatch)

    def missing_settings():
        raise EnvVarMissingError("FIREBASE_PROJECT_ID")

    client = FirebaseMessagingClient(missing_settings)

    assert client.ensure_initialized() is False
    assert client.initialized is False
    assert any("Failed to initialize Firebase Admin" in r.getMessage() for r in caplog.records)


def test_send_before_initialization_raises() -> None:
    client = FirebaseMessagingClient(get_firebase_settings)

    with pytest.raises(FirebaseNotInitializedError):
        client.send(messaging.Message(token="abc"))

    with pytest.raises(FirebaseNotInitializedError):
        client.send_multicast(messaging.MulticastMessage(tokens=["abc"]))


def test_send_delegates_to_firebase_messaging(monkeypatch) -> None:
    _patch_firebase(monkeypatch)
    sent = []

    def fake_send(message, dry_run=False, app=None):
        sent.append((message, app))
        return "projects/dummy-project/messages/1"

    monkeypatch.setattr(messaging, "send", fake_send)

    client = FirebaseMessagingClient(get_firebase_settings)
    client.ensure_initialized()
    message = messaging.Message(token="abc")

    assert client.send(message) == "projects/dummy-project/messages/1"
    assert sent[0][0] is message
    assert isinstance(sent[0][1], _FakeApp)
