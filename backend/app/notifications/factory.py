# backend/app/notifications/factory.py

"""
アプリ全体で共有する FirebaseMessagingClient / PushNotificationService の生成。

- 初回呼び出し時にのみ生成し、それ以降は同じインスタンスを返す
- テスト時にリセットできるようにする
"""

from __future__ import annotations

from typing import Optional

from .client import FirebaseMessagingClient
from .service import PushNotificationService

_firebase_client: Optional[FirebaseMessagingClient] = None
_push_service: Optional[PushNotificationService] = None


def get_firebase_client() -> FirebaseMessagingClient:
    """
    共有の FirebaseMessagingClient を返す。

    ここでは生成のみで初期化はしない（起動時の lifespan か、送信時に ensure_initialized）。
    """
    global _firebase_client
    if _firebase_client is None:
        _firebase_client = FirebaseMessagingClient()
    return _firebase_client


def get_push_service() -> PushNotificationService:
    """
    共有の PushNotificationService を返す。
    """
    global _push_service
    if _push_service is None:
        _push_service = PushNotificationService(get_firebase_client())
    return _push_service


def reset_state() -> None:
    """
    テスト用にシングルトン状態をリセットする。

    firebase_admin 側に登録済みの App は削除しない。
    """
    global _firebase_client, _push_service
    _firebase_client = None
    _push_service = None
