# backend/app/notifications/client.py

"""
Firebase Admin SDK の薄いラッパークライアント。

- プロセス内で 1度だけ firebase_admin.App を初期化する（ensure_initialized）
- 単一トークンへの send / 複数トークンへの multicast 送信
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

import firebase_admin
from firebase_admin import credentials, messaging

from .config import FirebaseSettings, get_firebase_settings
from .errors import FirebaseNotInitializedError

logger = logging.getLogger(__name__)

DEFAULT_APP_NAME = "push-relay"


class FirebaseMessagingClient:
    """
    firebase_admin.App を保持し、FCM への送信を行うクライアント。

    NOTE:
      - 初期化に失敗してもプロセスは落とさない。ログを出して initialized=False のまま。
      - 初期化前に送信すると FirebaseNotInitializedError。
    """

    def __init__(
        self,
        settings_loader: Callable[[], FirebaseSettings] = get_firebase_settings,
        *,
        app_name: str = DEFAULT_APP_NAME,
    ) -> None:
        self._settings_loader = settings_loader
        self._app_name = app_name
        self._app: Optional[firebase_admin.App] = None
        self._lock = threading.Lock()

    @property
    def initialized(self) -> bool:
        return self._app is not None

    @property
    def app_name(self) -> str:
        return self._app_name

    def ensure_initialized(self) -> bool:
        """
        Firebase App を初期化する。既に初期化済みなら何もしない。

        :return: 初期化済みなら True、失敗した場合は False
        """
        if self._app is not None:
            return True

        with self._lock:
            if self._app is not None:
                return True

            try:
                self._app = self._get_or_create_app()
            except Exception:  # noqa: BLE001 - 初期化失敗でプロセスを止めない
                logger.exception("Failed to initialize Firebase Admin.")
                return False

        logger.info("Firebase Admin initialized (app=%s).", self._app_name)
        return True

    def _get_or_create_app(self) -> firebase_admin.App:
        try:
            # 同名の App が既にプロセス内にあれば使い回す
            return firebase_admin.get_app(self._app_name)
        except ValueError:
            pass

        settings = self._settings_loader()
        cred = credentials.Certificate(settings.to_service_account_info())
        return firebase_admin.initialize_app(
            cred,
            settings.to_app_options(),
            name=self._app_name,
        )

    def _require_app(self) -> firebase_admin.App:
        if self._app is None:
            raise FirebaseNotInitializedError(
                "Firebase Admin is not initialized. Check FIREBASE_* environment variables."
            )
        return self._app

    def send(self, message: messaging.Message) -> str:
        """
        単一トークン宛てのメッセージを送信する。

        :return: FCM が払い出したメッセージ ID
        :raises FirebaseNotInitializedError: 未初期化の場合
        :raises firebase_admin.exceptions.FirebaseError: FCM がエラーを返した場合
        """
        app = self._require_app()
        return messaging.send(message, app=app)

    def send_multicast(self, message: messaging.MulticastMessage) -> messaging.BatchResponse:
        """
        複数トークン宛てに同じメッセージを送信する。

        個別トークンの失敗は例外にならず、BatchResponse.responses に入る。
        """
        app = self._require_app()
        return messaging.send_each_for_multicast(message, app=app)
