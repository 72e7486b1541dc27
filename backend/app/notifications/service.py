# backend/app/notifications/service.py

"""
プッシュ通知送信のサービス層。

- 入力チェック（必須項目の欠落は NotificationValidationError）
- data の正規化（route の付与・値の文字列化）
- Android / iOS 向けのデフォルト表示設定の付与
- FirebaseMessagingClient への送信と、結果のレスポンスモデルへの変換
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Protocol

from firebase_admin import messaging

from .config import (
    DEFAULT_ANDROID_CHANNEL_ID,
    DEFAULT_APNS_BADGE,
    DEFAULT_APNS_PRIORITY,
    DEFAULT_ROUTE,
    DEFAULT_SOUND,
    MAX_MULTICAST_TOKENS,
)
from .errors import (
    NotificationValidationError,
    ProviderUnknownError,
    translate_provider_error,
)
from .payload import normalize_message
from .schemas import (
    BulkNotificationRequest,
    BulkNotificationResponse,
    NormalizedMessage,
    NotificationRequest,
    RecipientError,
    RecipientResult,
    SendNotificationResponse,
    DiagnosticNotificationRequest,
    DiagnosticNotificationResponse,
)

logger = logging.getLogger(__name__)

TEST_NOTIFICATION_TITLE = "🧪 Test notification"
TEST_NOTIFICATION_BODY = "If you received this, the notification system is working correctly"
TEST_NOTIFICATION_ROUTE = "/test"

_TOKEN_PREVIEW_LENGTH = 20


class MessagingClient(Protocol):
    """
    サービス層が必要とする送信クライアントの最小インターフェース。

    実装:
    - FirebaseMessagingClient: firebase_admin 経由で FCM に送信
    - テスト用のダミークライアント
    """

    @property
    def initialized(self) -> bool:  # pragma: no cover - Protocol
        ...

    def ensure_initialized(self) -> bool:  # pragma: no cover - Protocol
        ...

    def send(self, message: messaging.Message) -> str:  # pragma: no cover - Protocol
        ...

    def send_multicast(
        self, message: messaging.MulticastMessage
    ) -> messaging.BatchResponse:  # pragma: no cover - Protocol
        ...


def mask_token(token: str) -> str:
    """ログやレスポンスに出すためにトークンを先頭20文字に切り詰める。"""
    return f"{token[:_TOKEN_PREVIEW_LENGTH]}..."


def build_android_config() -> messaging.AndroidConfig:
    notification = messaging.AndroidNotification(
        channel_id=DEFAULT_ANDROID_CHANNEL_ID,
        priority="high",
        default_sound=True,
        default_vibrate_timings=True,
        sound=DEFAULT_SOUND,
    )
    return messaging.AndroidConfig(priority="high", notification=notification)


def build_apns_config(title: Optional[str], body: Optional[str]) -> messaging.APNSConfig:
    alert = None
    if title or body:
        alert = messaging.ApsAlert(title=title, body=body)

    return messaging.APNSConfig(
        headers={"apns-priority": DEFAULT_APNS_PRIORITY},
        payload=messaging.APNSPayload(
            aps=messaging.Aps(
                alert=alert,
                sound=DEFAULT_SOUND,
                badge=DEFAULT_APNS_BADGE,
            )
        ),
    )


class PushNotificationService:
    """
    通知 API の本体。ルーターからはこのクラスのメソッドだけを呼ぶ。

    状態は送信クライアントへの参照のみで、リクエスト間で共有するデータは持たない。
    """

    def __init__(
        self,
        client: MessagingClient,
        *,
        default_route: str = DEFAULT_ROUTE,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._client = client
        self._default_route = default_route
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def client(self) -> MessagingClient:
        return self._client

    # ---- 内部ヘルパー -------------------------------------------------

    def timestamp(self) -> str:
        """ISO8601（UTC, ミリ秒, 末尾 Z）の現在時刻。"""
        now = self._clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        now = now.astimezone(timezone.utc)
        return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def _ensure_client(self) -> None:
        # 初期化に失敗していても、ここでは例外にしない（送信時に FirebaseNotInitializedError）
        if not self._client.initialized:
            self._client.ensure_initialized()

    def build_message(self, normalized: NormalizedMessage, token: str) -> messaging.Message:
        return messaging.Message(
            notification=messaging.Notification(title=normalized.title, body=normalized.body),
            data=normalized.payload,
            token=token,
            android=build_android_config(),
            apns=build_apns_config(normalized.title, normalized.body),
        )

    def build_multicast(
        self, normalized: NormalizedMessage, tokens: List[str]
    ) -> messaging.MulticastMessage:
        return messaging.MulticastMessage(
            tokens=tokens,
            notification=messaging.Notification(title=normalized.title, body=normalized.body),
            data=normalized.payload,
            android=build_android_config(),
            apns=build_apns_config(normalized.title, normalized.body),
        )

    # ---- 公開 API ------------------------------------------------------

    def send_notification(self, request: NotificationRequest) -> SendNotificationResponse:
        """
        単一トークンへ通知を送信する。

        :raises NotificationValidationError: tokenFCM / title / body のいずれかが空
        :raises DispatchError: FCM 送信に失敗した場合（エラー種別ごとのサブクラス）
        """
        token, title, body = request.token, request.title, request.body

        logger.info(
            "Notification request received: tokenFCM=%s title=%r body=%r data=%s",
            mask_token(token) if token else "<missing>",
            title,
            body,
            request.data,
        )

        received: Dict[str, bool] = {
            "tokenFCM": bool(token),
            "title": bool(title),
            "body": bool(body),
        }
        if not all(received.values()):
            logger.warning("Notification request validation failed: %s", received)
            raise NotificationValidationError(
                "tokenFCM, title and body are required",
                received=received,
            )

        normalized = normalize_message(
            title, body, request.data, default_route=self._default_route
        )
        logger.info("Resolved route=%s payload=%s", normalized.route, normalized.payload)

        message_id = self._send_single(normalized, token)

        return SendNotificationResponse(
            response=message_id,
            token_used=mask_token(token),
            data_sent=normalized.payload,
            timestamp=self.timestamp(),
        )

    def send_bulk(self, request: BulkNotificationRequest) -> BulkNotificationResponse:
        """
        複数トークンへ同じ通知を 1回の multicast で送信する。

        一部のトークンで失敗しても例外にはしない（failure_count / responses に反映）。

        :raises NotificationValidationError: tokensFCM が配列でない・空・上限超過
        :raises ProviderUnknownError: multicast 呼び出し自体が失敗した場合
        """
        tokens = self._validate_tokens(request.tokens)

        normalized = normalize_message(
            request.title, request.body, request.data, default_route=self._default_route
        )
        multicast = self.build_multicast(normalized, tokens)

        self._ensure_client()
        try:
            batch = self._client.send_multicast(multicast)
        except Exception as exc:  # noqa: BLE001
            error = translate_provider_error(exc)
            logger.error("Bulk notification failed: code=%s message=%s", error.code, error.raw_message)
            raise ProviderUnknownError(error.raw_message, code=error.code) from exc

        logger.info("Bulk notifications sent: %d/%d", batch.success_count, len(tokens))

        return BulkNotificationResponse(
            success_count=batch.success_count,
            failure_count=batch.failure_count,
            responses=[self._to_recipient_result(r) for r in batch.responses],
        )

    def send_test(self, request: DiagnosticNotificationRequest) -> DiagnosticNotificationResponse:
        """
        固定のタイトル・本文で疎通確認用の通知を送信する。

        トークン以外のリクエスト内容は使わない。送信失敗はすべて ProviderUnknownError。
        """
        token = request.token
        if not token:
            raise NotificationValidationError("tokenFCM is required for the test notification")

        logger.info("Sending test notification to %s", mask_token(token))

        normalized = normalize_message(
            TEST_NOTIFICATION_TITLE,
            TEST_NOTIFICATION_BODY,
            {
                "type": "test",
                "route": TEST_NOTIFICATION_ROUTE,
                "timestamp": self.timestamp(),
            },
            default_route=self._default_route,
        )

        try:
            message_id = self._send_single(normalized, token)
        except ProviderUnknownError:
            raise
        except Exception as exc:  # noqa: BLE001
            error = translate_provider_error(exc)
            raise ProviderUnknownError(error.raw_message, code=error.code) from exc

        return DiagnosticNotificationResponse(response=message_id)

    # ---- 内部: 実際の送信 ---------------------------------------------

    def _send_single(self, normalized: NormalizedMessage, token: str) -> str:
        message = self.build_message(normalized, token)

        self._ensure_client()
        try:
            message_id = self._client.send(message)
        except Exception as exc:  # noqa: BLE001
            error = translate_provider_error(exc)
            logger.error(
                "Notification send failed: token=%s code=%s message=%s",
                mask_token(token),
                error.code,
                error.raw_message,
            )
            raise error from exc

        logger.info("Notification sent: token=%s response=%s", mask_token(token), message_id)
        return message_id

    @staticmethod
    def _validate_tokens(tokens: object) -> List[str]:
        if not isinstance(tokens, list) or len(tokens) == 0:
            raise NotificationValidationError("An array of tokensFCM is required")
        if not all(isinstance(t, str) and t for t in tokens):
            raise NotificationValidationError("tokensFCM must contain only non-empty strings")
        if len(tokens) > MAX_MULTICAST_TOKENS:
            raise NotificationValidationError(
                f"tokensFCM accepts at most {MAX_MULTICAST_TOKENS} tokens per request"
            )
        return list(tokens)

    @staticmethod
    def _to_recipient_result(response: messaging.SendResponse) -> RecipientResult:
        error = None
        if response.exception is not None:
            code = getattr(response.exception, "code", None)
            error = RecipientError(
                code=str(code) if code else None,
                message=str(response.exception),
            )
        return RecipientResult(
            success=response.success,
            message_id=response.message_id,
            error=error,
        )
