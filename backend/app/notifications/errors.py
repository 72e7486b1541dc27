# backend/app/notifications/errors.py

"""
通知送信まわりの例外階層と、Firebase の例外から呼び出し側向けエラーへの変換。

すべて DispatchError を基底とし、HTTP ステータスコード / エラーコード /
呼び出し側向けメッセージを持つ。ルーター層はこれを JSON に詰めて返すだけでよい。
"""

from __future__ import annotations

from typing import Dict, Optional, Type

from firebase_admin import exceptions as firebase_exceptions
from firebase_admin import messaging


class DispatchError(Exception):
    """通知送信の失敗全般の基底例外。"""

    status_code: int = 500
    default_code: str = "unknown"

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        raw_message: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        # プロバイダが返した生のメッセージ（運用時のデバッグ用）
        self.raw_message = raw_message if raw_message is not None else message


class NotificationValidationError(DispatchError):
    """リクエストの必須項目が欠けている場合の例外。"""

    status_code = 400
    default_code = "invalid-request"

    def __init__(
        self,
        message: str,
        *,
        received: Optional[Dict[str, bool]] = None,
    ) -> None:
        super().__init__(message)
        self.received = received


class ProviderRegistrationError(DispatchError):
    """トークンが FCM に登録されていない・期限切れ。"""

    status_code = 400
    default_code = "messaging/registration-token-not-registered"


class ProviderFormatError(DispatchError):
    """トークンの形式が不正。"""

    status_code = 400
    default_code = "messaging/invalid-registration-token"


class ProviderCredentialError(DispatchError):
    """サーバ側の認証情報とプロジェクトが一致しない。"""

    status_code = 401
    default_code = "messaging/mismatched-credential"


class ProviderUnknownError(DispatchError):
    """上記以外のプロバイダ側エラー。メッセージとコードはそのまま返す。"""

    status_code = 500


class FirebaseUnavailableError(ProviderUnknownError):
    """Firebase クライアントが初期化されていない。"""

    default_code = "app/not-initialized"


class FirebaseNotInitializedError(RuntimeError):
    """初期化前の FirebaseMessagingClient で送信しようとした場合の例外。"""


# 既知のエラーコード → (例外クラス, 呼び出し側向けメッセージ)
_KNOWN_PROVIDER_CODES: Dict[str, tuple[Type[DispatchError], str]] = {
    "registration-token-not-registered": (
        ProviderRegistrationError,
        "Invalid or expired registration token",
    ),
    "invalid-registration-token": (
        ProviderFormatError,
        "Invalid registration token format",
    ),
    "mismatched-credential": (
        ProviderCredentialError,
        "Incorrect Firebase credentials",
    ),
}


def _normalize_code(code: Optional[str]) -> Optional[str]:
    if not code:
        return None
    code = str(code)
    if code.startswith("messaging/"):
        code = code[len("messaging/"):]
    return code.lower()


def _mentions_registration_token(exc: Exception) -> bool:
    return "registration token" in str(exc).lower()


def _classify(exc: Exception) -> Optional[str]:
    """
    例外を既知のエラーコード（"messaging/" を除いた形）に分類する。
    分類できない場合は None。
    """
    if isinstance(exc, messaging.UnregisteredError):
        return "registration-token-not-registered"
    if isinstance(exc, messaging.SenderIdMismatchError):
        return "mismatched-credential"
    # INVALID_ARGUMENT はペイロード過大なども含むので、トークンに言及しているものだけ
    if isinstance(exc, firebase_exceptions.InvalidArgumentError) and _mentions_registration_token(exc):
        return "invalid-registration-token"

    code = _normalize_code(getattr(exc, "code", None))
    if code in _KNOWN_PROVIDER_CODES:
        return code
    return None


def translate_provider_error(exc: Exception) -> DispatchError:
    """
    Firebase SDK（またはクライアント層）の例外を DispatchError に変換する。

    - 既に DispatchError ならそのまま返す
    - 未初期化 → FirebaseUnavailableError (500)
    - 未登録トークン / 形式不正 / 認証情報不一致 → 400 / 400 / 401
    - それ以外 → ProviderUnknownError (500)。メッセージとコードは素通し
    """
    if isinstance(exc, DispatchError):
        return exc

    raw_message = str(exc)

    if isinstance(exc, FirebaseNotInitializedError):
        return FirebaseUnavailableError(raw_message)

    known = _classify(exc)
    if known is not None:
        error_cls, message = _KNOWN_PROVIDER_CODES[known]
        return error_cls(message, raw_message=raw_message)

    code = getattr(exc, "code", None)
    return ProviderUnknownError(raw_message, code=str(code) if code else None)
