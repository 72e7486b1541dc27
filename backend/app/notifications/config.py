# backend/app/notifications/config.py

"""
Firebase Cloud Messaging 連携の設定値をまとめるモジュール。

- FirebaseSettings: サービスアカウント認証情報（環境変数から組み立てる）
- 通知の見た目に関する固定値（デフォルト route, サウンド, チャンネル等）
- サーバの待ち受けポート
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote

from app.utils.config import get_env, get_env_int

# 通知タップ時の遷移先。data.route が無い場合に使う。
DEFAULT_ROUTE = "/reels"

# アプリ側に同梱されているサウンドファイル名（Android / iOS 共通）。
DEFAULT_SOUND = "soycrea.mp3"

DEFAULT_ANDROID_CHANNEL_ID = "default"
DEFAULT_APNS_PRIORITY = "10"
DEFAULT_APNS_BADGE = 1

# send_each_for_multicast が一度に受け付けるトークン数の上限。
MAX_MULTICAST_TOKENS = 500

DEFAULT_PORT = 3000
DEFAULT_HOST = "0.0.0.0"

_GOOGLE_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
_GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"
_GOOGLE_CERTS_URL = "https://www.googleapis.com/oauth2/v1/certs"
_GOOGLE_X509_BASE_URL = "https://www.googleapis.com/robot/v1/metadata/x509/"


@dataclass(frozen=True)
class FirebaseSettings:
    """
    Firebase Admin SDK の初期化に必要な設定値。
    """

    project_id: str
    private_key_id: str
    private_key: str
    client_email: str
    client_id: str
    http_timeout_seconds: Optional[int] = None

    @property
    def client_x509_cert_url(self) -> str:
        return _GOOGLE_X509_BASE_URL + quote(self.client_email, safe="")

    def to_service_account_info(self) -> Dict[str, Any]:
        """
        credentials.Certificate にそのまま渡せるサービスアカウント辞書を返す。
        """
        return {
            "type": "service_account",
            "project_id": self.project_id,
            "private_key_id": self.private_key_id,
            "private_key": self.private_key,
            "client_email": self.client_email,
            "client_id": self.client_id,
            "auth_uri": _GOOGLE_AUTH_URI,
            "token_uri": _GOOGLE_TOKEN_URI,
            "auth_provider_x509_cert_url": _GOOGLE_CERTS_URL,
            "client_x509_cert_url": self.client_x509_cert_url,
            "universe_domain": "googleapis.com",
        }

    def to_app_options(self) -> Dict[str, Any]:
        """
        firebase_admin.initialize_app の options 引数。
        """
        options: Dict[str, Any] = {"projectId": self.project_id}
        if self.http_timeout_seconds is not None and self.http_timeout_seconds > 0:
            options["httpTimeout"] = self.http_timeout_seconds
        return options


def _unescape_private_key(raw: str) -> str:
    # 環境変数では改行が "\n" の2文字で渡されることが多い
    return raw.replace("\\n", "\n")


def get_firebase_settings() -> FirebaseSettings:
    """
    環境変数から Firebase 設定を読み込む。

    必須:
      - FIREBASE_PROJECT_ID
      - FIREBASE_PRIVATE_KEY_ID
      - FIREBASE_PRIVATE_KEY（"\\n" は改行に戻す）
      - FIREBASE_CLIENT_EMAIL
      - FIREBASE_CLIENT_ID

    任意:
      - FIREBASE_HTTP_TIMEOUT_SECONDS（未設定なら SDK のデフォルト）

    いずれかの必須値が欠けている場合は EnvVarMissingError。
    """
    project_id = get_env("FIREBASE_PROJECT_ID")
    private_key_id = get_env("FIREBASE_PRIVATE_KEY_ID")
    private_key = _unescape_private_key(get_env("FIREBASE_PRIVATE_KEY"))
    client_email = get_env("FIREBASE_CLIENT_EMAIL")
    client_id = get_env("FIREBASE_CLIENT_ID")

    return FirebaseSettings(
        project_id=project_id,
        private_key_id=private_key_id,
        private_key=private_key,
        client_email=client_email,
        client_id=client_id,
        http_timeout_seconds=get_env_int("FIREBASE_HTTP_TIMEOUT_SECONDS"),
    )


@dataclass(frozen=True)
class ServerSettings:
    """uvicorn の待ち受け設定。"""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT


def get_server_settings() -> ServerSettings:
    """
    任意:
      - HOST（デフォルト 0.0.0.0）
      - PORT（デフォルト 3000）
    """
    return ServerSettings(
        host=get_env("HOST", default=DEFAULT_HOST, required=False),
        port=get_env_int("PORT", default=DEFAULT_PORT),
    )
