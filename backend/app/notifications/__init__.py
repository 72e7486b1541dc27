# backend/app/notifications/__init__.py

"""
プッシュ通知（Firebase Cloud Messaging）連携モジュール群。

- config: Firebase 認証情報・通知の固定値・待ち受けポート
- schemas: API の入出力 Pydantic モデル
- payload: data の正規化（route の付与・値の文字列化）
- errors: 例外階層と Firebase 例外の変換
- client: firebase_admin の初期化と送信
- service: 入力チェック〜送信〜レスポンス生成
- factory: アプリ全体で共有するクライアント / サービス
- router: /sendNotification, /sendBulkNotifications, /test-notification
"""

from .client import FirebaseMessagingClient  # noqa: F401
from .factory import get_firebase_client, get_push_service  # noqa: F401
from .service import PushNotificationService  # noqa: F401
