# backend/app/notifications/schemas.py

"""
プッシュ通知 API の入出力スキーマ定義。

トークンのフィールド名は tokenFCM / tokensFCM を正とし、
旧クライアント向けに token / tokens も受け付ける。

※ 必須項目の欠落は 422 ではなく 400（欠けた項目の内訳付き）で返したいので、
  リクエストモデル側ではあえて Optional にしてサービス層でチェックする。
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
)

# data に入れられる値の種類。送信時にはすべて文字列に変換される。
PayloadValue = Union[
    StrictBool,
    StrictInt,
    StrictFloat,
    StrictStr,
    None,
    Dict[str, Any],
    List[Any],
]


class NotificationRequest(BaseModel):
    """
    POST /sendNotification のリクエストボディ。
    """

    model_config = ConfigDict(populate_by_name=True)

    token: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("tokenFCM", "token"),
        description="送信先デバイスの FCM 登録トークン",
    )
    title: Optional[str] = Field(None, description="通知タイトル")
    body: Optional[str] = Field(None, description="通知本文")
    data: Optional[Dict[str, PayloadValue]] = Field(
        None,
        validation_alias=AliasChoices("data", "payload"),
        description="任意のキー/値。route を含めるとアプリ側の遷移先になる",
    )


class BulkNotificationRequest(BaseModel):
    """
    POST /sendBulkNotifications のリクエストボディ。

    tokens は「配列でない」場合も 400 で返すため Any で受ける。
    """

    model_config = ConfigDict(populate_by_name=True)

    tokens: Any = Field(
        None,
        validation_alias=AliasChoices("tokensFCM", "tokens"),
        description="送信先 FCM 登録トークンの配列",
    )
    title: Optional[str] = None
    body: Optional[str] = None
    data: Optional[Dict[str, PayloadValue]] = Field(
        None,
        validation_alias=AliasChoices("data", "payload"),
    )


class DiagnosticNotificationRequest(BaseModel):
    """
    POST /test-notification のリクエストボディ。トークン以外は無視する。
    """

    model_config = ConfigDict(populate_by_name=True)

    token: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("tokenFCM", "token"),
    )


class NormalizedMessage(BaseModel):
    """
    FCM に渡す直前の正規化済みメッセージ。

    payload の値はすべて文字列で、route キーが必ず含まれる。
    """

    title: Optional[str] = None
    body: Optional[str] = None
    payload: Dict[str, str] = Field(default_factory=dict)
    route: str


class SendNotificationResponse(BaseModel):
    success: bool = True
    response: str = Field(..., description="FCM のメッセージ ID")
    message: str = "Notification sent successfully"
    token_used: str = Field(..., description="送信先トークンの先頭20文字（デバッグ用）")
    data_sent: Dict[str, str] = Field(
        ...,
        description="実際に送信した data（route 付与・文字列化後）",
    )
    timestamp: str


class RecipientError(BaseModel):
    code: Optional[str] = None
    message: str


class RecipientResult(BaseModel):
    """
    multicast の個別トークンごとの結果。FCM の SendResponse をそのまま写したもの。
    """

    success: bool
    message_id: Optional[str] = Field(None, serialization_alias="messageId")
    error: Optional[RecipientError] = None


class BulkNotificationResponse(BaseModel):
    success: bool = True
    success_count: int = Field(..., ge=0, serialization_alias="successCount")
    failure_count: int = Field(..., ge=0, serialization_alias="failureCount")
    responses: List[RecipientResult] = Field(default_factory=list)


class DiagnosticNotificationResponse(BaseModel):
    success: bool = True
    message: str = "Test notification sent"
    response: str


class ErrorResponse(BaseModel):
    """
    失敗時の共通レスポンス。エンドポイントによって使うフィールドが異なる。
    """

    success: bool = False
    error: str
    code: Optional[str] = None
    received: Optional[Dict[str, bool]] = None
    details: Optional[Any] = None
    timestamp: Optional[str] = None


class StatusResponse(BaseModel):
    message: str
    status: str
    timestamp: str
    firebase: str = Field(..., description="connected / disconnected")


class HealthResponse(BaseModel):
    status: str = "ok"
    firebase: bool
    uptime: float = Field(..., description="プロセス起動からの経過秒数")
    memory: Dict[str, int]
