# backend/app/notifications/router.py

"""
プッシュ通知用の FastAPI ルーター定義。

- POST /sendNotification
- POST /sendBulkNotifications
- POST /test-notification

失敗時は HTTPException ではなく {success: false, ...} 形式の JSON を返す
（既存のモバイルクライアントがこの形を前提にしているため）。
ボディ無しの POST は空オブジェクトとして扱い、必須項目チェックの 400 に乗せる。
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from .errors import DispatchError, NotificationValidationError
from .factory import get_push_service
from .schemas import (
    BulkNotificationRequest,
    BulkNotificationResponse,
    DiagnosticNotificationRequest,
    DiagnosticNotificationResponse,
    ErrorResponse,
    NotificationRequest,
    SendNotificationResponse,
)
from .service import PushNotificationService

router = APIRouter(tags=["notifications"])

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def _error_response(error: ErrorResponse, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error.model_dump(exclude_none=True),
    )


@router.post(
    "/sendNotification",
    response_model=SendNotificationResponse,
    responses=_ERROR_RESPONSES,
    summary="単一トークンへプッシュ通知を送信",
)
def send_notification(
    body: Optional[NotificationRequest] = None,
    service: PushNotificationService = Depends(get_push_service),
):
    """
    tokenFCM / title / body / data を受け取り、FCM へ送信する。

    - 必須項目の欠落 → 400（received に各項目の有無）
    - 未登録・不正なトークン → 400、認証情報不一致 → 401
    - その他の FCM エラー → 500（FCM のメッセージとコードをそのまま返す）
    """
    try:
        return service.send_notification(body or NotificationRequest())
    except NotificationValidationError as exc:
        return _error_response(
            ErrorResponse(error=exc.message, received=exc.received),
            exc.status_code,
        )
    except DispatchError as exc:
        return _error_response(
            ErrorResponse(error=exc.message, code=exc.code, timestamp=service.timestamp()),
            exc.status_code,
        )


@router.post(
    "/sendBulkNotifications",
    response_model=BulkNotificationResponse,
    responses=_ERROR_RESPONSES,
    summary="複数トークンへ同じプッシュ通知を送信",
)
def send_bulk_notifications(
    body: Optional[BulkNotificationRequest] = None,
    service: PushNotificationService = Depends(get_push_service),
):
    """
    tokensFCM の全トークンへ 1回の multicast で送信する。

    個別トークンの失敗は 200 のまま failureCount / responses で返す。
    """
    try:
        return service.send_bulk(body or BulkNotificationRequest())
    except DispatchError as exc:
        return _error_response(ErrorResponse(error=exc.message), exc.status_code)


@router.post(
    "/test-notification",
    response_model=DiagnosticNotificationResponse,
    responses=_ERROR_RESPONSES,
    summary="疎通確認用の固定通知を送信",
)
def send_test_notification(
    body: Optional[DiagnosticNotificationRequest] = None,
    service: PushNotificationService = Depends(get_push_service),
):
    """
    tokenFCM だけを受け取り、固定のタイトル・本文の通知を送る。
    認証情報や接続の確認用。
    """
    try:
        return service.send_test(body or DiagnosticNotificationRequest())
    except DispatchError as exc:
        return _error_response(ErrorResponse(error=exc.message), exc.status_code)
