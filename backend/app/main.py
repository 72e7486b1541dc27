# backend/app/main.py

"""
バックエンドアプリケーションのエントリーポイント。

主な責務:
- プッシュ通知エンドポイント（/sendNotification, /sendBulkNotifications, /test-notification）を公開する
- ステータスページ（/）とヘルスチェック（/health）を公開する
- 起動時に Firebase Admin を初期化する（失敗してもサーバは起動する）
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from app.notifications.client import FirebaseMessagingClient
from app.notifications.config import get_server_settings
from app.notifications.factory import get_firebase_client
from app.notifications.router import router as notifications_router
from app.notifications.schemas import ErrorResponse, HealthResponse, StatusResponse
from app.utils.process import get_memory_usage, get_uptime_seconds

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # 初期化に失敗した場合はログだけ出して起動を続ける（送信時に 500 になる）
    get_firebase_client().ensure_initialized()
    yield


async def _handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.warning("Invalid request body for %s: %s", request.url.path, exc.errors())
    error = ErrorResponse(error="Invalid request body", details=jsonable_encoder(exc.errors()))
    return JSONResponse(status_code=400, content=error.model_dump(exclude_none=True))


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error while processing %s", request.url.path)
    error = ErrorResponse(error="Internal server error")
    return JSONResponse(status_code=500, content=error.model_dump(exclude_none=True))


def _utc_now_iso() -> str:
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def create_app() -> FastAPI:
    """
    FastAPI アプリケーションファクトリ。

    - プッシュ通知エンドポイント
    - ステータスページ (/)
    - ヘルスチェックエンドポイント (/health)
    """
    app = FastAPI(title="Push Notification Relay", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_exception_handler(RequestValidationError, _handle_request_validation_error)
    app.add_exception_handler(Exception, _handle_unexpected_error)

    # ルーター登録
    app.include_router(notifications_router)

    @app.get("/", response_model=StatusResponse, tags=["health"])
    def status_page(
        client: FirebaseMessagingClient = Depends(get_firebase_client),
    ) -> StatusResponse:
        """
        サーバが動いているか、Firebase が初期化済みかを返す。
        """
        return StatusResponse(
            message="Notification server is running",
            status="healthy",
            timestamp=_utc_now_iso(),
            firebase="connected" if client.initialized else "disconnected",
        )

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    def health_check(
        client: FirebaseMessagingClient = Depends(get_firebase_client),
    ) -> HealthResponse:
        """
        簡易ヘルスチェックエンドポイント。
        モニタリングや動作確認用。
        """
        return HealthResponse(
            status="ok",
            firebase=client.initialized,
            uptime=get_uptime_seconds(),
            memory=get_memory_usage(),
        )

    return app


# uvicorn 実行時のエントリーポイント
app = create_app()


def run() -> None:
    """
    `push-relay` コマンド / `python -m app.main` 用の起動関数。
    HOST / PORT 環境変数で待ち受け先を変更できる。
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    settings = get_server_settings()
    logger.info("Starting notification server on %s:%d", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
