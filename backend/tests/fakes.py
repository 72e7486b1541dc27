# backend/tests/fakes.py
"""
FCM に実際には送信しないテスト用クライアント。
"""

from typing import List, Optional

from firebase_admin import messaging


class FakeMessagingClient:
    """
    送信されたメッセージを記録し、固定の結果を返す。

    - send_error / multicast_error をセットするとその例外を投げる
    - multicast_results で個別トークンの成否（例外 or None）を指定できる
    """

    def __init__(
        self,
        *,
        initialized: bool = True,
        message_id: str = "projects/dummy-project/messages/0:123",
    ) -> None:
        self._initialized = initialized
        self.message_id = message_id
        self.send_error: Optional[Exception] = None
        self.multicast_error: Optional[Exception] = None
        self.multicast_results: Optional[List[Optional[Exception]]] = None
        self.sent: List[messaging.Message] = []
        self.multicasts: List[messaging.MulticastMessage] = []
        self.init_calls = 0

    @property
    def initialized(self) -> bool:
        return self._initialized

    def ensure_initialized(self) -> bool:
        self.init_calls += 1
        return self._initialized

    def send(self, message: messaging.Message) -> str:
        self.sent.append(message)
        if self.send_error is not None:
            raise self.send_error
        return self.message_id

    def send_multicast(self, message: messaging.MulticastMessage) -> messaging.BatchResponse:
        self.multicasts.append(message)
        if self.multicast_error is not None:
            raise self.multicast_error

        results = self.multicast_results
        if results is None:
            results = [None] * len(message.tokens)

        responses = []
        for index, exc in enumerate(results):
            if exc is None:
                responses.append(
                    messaging.SendResponse({"name": f"{self.message_id}-{index}"}, None)
                )
            else:
                responses.append(messaging.SendResponse(None, exc))
        return messaging.BatchResponse(responses)
