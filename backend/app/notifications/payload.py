# backend/app/notifications/payload.py

"""
FCM の data ペイロード正規化。

FCM の data は「文字列 → 文字列」しか受け付けないため、
呼び出し側から来た任意の JSON 値をここで 1つのルールに従って文字列化する。
"""

from __future__ import annotations

import json
import math
from typing import Any, Dict, Mapping, Optional

from .config import DEFAULT_ROUTE
from .schemas import NormalizedMessage

ROUTE_KEY = "route"

# これ以上の整数値 float は指数表記（1e+21）のまま出す
_MAX_PLAIN_INTEGRAL_FLOAT = 1e21


def stringify_payload_value(value: Any) -> str:
    """
    data の値 1つを文字列に変換する。

    - str           → そのまま
    - bool          → "true" / "false"
    - int           → 10進表記
    - float         → 1e21 未満の整数値なら小数部なし（1.0 → "1"）、それ以外は repr（1e21 → "1e+21"）
    - None          → "null"
    - dict / list   → 区切りに空白を入れない JSON
    """
    if isinstance(value, str):
        return value
    # bool は int のサブクラスなので先に判定する
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer() and abs(value) < _MAX_PLAIN_INTEGRAL_FLOAT:
            return str(int(value))
        return repr(value)
    if value is None:
        return "null"
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return str(value)


def resolve_route(data: Optional[Mapping[str, Any]], default: str = DEFAULT_ROUTE) -> str:
    """
    data.route が空でなければそれを、なければ default を返す。
    """
    if not data:
        return default
    route = data.get(ROUTE_KEY)
    if not route:
        return default
    return stringify_payload_value(route)


def stringify_payload(data: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    if not data:
        return {}
    return {str(key): stringify_payload_value(value) for key, value in data.items()}


def normalize_message(
    title: Optional[str],
    body: Optional[str],
    data: Optional[Mapping[str, Any]],
    *,
    default_route: str = DEFAULT_ROUTE,
) -> NormalizedMessage:
    """
    title / body / data から NormalizedMessage を組み立てる。

    route は常に payload に含まれ、呼び出し側が渡した route より導出値が優先される。
    """
    route = resolve_route(data, default=default_route)
    payload = stringify_payload(data)
    payload[ROUTE_KEY] = route

    return NormalizedMessage(title=title, body=body, payload=payload, route=route)
