# backend/app/utils/config.py

"""
環境変数読み取り用のユーティリティ。
Firebase の認証情報やサーバのポート番号など、アプリ全体の設定読み出しで共通利用する。
"""

import os
from typing import Optional


class EnvVarMissingError(RuntimeError):
    """必須環境変数が設定されていない場合に投げる例外。"""

    def __init__(self, name: str) -> None:
        super().__init__(f"Required environment variable '{name}' is not set.")
        self.name = name


class EnvVarInvalidError(RuntimeError):
    """環境変数の値が期待する型に変換できない場合に投げる例外。"""

    def __init__(self, name: str, raw: str) -> None:
        super().__init__(f"Invalid value for environment variable '{name}': {raw!r}")
        self.name = name
        self.raw = raw


def get_env(
    name: str,
    default: Optional[str] = None,
    *,
    required: bool = True,
) -> Optional[str]:
    """
    環境変数を取得するヘルパー。

    :param name: 環境変数名
    :param default: デフォルト値（required=False の場合のみ使用）
    :param required: True の場合、未設定なら例外を投げる
    :return: 文字列値
    """
    value = os.getenv(name)

    if value is None or value == "":
        if required:
            raise EnvVarMissingError(name)
        return default

    return value


def get_env_int(name: str, default: Optional[int] = None) -> Optional[int]:
    """
    整数の環境変数を取得する。

    - 未設定の場合は default を返す。
    - 数値として解釈できない場合は EnvVarInvalidError。
    """
    raw = get_env(name, required=False)
    if raw is None:
        return default

    try:
        return int(raw.strip())
    except ValueError as exc:
        raise EnvVarInvalidError(name, raw) from exc
