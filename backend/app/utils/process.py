# backend/app/utils/process.py

"""
/health で返すプロセス情報（稼働時間・メモリ使用量）の取得。
"""

import resource
import sys
import time
from typing import Dict

_STARTED_AT = time.monotonic()


def get_uptime_seconds() -> float:
    """モジュール読み込み（≒プロセス起動）からの経過秒数。"""
    return round(time.monotonic() - _STARTED_AT, 3)


def get_memory_usage() -> Dict[str, int]:
    """
    メモリ使用量の概要。

    - max_rss_bytes: 最大常駐セットサイズ（Linux は KiB 単位で返るので換算する）
    - allocated_blocks: インタプリタが確保しているメモリブロック数
    """
    max_rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    if sys.platform != "darwin":
        max_rss *= 1024

    return {
        "max_rss_bytes": int(max_rss),
        "allocated_blocks": sys.getallocatedblocks(),
    }
