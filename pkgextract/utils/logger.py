"""pkgextract 日志配置

文本格式供交互使用；JSON 格式每行一条记录，便于安装流水线收集。
编排器通过 extra= 附带 spec / integrity / source 字段，JSON 输出时原样保留。
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO

# 通过 logger.xxx(..., extra={...}) 附带的上下文字段
CONTEXT_FIELDS = ("spec", "integrity", "source", "dest")

TEXT_FORMAT = "%(asctime)s [%(levelname)-7s] %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """一行一条的 JSON 日志

    示例:
        {"timestamp": "...", "level": "WARNING", "logger": "pkgextract.core.extract",
         "message": "...", "spec": "left-pad@1.3.0", "integrity": "sha512-..."}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                entry[name] = str(value)
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def setup_logging(
    level: str = "INFO", json_output: bool = False, stream: IO[str] | None = None,
) -> logging.Handler:
    """配置根日志器并返回新装的 handler

    参数:
        level: 日志级别字符串，无法识别时回退到 INFO
        json_output: 使用 JSONFormatter
        stream: 输出目标，默认 stderr
    """
    reset_logging()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JSONFormatter() if json_output else logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)
    return handler


def reset_logging() -> None:
    """移除并关闭根日志器上的 handlers，避免重复输出"""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
