"""提取请求数据模型

数据类:
- ExtractOptions: 提取选项（integrity / cache / prefer_online + 透传给协作方的字段）
- ExtractionRequest: 单次提取请求，调用期间不可变
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from pkgextract.core.exceptions import ValidationError
from pkgextract.core.pkgspec import PackageSpec

_default_logger = logging.getLogger("pkgextract")


@dataclass
class ExtractOptions:
    """提取选项

    integrity 与 cache 同时存在且 prefer_online 为 False 时才会尝试按摘要提取。
    """

    integrity: str | None = None
    cache: str | Path | None = None
    prefer_online: bool = False
    # 以下字段仅透传给拉取 / 解压协作方
    registry: str = "https://registry.npmjs.org"
    timeout: int = 60
    where: str = "."
    logger: logging.Logger = field(default=_default_logger, repr=False)
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def use_digest(self) -> bool:
        return bool(self.integrity and self.cache and not self.prefer_online)


@dataclass(frozen=True)
class ExtractionRequest:
    spec: PackageSpec
    dest: Path
    options: ExtractOptions


def check_options(opts: ExtractOptions | dict[str, Any] | None = None) -> ExtractOptions:
    """合并显式选项与全局配置默认值

    dict 中未知的键放入 extra；cache 为空字符串视为不使用缓存。
    """
    if isinstance(opts, ExtractOptions):
        return opts

    from pkgextract.core.config import get_config
    cfg = get_config()
    values: dict[str, Any] = {
        "cache": cfg.cache_dir or None,
        "prefer_online": cfg.prefer_online,
        "registry": cfg.registry,
        "timeout": cfg.fetch_timeout,
    }
    known = {f.name for f in fields(ExtractOptions)}
    extra: dict[str, Any] = {}
    for k, v in (opts or {}).items():
        if k in known:
            values[k] = v
        else:
            extra[k] = v
    values["extra"] = {**values.get("extra", {}), **extra}

    if values.get("cache") == "":
        values["cache"] = None
    if not isinstance(values.get("timeout"), int) or values["timeout"] <= 0:
        raise ValidationError(f"timeout 必须为正整数: {values.get('timeout')!r}")
    return ExtractOptions(**values)
