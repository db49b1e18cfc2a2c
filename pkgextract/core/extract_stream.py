"""Tarball 流式解压

从可读字节流中顺序解压 tar(.gz/.bz2/.xz) 到目标目录:
  - 去掉每个条目的第一级目录（如 npm 包的 package/）
  - 通过 tarfile.data_filter 过滤，绝对路径、越界路径等条目跳过并告警
  - 解压结束后读完剩余字节，使上游的摘要校验得以执行
"""

from __future__ import annotations

import errno
import logging
import lzma
import tarfile
import zlib
from pathlib import Path
from typing import BinaryIO

from pkgextract.core.cache.store import CHUNK_SIZE
from pkgextract.core.exceptions import ArchiveDataError, FilesystemError, PkgExtractError
from pkgextract.core.models import ExtractOptions

logger = logging.getLogger(__name__)

_DATA_ERRORS = (tarfile.TarError, zlib.error, lzma.LZMAError, EOFError)


def _strip_filter(member: tarfile.TarInfo, dest_path: str) -> tarfile.TarInfo | None:
    parts = member.name.replace("\\", "/").lstrip("/").split("/", 1)
    if len(parts) < 2 or not parts[1].strip("/"):
        # 顶层目录本身
        return None

    changes: dict[str, str] = {"name": parts[1]}
    if member.islnk():
        link_parts = member.linkname.replace("\\", "/").split("/", 1)
        changes["linkname"] = link_parts[-1]
    stripped = member.replace(**changes, deep=False)

    try:
        return tarfile.data_filter(stripped, dest_path)
    except tarfile.FilterError as e:
        logger.warning("跳过不安全的条目 %s: %s", member.name, e)
        return None


def _drain(source: BinaryIO) -> None:
    while source.read(CHUNK_SIZE):
        pass


def extract_stream(
    source: BinaryIO, dest: str | Path, opts: ExtractOptions | None = None,
) -> None:
    """把 source 中的 tarball 解压到 dest（dest 需已存在）

    Raises:
        ArchiveDataError: 压缩流或 tar 结构损坏
        FilesystemError: 写入目标目录失败
        source.read() 抛出的 PkgExtractError 原样透传
    """
    dest = Path(dest)
    try:
        with tarfile.open(fileobj=source, mode="r|*") as tf:
            tf.extractall(path=str(dest), filter=_strip_filter)  # noqa: S202
        _drain(source)
    except PkgExtractError:
        raise
    except _DATA_ERRORS as e:
        raise ArchiveDataError(
            f"tarball 数据损坏: {e}",
            integrity=opts.integrity if opts else None,
        ) from e
    except OSError as e:
        raise FilesystemError(
            f"解压到 {dest} 失败: {e}",
            path=str(dest),
            code=errno.errorcode.get(e.errno or 0, "EFS"),
        ) from e
