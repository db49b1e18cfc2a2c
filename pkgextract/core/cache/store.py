"""内容寻址缓存

目录布局:
    <cache_dir>/content-v2/<算法>/<hex[0:2]>/<hex[2:4]>/<hex[4:]>
    <cache_dir>/tmp/                 写入中的临时文件

写入先落到 tmp/，校验摘要后再 os.replace 到最终位置，
因此内容目录中不会出现写了一半的条目。
"""

from __future__ import annotations

import errno
import hashlib
import logging
import os
import tempfile
from pathlib import Path

from pkgextract.core.cache.integrity import DEFAULT_ALGORITHM, Integrity, VerifyingReader
from pkgextract.core.exceptions import (
    CacheNotFoundError,
    FilesystemError,
    IntegrityError,
)
from pkgextract.utils.fs import make_dirs

logger = logging.getLogger(__name__)

CONTENT_DIR = "content-v2"
TMP_DIR = "tmp"
CHUNK_SIZE = 64 * 1024


def _fs_error(action: str, path: Path | str, exc: OSError) -> FilesystemError:
    return FilesystemError(
        f"{action}失败: {path} - {exc}",
        path=str(path),
        code=errno.errorcode.get(exc.errno or 0, "EFS"),
    )


class ContentWriter:
    """向缓存写入一条内容，commit() 时校验并落盘"""

    def __init__(
        self,
        store: ContentStore,
        expected: Integrity | None = None,
        algorithm: str = DEFAULT_ALGORITHM,
    ) -> None:
        self.store = store
        self.expected = expected
        self._hasher = hashlib.new(expected.algorithm if expected else algorithm)
        tmp_dir = make_dirs(store.cache_dir / TMP_DIR)
        try:
            fd, self._tmp = tempfile.mkstemp(dir=str(tmp_dir), suffix=".tmp")
        except OSError as e:
            raise _fs_error("创建临时文件", tmp_dir, e) from e
        self._fh = os.fdopen(fd, "wb")

    def write(self, chunk: bytes) -> None:
        try:
            self._fh.write(chunk)
        except OSError as e:
            self.abort()
            raise _fs_error("写入缓存", self._tmp, e) from e
        self._hasher.update(chunk)

    def commit(self) -> Integrity:
        """关闭临时文件并移动到内容目录，返回实际 integrity"""
        self._fh.close()
        actual = Integrity.from_hash(self._hasher)
        if self.expected is not None and actual != self.expected:
            self.abort()
            raise IntegrityError(
                f"写入缓存的内容校验失败: 期望 {self.expected}, 实际 {actual}",
                expected=str(self.expected),
                actual=str(actual),
            )
        dest = self.store.content_path(actual)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            os.replace(self._tmp, dest)
        except OSError as e:
            self.abort()
            raise _fs_error("写入缓存", dest, e) from e
        logger.debug("缓存已写入: %s -> %s", actual, dest)
        return actual

    def abort(self) -> None:
        """丢弃临时文件"""
        if not self._fh.closed:
            self._fh.close()
        Path(self._tmp).unlink(missing_ok=True)


class ContentStore:
    """按 integrity 寻址的本地内容缓存"""

    def __init__(self, cache_dir: str | Path) -> None:
        self.cache_dir = Path(cache_dir).expanduser()

    def content_path(self, integrity: str | Integrity) -> Path:
        sri = Integrity.parse(integrity)
        hexd = sri.hexdigest()
        return self.cache_dir / CONTENT_DIR / sri.algorithm / hexd[:2] / hexd[2:4] / hexd[4:]

    def has(self, integrity: str | Integrity) -> bool:
        return self.content_path(integrity).is_file()

    def open_read(self, integrity: str | Integrity) -> VerifyingReader:
        """打开缓存内容的读取流，读到 EOF 时校验 integrity

        Raises:
            CacheNotFoundError: 条目不存在
            FilesystemError: 其他读取错误
            IntegrityError: 读完后摘要不一致（在 read() 中抛出）
        """
        sri = Integrity.parse(integrity)
        path = self.content_path(sri)
        try:
            fh = open(path, "rb")  # noqa: SIM115
        except FileNotFoundError as e:
            raise CacheNotFoundError(
                f"缓存中不存在 {sri}", integrity=str(sri),
            ) from e
        except OSError as e:
            raise _fs_error("读取缓存", path, e) from e
        return VerifyingReader(fh, expected=sri)

    def writer(self, expected: str | Integrity | None = None) -> ContentWriter:
        sri = Integrity.parse(expected) if expected else None
        return ContentWriter(self, expected=sri)

    def put_bytes(self, data: bytes, integrity: str | Integrity | None = None) -> Integrity:
        w = self.writer(integrity)
        w.write(data)
        return w.commit()

    def put_file(self, path: str | Path, integrity: str | Integrity | None = None) -> Integrity:
        """把本地文件加入缓存，返回其 integrity"""
        w = self.writer(integrity)
        try:
            with open(path, "rb") as f:
                for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
                    w.write(chunk)
        except OSError as e:
            w.abort()
            raise _fs_error("读取文件", path, e) from e
        return w.commit()

    def verify(self, integrity: str | Integrity) -> bool:
        """完整读取一遍条目并校验摘要"""
        with self.open_read(integrity) as reader:
            try:
                while reader.read(CHUNK_SIZE):
                    pass
            except IntegrityError:
                return False
        return True

    def rm_content(self, integrity: str | Integrity) -> bool:
        """删除指定 integrity 的内容，不存在时视为成功。返回是否实际删除"""
        path = self.content_path(integrity)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise _fs_error("删除缓存", path, e) from e
        logger.info("已删除缓存内容: %s", integrity)
        return True
