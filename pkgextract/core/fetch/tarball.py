"""Tarball 拉取器

职责:
- 按描述符类型打开 tarball 字节流（本地文件 / 远程 URL / registry）
- HTTP 错误映射为 NetworkError（code 为 E<状态码>）
- 有期望 integrity 时边读边校验
- 配置了缓存时把拉取到的字节写入内容寻址缓存，读完整个流后才提交
"""

from __future__ import annotations

import errno
import http.client
import logging
import socket
import urllib.error
import urllib.request
from typing import BinaryIO

from pkgextract import __version__
from pkgextract.core.cache.integrity import Integrity, VerifyingReader
from pkgextract.core.cache.store import ContentStore, ContentWriter
from pkgextract.core.exceptions import FilesystemError, NetworkError
from pkgextract.core.models import ExtractOptions
from pkgextract.core.pkgspec import PackageSpec
from pkgextract.utils.net import redact_url, validate_url_scheme

logger = logging.getLogger(__name__)


def _reason_code(reason: object) -> str:
    """把底层网络异常转换为 errno 风格的错误码"""
    if isinstance(reason, (TimeoutError, socket.timeout)):
        return "ETIMEDOUT"
    if isinstance(reason, OSError) and reason.errno:
        return errno.errorcode.get(reason.errno, "ENETWORK")
    return "ENETWORK"


class _HttpBody:
    """HTTP 响应体，读取中断时抛出 NetworkError"""

    def __init__(self, resp: BinaryIO, url: str) -> None:
        self._resp = resp
        self.url = redact_url(url)

    def read(self, size: int = -1) -> bytes:
        try:
            return self._resp.read(size)
        except (OSError, http.client.HTTPException) as e:
            raise NetworkError(
                f"读取响应失败: {self.url} - {e}", code=_reason_code(e),
            ) from e

    def close(self) -> None:
        self._resp.close()

    def __enter__(self) -> _HttpBody:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class CachingReader:
    """读取的同时写入缓存，读到 EOF 后提交；提前关闭则丢弃"""

    def __init__(self, raw: BinaryIO, writer: ContentWriter) -> None:
        self._raw = raw
        self._writer = writer
        self.integrity: Integrity | None = None
        self._closed = False

    def read(self, size: int = -1) -> bytes:
        try:
            chunk = self._raw.read(size)
        except Exception:
            self._writer.abort()
            raise
        if chunk:
            self._writer.write(chunk)
        if self.integrity is None and (not chunk or size is None or size < 0):
            if size != 0:
                self.integrity = self._writer.commit()
        return chunk

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self.integrity is None:
            self._writer.abort()
        self._raw.close()

    def __enter__(self) -> CachingReader:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class TarballFetcher:
    """tarball 字节流拉取器"""

    def tarball(self, spec: PackageSpec, opts: ExtractOptions) -> BinaryIO:
        """打开 spec 对应的 tarball 读取流，调用方负责 close()

        Raises:
            NetworkError: HTTP 状态错误 (E404 等) 或连接错误
            FilesystemError: 本地文件不可读
            SpecError: registry 描述符不是精确版本
        """
        if spec.type == "file":
            raw = self._open_file(spec.fetch_spec)
        else:
            url = spec.fetch_spec if spec.type == "remote" else spec.tarball_url(opts.registry)
            raw = _HttpBody(self._open_url(url, opts), url)

        try:
            return self._wrap(raw, opts)
        except Exception:
            raw.close()
            raise

    @staticmethod
    def _open_file(path: str) -> BinaryIO:
        logger.debug("读取本地 tarball: %s", path)
        try:
            return open(path, "rb")  # noqa: SIM115
        except OSError as e:
            raise FilesystemError(
                f"无法读取本地 tarball: {path} - {e}",
                path=path,
                code=errno.errorcode.get(e.errno or 0, "EFS"),
            ) from e

    @staticmethod
    def _open_url(url: str, opts: ExtractOptions) -> BinaryIO:
        validate_url_scheme(url, context="tarball fetch")
        req = urllib.request.Request(url)
        req.add_header("User-Agent", f"pkgextract/{__version__}")
        token = opts.extra.get("token")
        if token:
            req.add_header("Authorization", f"Bearer {token}")

        shown = redact_url(url)
        logger.debug("拉取: %s", shown)
        try:
            return urllib.request.urlopen(req, timeout=opts.timeout)  # nosec B310
        except urllib.error.HTTPError as e:
            e.close()
            raise NetworkError(
                f"拉取失败: {shown} - HTTP {e.code}", code=f"E{e.code}", status=e.code,
            ) from e
        except urllib.error.URLError as e:
            raise NetworkError(
                f"拉取失败: {shown} - {e.reason}", code=_reason_code(e.reason),
            ) from e
        except OSError as e:
            raise NetworkError(f"拉取失败: {shown} - {e}", code=_reason_code(e)) from e

    @staticmethod
    def _wrap(raw: BinaryIO, opts: ExtractOptions) -> BinaryIO:
        expected = Integrity.parse(opts.integrity) if opts.integrity else None
        if opts.cache:
            # 写入缓存时由 ContentWriter.commit() 负责校验
            return CachingReader(raw, ContentStore(opts.cache).writer(expected))
        if expected is not None:
            return VerifyingReader(raw, expected=expected)
        return raw
