"""Subresource Integrity (SRI) 解析与流式校验

integrity 字符串格式: "<算法>-<base64 摘要>"，可包含多个以空格分隔的条目，
取其中最强的算法。
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import re
from dataclasses import dataclass
from typing import Any, BinaryIO

from pkgextract.core.exceptions import IntegrityError, ValidationError

# 由弱到强
_ALGORITHMS = ("sha1", "sha256", "sha384", "sha512")
DEFAULT_ALGORITHM = "sha512"

_SRI_RE = re.compile(r"^(sha1|sha256|sha384|sha512)-([A-Za-z0-9+/]+={0,2})(\?\S*)?$")


@dataclass(frozen=True)
class Integrity:
    """单个 SRI 条目"""

    algorithm: str
    digest: str  # base64 编码

    @classmethod
    def parse(cls, value: str | Integrity) -> Integrity:
        """解析 SRI 字符串，多个条目时取最强算法

        Raises:
            ValidationError: 没有任何可识别的条目，或摘要长度与算法不符
        """
        if isinstance(value, Integrity):
            return value
        best: Integrity | None = None
        for token in (value or "").split():
            m = _SRI_RE.match(token)
            if not m:
                continue
            candidate = cls(algorithm=m.group(1), digest=m.group(2))
            if best is None or _ALGORITHMS.index(candidate.algorithm) > _ALGORITHMS.index(best.algorithm):
                best = candidate
        if best is None:
            raise ValidationError(f"无效的 integrity: {value!r}")
        try:
            raw = base64.b64decode(best.digest, validate=True)
        except binascii.Error as e:
            raise ValidationError(f"integrity 摘要不是合法 base64: {value!r}") from e
        if len(raw) != hashlib.new(best.algorithm).digest_size:
            raise ValidationError(f"integrity 摘要长度与 {best.algorithm} 不符: {value!r}")
        return best

    @classmethod
    def from_hash(cls, hasher: Any) -> Integrity:
        return cls(
            algorithm=hasher.name,
            digest=base64.b64encode(hasher.digest()).decode("ascii"),
        )

    @classmethod
    def from_bytes(cls, data: bytes, algorithm: str = DEFAULT_ALGORITHM) -> Integrity:
        return cls.from_hash(hashlib.new(algorithm, data))

    def hexdigest(self) -> str:
        return base64.b64decode(self.digest).hex()

    def __str__(self) -> str:
        return f"{self.algorithm}-{self.digest}"


class VerifyingReader:
    """边读边计算摘要的只读流，读到 EOF 时与期望值比对

    expected 为空时只计算摘要，读完后可通过 .integrity 获取。
    """

    def __init__(
        self,
        raw: BinaryIO,
        expected: Integrity | None = None,
        algorithm: str = DEFAULT_ALGORITHM,
    ) -> None:
        self._raw = raw
        self.expected = expected
        self._hasher = hashlib.new(expected.algorithm if expected else algorithm)
        self.size = 0
        self.integrity: Integrity | None = None

    def read(self, size: int = -1) -> bytes:
        chunk = self._raw.read(size)
        if chunk:
            self._hasher.update(chunk)
            self.size += len(chunk)
        if self.integrity is None and (not chunk or size is None or size < 0):
            if size != 0:
                self._finish()
        return chunk

    def _finish(self) -> None:
        self.integrity = Integrity.from_hash(self._hasher)
        if self.expected is not None and self.integrity != self.expected:
            raise IntegrityError(
                f"integrity 校验失败: 期望 {self.expected}, 实际 {self.integrity}",
                expected=str(self.expected),
                actual=str(self.integrity),
            )

    def close(self) -> None:
        self._raw.close()

    def __enter__(self) -> VerifyingReader:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
