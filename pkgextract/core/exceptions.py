"""统一异常体系

所有业务异常继承 PkgExtractError，各协作方（缓存、拉取、解压）在边界处把
OSError / tarfile / urllib 的原始错误转换为这里的类型。
编排器只通过 classify() 得到失败类别，不在调用点匹配字符串。
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

# 拉取层已处理过的 HTTP 状态类错误码，如 E404 / E500
_STATUS_CODE_RE = re.compile(r"^E\d{3}$")


class PkgExtractError(Exception):
    """框架基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str, *, integrity: str | None = None) -> None:
        super().__init__(message)
        self.integrity = integrity
        # 最后一次尝试的数据来源: "digest" / "manifest"，由编排器填写
        self.source: str = ""


class ConfigError(PkgExtractError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class ValidationError(PkgExtractError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"


class SpecError(PkgExtractError):
    """包描述符无法解析或无法定位 tarball"""

    code = "EINVALIDSPEC"


class CacheNotFoundError(PkgExtractError):
    """缓存中不存在该 integrity 对应的内容"""

    code = "ENOENT"


class IntegrityError(PkgExtractError):
    """内容与期望的 integrity 不一致"""

    code = "EINTEGRITY"

    def __init__(
        self, message: str, *, expected: str | None = None, actual: str | None = None,
    ) -> None:
        super().__init__(message, integrity=expected)
        self.expected = expected
        self.actual = actual


class ArchiveDataError(PkgExtractError):
    """压缩流或 tar 数据损坏"""

    code = "Z_DATA_ERROR"


class NetworkError(PkgExtractError):
    """网络拉取失败，code 为 E<状态码> 或 errno 风格名称"""

    def __init__(self, message: str, *, code: str, status: int | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.status = status


class FilesystemError(PkgExtractError):
    """目录创建、删除或写入失败"""

    code = "EFS"

    def __init__(self, message: str, *, path: str = "", code: str = "") -> None:
        super().__init__(message)
        self.path = path
        if code:
            self.code = code


# =========================================================================
# 失败分类
# =========================================================================


class FailureKind(Enum):
    NOT_FOUND = "not_found"
    INTEGRITY_MISMATCH = "integrity_mismatch"
    NETWORK_ERROR = "network_error"
    FILESYSTEM_ERROR = "filesystem_error"
    OTHER = "other"


@dataclass(frozen=True)
class Failure:
    """单次提取尝试的失败结果"""

    kind: FailureKind
    code: str
    integrity: str | None = None


def is_status_code(code: str) -> bool:
    """判断错误码是否为 E+三位数字 的网络状态码"""
    return bool(_STATUS_CODE_RE.match(code or ""))


def classify(exc: BaseException) -> Failure:
    """把协作方抛出的异常映射为 FailureKind"""
    code = getattr(exc, "code", "") or ""
    integrity = getattr(exc, "integrity", None)
    if isinstance(exc, CacheNotFoundError):
        kind = FailureKind.NOT_FOUND
    elif isinstance(exc, (IntegrityError, ArchiveDataError)):
        kind = FailureKind.INTEGRITY_MISMATCH
    elif isinstance(exc, NetworkError):
        kind = FailureKind.NETWORK_ERROR
    elif isinstance(exc, (FilesystemError, OSError)):
        kind = FailureKind.FILESYSTEM_ERROR
    else:
        kind = FailureKind.OTHER
    return Failure(kind=kind, code=str(code), integrity=integrity)
