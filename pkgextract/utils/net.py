"""URL 工具

拉取器只接受 http/https 地址；日志和错误信息中的 URL 需去掉账号口令。
"""

from __future__ import annotations

from urllib.parse import quote, urlsplit, urlunsplit

from pkgextract.core.exceptions import ValidationError

_ALLOWED_SCHEMES = frozenset(("http", "https"))


def is_http_url(value: str) -> bool:
    return urlsplit(value).scheme in _ALLOWED_SCHEMES


def validate_url_scheme(url: str, *, context: str = "") -> None:
    """拒绝 http/https 以外的协议

    Raises:
        ValidationError: 协议不受支持
    """
    scheme = urlsplit(url).scheme
    if scheme not in _ALLOWED_SCHEMES:
        label = f" ({context})" if context else ""
        raise ValidationError(
            f"不允许的 URL 协议 '{scheme}'{label}，仅支持 http/https: {redact_url(url)}"
        )


def redact_url(url: str) -> str:
    """去掉 URL 中的 user:password@ 部分"""
    parts = urlsplit(url)
    if "@" not in parts.netloc:
        return url
    host = parts.netloc.rsplit("@", 1)[1]
    return urlunsplit(parts._replace(netloc=f"***@{host}"))


def join_url(base: str, *segments: str) -> str:
    """拼接 registry 路径，segment 内的 / 保留（@scope/name 形式）"""
    path = "/".join(quote(s, safe="@/") for s in segments)
    return f"{base.rstrip('/')}/{path}"
