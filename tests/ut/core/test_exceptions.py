"""失败分类测试"""

from __future__ import annotations

import pytest

from pkgextract.core.exceptions import (
    ArchiveDataError,
    CacheNotFoundError,
    FailureKind,
    FilesystemError,
    IntegrityError,
    NetworkError,
    SpecError,
    classify,
    is_status_code,
)


class TestClassify:
    @pytest.mark.parametrize("exc,kind,code", [
        (CacheNotFoundError("x"), FailureKind.NOT_FOUND, "ENOENT"),
        (IntegrityError("x", expected="sha512-A"), FailureKind.INTEGRITY_MISMATCH, "EINTEGRITY"),
        (ArchiveDataError("x"), FailureKind.INTEGRITY_MISMATCH, "Z_DATA_ERROR"),
        (NetworkError("x", code="E404", status=404), FailureKind.NETWORK_ERROR, "E404"),
        (FilesystemError("x", code="ENOSPC"), FailureKind.FILESYSTEM_ERROR, "ENOSPC"),
        (PermissionError("x"), FailureKind.FILESYSTEM_ERROR, ""),
        (SpecError("x"), FailureKind.OTHER, "EINVALIDSPEC"),
        (RuntimeError("x"), FailureKind.OTHER, ""),
    ])
    def test_kinds(self, exc: Exception, kind: FailureKind, code: str) -> None:
        failure = classify(exc)
        assert failure.kind is kind
        assert failure.code == code

    def test_failed_digest_carried(self) -> None:
        failure = classify(IntegrityError("x", expected="sha512-B", actual="sha512-C"))
        assert failure.integrity == "sha512-B"

    def test_filesystem_default_code(self) -> None:
        assert FilesystemError("x").code == "EFS"


class TestStatusCode:
    @pytest.mark.parametrize("code,expected", [
        ("E404", True),
        ("E500", True),
        ("E4040", False),
        ("ECONNRESET", False),
        ("EINTEGRITY", False),
        ("", False),
    ])
    def test_is_status_code(self, code: str, expected: bool) -> None:
        assert is_status_code(code) is expected
