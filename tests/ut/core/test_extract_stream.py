"""tarball 流式解压测试"""

from __future__ import annotations

import io
import random
import tarfile
from pathlib import Path

import pytest

from pkgextract.core.cache.integrity import Integrity, VerifyingReader
from pkgextract.core.exceptions import ArchiveDataError, IntegrityError
from pkgextract.core.extract_stream import extract_stream
from pkgextract.core.models import ExtractOptions


class TestExtractStream:
    def test_strips_leading_directory(self, tmp_path: Path, make_tarball) -> None:
        data = make_tarball({
            "package.json": b'{"name": "demo"}',
            "lib/index.js": b"module.exports = 1",
        })
        extract_stream(io.BytesIO(data), tmp_path)

        assert (tmp_path / "package.json").read_bytes() == b'{"name": "demo"}'
        assert (tmp_path / "lib" / "index.js").read_bytes() == b"module.exports = 1"
        assert not (tmp_path / "package").exists()

    @pytest.mark.parametrize("mode", ["w:gz", "w:bz2", "w:xz", "w"])
    def test_compression_autodetect(self, tmp_path: Path, make_tarball, mode: str) -> None:
        data = make_tarball({"a.txt": b"A"}, mode=mode)
        extract_stream(io.BytesIO(data), tmp_path)
        assert (tmp_path / "a.txt").read_text() == "A"

    def test_unsafe_members_skipped(self, tmp_path: Path) -> None:
        buf = io.BytesIO()
        with tarfile.open(fileobj=buf, mode="w:gz") as tf:
            for name in ("package/ok.txt", "package/../../escape.txt"):
                info = tarfile.TarInfo(name)
                info.size = 2
                tf.addfile(info, io.BytesIO(b"hi"))
        dest = tmp_path / "dest"
        dest.mkdir()

        extract_stream(io.BytesIO(buf.getvalue()), dest)

        assert (dest / "ok.txt").exists()
        assert not (tmp_path / "escape.txt").exists()

    def test_truncated_data_raises_archive_error(self, tmp_path: Path, make_tarball) -> None:
        data = make_tarball({"a.bin": random.Random(0).randbytes(8192)})
        truncated = data[: len(data) // 2]
        opts = ExtractOptions(integrity="sha512-ABC")

        with pytest.raises(ArchiveDataError) as exc_info:
            extract_stream(io.BytesIO(truncated), tmp_path, opts)
        assert exc_info.value.code == "Z_DATA_ERROR"
        assert exc_info.value.integrity == "sha512-ABC"

    def test_garbage_raises_archive_error(self, tmp_path: Path) -> None:
        with pytest.raises(ArchiveDataError):
            extract_stream(io.BytesIO(b"this is not a tarball at all" * 40), tmp_path)

    def test_source_is_drained_for_verification(self, tmp_path: Path, make_tarball) -> None:
        """tar 结束标记之后的字节也要读完，上游的摘要校验才能执行"""
        data = make_tarball({"a.txt": b"A"}, mode="w")
        wrong = Integrity.from_bytes(b"different")
        reader = VerifyingReader(io.BytesIO(data), expected=wrong)

        with pytest.raises(IntegrityError):
            extract_stream(reader, tmp_path)
        assert reader.size == len(data)
