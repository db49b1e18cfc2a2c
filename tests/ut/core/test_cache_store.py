"""内容寻址缓存测试"""

from __future__ import annotations

from pathlib import Path

import pytest

from pkgextract.core.cache.integrity import Integrity
from pkgextract.core.cache.store import CONTENT_DIR, ContentStore
from pkgextract.core.exceptions import CacheNotFoundError, IntegrityError


@pytest.fixture()
def store(tmp_path: Path) -> ContentStore:
    return ContentStore(tmp_path / "cache")


class TestContentStore:
    def test_put_and_read(self, store: ContentStore) -> None:
        sri = store.put_bytes(b"tarball")
        assert store.has(sri)
        with store.open_read(sri) as reader:
            assert reader.read() == b"tarball"

    def test_content_layout(self, store: ContentStore) -> None:
        sri = store.put_bytes(b"layout")
        hexd = sri.hexdigest()
        expected = store.cache_dir / CONTENT_DIR / "sha512" / hexd[:2] / hexd[2:4] / hexd[4:]
        assert store.content_path(sri) == expected
        assert expected.read_bytes() == b"layout"

    def test_missing_entry_raises_not_found(self, store: ContentStore) -> None:
        sri = Integrity.from_bytes(b"absent")
        with pytest.raises(CacheNotFoundError) as exc_info:
            store.open_read(sri)
        assert exc_info.value.code == "ENOENT"
        assert exc_info.value.integrity == str(sri)

    def test_tampered_entry_raises_integrity_error(self, store: ContentStore) -> None:
        sri = store.put_bytes(b"good data")
        store.content_path(sri).write_bytes(b"evil data")

        reader = store.open_read(sri)
        with pytest.raises(IntegrityError):
            while reader.read(4):
                pass
        reader.close()
        assert store.verify(sri) is False

    def test_verify_intact(self, store: ContentStore) -> None:
        sri = store.put_bytes(b"intact")
        assert store.verify(sri) is True

    def test_put_with_wrong_expected_discards(self, store: ContentStore) -> None:
        wrong = Integrity.from_bytes(b"something else")
        with pytest.raises(IntegrityError):
            store.put_bytes(b"actual", integrity=wrong)
        assert not store.has(wrong)
        assert not store.has(Integrity.from_bytes(b"actual"))
        assert list((store.cache_dir / "tmp").iterdir()) == []

    def test_put_file(self, store: ContentStore, tmp_path: Path) -> None:
        src = tmp_path / "pkg.tgz"
        src.write_bytes(b"x" * 200_000)
        sri = store.put_file(src)
        assert sri == Integrity.from_bytes(b"x" * 200_000)

    def test_rm_content_idempotent(self, store: ContentStore) -> None:
        sri = store.put_bytes(b"to delete")
        assert store.rm_content(sri) is True
        assert store.rm_content(sri) is False
        assert not store.has(sri)

    def test_abort_leaves_no_entry(self, store: ContentStore) -> None:
        w = store.writer()
        w.write(b"partial")
        w.abort()
        assert not store.has(Integrity.from_bytes(b"partial"))
