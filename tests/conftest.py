"""测试共享 fixture - tarball 构造 + 配置隔离"""

from __future__ import annotations

import io
import tarfile

import pytest

from pkgextract.core import config as cfgmod


def build_tarball(
    files: dict[str, bytes], prefix: str = "package", mode: str = "w:gz",
) -> bytes:
    """构造内存中的 tarball，每个文件放在 prefix/ 下"""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode=mode) as tf:
        for name, data in files.items():
            info = tarfile.TarInfo(f"{prefix}/{name}" if prefix else name)
            info.size = len(data)
            info.mode = 0o644
            tf.addfile(info, io.BytesIO(data))
    return buf.getvalue()


@pytest.fixture()
def make_tarball():
    """tarball 工厂 fixture

    用法:
        def test_xxx(make_tarball):
            data = make_tarball({"index.js": b"module.exports = 1"})
    """
    return build_tarball


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch: pytest.MonkeyPatch) -> None:
    """每个测试从未初始化的全局配置开始"""
    monkeypatch.setattr(cfgmod, "_current", None)
