"""包描述符解析

支持三种形式:
  - registry:  name、name@1.2.3、@scope/name@1.2.3
  - remote:    https://host/path/pkg-1.2.3.tgz
  - file:      ./pkg.tgz、/abs/pkg.tar.gz、file:../pkg.tgz （相对 where 解析）

registry 形式只接受精确版本，版本范围和 dist-tag 解析不在本工具范围内。
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from pkgextract.core.exceptions import SpecError
from pkgextract.utils.net import is_http_url, join_url

_NAME_RE = re.compile(r"^(?:@[a-z0-9~][a-z0-9._~-]*/)?[a-z0-9~][a-z0-9._~-]*$")
_EXACT_VERSION_RE = re.compile(
    r"^v?\d+\.\d+\.\d+(?:-[0-9A-Za-z.-]+)?(?:\+[0-9A-Za-z.-]+)?$"
)
_TARBALL_SUFFIXES = (".tgz", ".tar.gz", ".tar")
_PATH_PREFIXES = ("./", "../", "/", "~/", ".\\", "..\\")


@dataclass(frozen=True)
class PackageSpec:
    """已解析的包描述符"""

    raw: str
    type: str  # "registry", "remote", "file"
    name: str = ""
    version: str = ""
    fetch_spec: str = ""  # remote: URL；file: 绝对路径

    @classmethod
    def parse(cls, raw: str, where: str | Path = ".") -> PackageSpec:
        spec = (raw or "").strip()
        if not spec:
            raise SpecError("包描述符为空")

        if is_http_url(spec):
            return cls(raw=spec, type="remote", fetch_spec=spec)

        if spec.startswith("file:"):
            return cls._from_path(spec, spec[len("file:"):], where)
        if spec.startswith(_PATH_PREFIXES) or spec.endswith(_TARBALL_SUFFIXES):
            return cls._from_path(spec, spec, where)

        # @scope/name@version 的第一个 @ 属于 scope
        at = spec.find("@", 1)
        name, version = (spec[:at], spec[at + 1:]) if at > 0 else (spec, "")
        if not _NAME_RE.match(name):
            raise SpecError(f"无效的包名: {name!r} (来自 {raw!r})")
        return cls(raw=spec, type="registry", name=name, version=version)

    @classmethod
    def _from_path(cls, raw: str, path: str, where: str | Path) -> PackageSpec:
        if not path:
            raise SpecError(f"file 描述符缺少路径: {raw!r}")
        resolved = (Path(where).expanduser() / Path(path).expanduser()).resolve()
        return cls(raw=raw, type="file", name=resolved.name, fetch_spec=str(resolved))

    @property
    def is_exact(self) -> bool:
        return bool(_EXACT_VERSION_RE.match(self.version))

    def tarball_url(self, registry: str) -> str:
        """计算 registry 上的 tarball 地址: {registry}/{name}/-/{basename}-{version}.tgz"""
        if self.type != "registry":
            raise SpecError(f"{self.raw} 不是 registry 描述符")
        if not self.is_exact:
            raise SpecError(
                f"{self.raw} 需要精确版本号，实际为 {self.version or '<未指定>'}"
            )
        version = self.version.removeprefix("v")
        basename = self.name.rsplit("/", 1)[-1]
        return join_url(registry, self.name, "-", f"{basename}-{version}.tgz")

    def __str__(self) -> str:
        if self.type == "registry" and self.version:
            return f"{self.name}@{self.version}"
        return self.name or self.raw
