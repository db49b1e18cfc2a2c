"""集中配置管理

提供缓存目录、registry 地址等默认值的统一入口。
支持从 YAML 文件加载 + 编程式覆盖。
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field

from pkgextract.core.exceptions import ConfigError
from pkgextract.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "configs/pkgextract.yml"

# 命令行在配置文件未指定缓存目录时使用；库调用不会自动启用缓存
DEFAULT_CLI_CACHE_DIR = "~/.cache/pkgextract"


@dataclass
class Config:
    """全局配置"""

    # 内容寻址缓存根目录，空字符串表示不使用缓存
    cache_dir: str = ""
    registry: str = "https://registry.npmjs.org"
    prefer_online: bool = False
    fetch_timeout: int = 60

    # 自定义扩展 (放不到字段里的配置项)
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_file(cls, path: str = DEFAULT_CONFIG_PATH) -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        data = load_yaml(path)
        if not data:
            return cls()
        known = {f for f in cls.__dataclass_fields__ if f != "extra"}
        matched = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        try:
            cfg = cls(**matched)
        except TypeError as e:
            raise ConfigError(f"配置项无效: {path} - {e}") from e
        if not isinstance(cfg.fetch_timeout, int) or cfg.fetch_timeout <= 0:
            raise ConfigError(f"fetch_timeout 必须为正整数: {cfg.fetch_timeout!r}")
        cfg.extra = extra
        return cfg

    def to_dict(self) -> dict:
        return asdict(self)


# 全局单例，首次 import 时不加载文件；由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str = DEFAULT_CONFIG_PATH) -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.info("配置已加载: %s", path)
    return _current
