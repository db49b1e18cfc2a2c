"""pkgextract 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

import os

import click

from pkgextract import __version__
from pkgextract.core.config import DEFAULT_CONFIG_PATH, init_config
from pkgextract.utils.logger import setup_logging


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", default=DEFAULT_CONFIG_PATH, help="配置文件路径")
def main(config: str) -> None:
    """pkgextract - 包 tarball 提取工具（缓存优先，网络回退）"""
    setup_logging(
        level=os.getenv("PKGEXTRACT_LOG_LEVEL", "INFO"),
        json_output=os.getenv("PKGEXTRACT_LOG_JSON", "") == "1",
    )
    init_config(config)


# 注册各领域子命令
from pkgextract.cli.cmd_extract import register as _reg_extract  # noqa: E402
from pkgextract.cli.cmd_cache import register as _reg_cache  # noqa: E402

_reg_extract(main)
_reg_cache(main)
