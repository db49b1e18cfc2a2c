"""CLI - 包提取命令"""

from __future__ import annotations

from typing import Any

import click

from pkgextract.core.config import DEFAULT_CLI_CACHE_DIR, get_config
from pkgextract.core.exceptions import PkgExtractError


def register(group: click.Group) -> None:
    group.add_command(extract_cmd)


@click.command(name="extract")
@click.argument("spec")
@click.argument("dest")
@click.option("--integrity", default=None, help="期望的 SRI 摘要，如 sha512-...")
@click.option("--cache", default=None, help="缓存目录（覆盖配置文件）")
@click.option("--no-cache", is_flag=True, help="不使用缓存")
@click.option("--prefer-online", is_flag=True, help="跳过按摘要读取缓存")
@click.option("--registry", default=None, help="registry 地址（覆盖配置文件）")
@click.option("--where", default=".", help="本地路径描述符的解析基准目录")
def extract_cmd(
    spec: str, dest: str, integrity: str | None, cache: str | None,
    no_cache: bool, prefer_online: bool, registry: str | None, where: str,
) -> None:
    """把 SPEC 对应的包解压到 DEST"""
    from pkgextract.core.extract import extract

    opts: dict[str, Any] = {"integrity": integrity, "where": where}
    if no_cache:
        opts["cache"] = None
    else:
        opts["cache"] = cache or get_config().cache_dir or DEFAULT_CLI_CACHE_DIR
    if prefer_online:
        opts["prefer_online"] = True
    if registry:
        opts["registry"] = registry

    try:
        extract(spec, dest, opts)
    except PkgExtractError as e:
        source = f" [{e.source}]" if e.source else ""
        raise click.ClickException(f"{e.code}{source}: {e}") from e
    click.echo(f"已提取: {spec} -> {dest}")
