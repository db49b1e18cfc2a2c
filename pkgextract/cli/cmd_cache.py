"""CLI - 缓存管理命令"""

from __future__ import annotations

import click

from pkgextract.core.cache.store import ContentStore
from pkgextract.core.config import DEFAULT_CLI_CACHE_DIR, get_config
from pkgextract.core.exceptions import PkgExtractError


def register(group: click.Group) -> None:
    group.add_command(cache)


def _store(cache_dir: str | None) -> ContentStore:
    return ContentStore(cache_dir or get_config().cache_dir or DEFAULT_CLI_CACHE_DIR)


@click.group()
def cache() -> None:
    """内容寻址缓存管理"""


@cache.command(name="add")
@click.argument("tarball", type=click.Path(exists=True, dir_okay=False))
@click.option("--cache", "cache_dir", default=None, help="缓存目录")
def add(tarball: str, cache_dir: str | None) -> None:
    """把本地 tarball 加入缓存，输出其 integrity"""
    try:
        sri = _store(cache_dir).put_file(tarball)
    except PkgExtractError as e:
        raise click.ClickException(str(e)) from e
    click.echo(str(sri))


@cache.command(name="rm")
@click.argument("integrity")
@click.option("--cache", "cache_dir", default=None, help="缓存目录")
def rm(integrity: str, cache_dir: str | None) -> None:
    """删除指定 integrity 的缓存内容"""
    try:
        removed = _store(cache_dir).rm_content(integrity)
    except PkgExtractError as e:
        raise click.ClickException(str(e)) from e
    click.echo("已删除" if removed else "缓存中不存在")


@cache.command(name="verify")
@click.argument("integrity")
@click.option("--cache", "cache_dir", default=None, help="缓存目录")
def verify(integrity: str, cache_dir: str | None) -> None:
    """校验指定 integrity 的缓存内容是否完好"""
    try:
        ok = _store(cache_dir).verify(integrity)
    except PkgExtractError as e:
        raise click.ClickException(str(e)) from e
    if not ok:
        raise click.ClickException(f"缓存内容已损坏: {integrity}")
    click.echo("校验通过")
