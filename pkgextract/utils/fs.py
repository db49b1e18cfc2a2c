"""目录创建 / 递归删除

两者均为幂等操作，其余 OSError 统一转换为 FilesystemError 向上抛出。
"""

from __future__ import annotations

import errno
import logging
import shutil
from pathlib import Path

from pkgextract.core.exceptions import FilesystemError

logger = logging.getLogger(__name__)


def _errno_code(exc: OSError) -> str:
    return errno.errorcode.get(exc.errno or 0, "EFS")


def make_dirs(path: str | Path) -> Path:
    """递归创建目录，已存在时直接返回"""
    p = Path(path)
    try:
        p.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemError(
            f"创建目录失败: {p} - {e}", path=str(p), code=_errno_code(e),
        ) from e
    return p


def remove_tree(path: str | Path) -> bool:
    """递归删除目录或文件，不存在时视为成功。返回是否实际删除了内容"""
    p = Path(path)
    try:
        if p.is_dir() and not p.is_symlink():
            shutil.rmtree(p)
        else:
            p.unlink()
    except FileNotFoundError:
        return False
    except OSError as e:
        raise FilesystemError(
            f"删除失败: {p} - {e}", path=str(p), code=_errno_code(e),
        ) from e
    logger.debug("已删除: %s", p)
    return True
