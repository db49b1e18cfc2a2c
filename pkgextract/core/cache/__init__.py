"""内容寻址缓存

- integrity.py: SRI 解析与流式校验
- store.py: 按 integrity 读写 / 删除缓存内容
"""

from pkgextract.core.cache.integrity import Integrity, VerifyingReader
from pkgextract.core.cache.store import ContentStore, ContentWriter

__all__ = [
    "ContentStore",
    "ContentWriter",
    "Integrity",
    "VerifyingReader",
]
