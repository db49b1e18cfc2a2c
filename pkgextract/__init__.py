"""pkgextract - 包 tarball 提取器（内容寻址缓存优先 + 网络回退）"""

__version__ = "0.1.0"
