from pkgextract.core.fetch.tarball import CachingReader, TarballFetcher

__all__ = ["CachingReader", "TarballFetcher"]
