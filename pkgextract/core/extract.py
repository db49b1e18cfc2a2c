"""包提取编排器

决定从哪里读取 tarball 并解压到目标目录，失败时自动清理并回退 / 重试。

策略:
  1. integrity + cache 都已配置且未设置 prefer_online → 先按摘要从缓存提取
       - 缓存不存在       → 改用 manifest 提取一次（不重试）
       - 缓存数据损坏     → 告警，删除目标目录和该缓存条目，再用 manifest 提取一次
       - 其他错误         → 直接抛出
  2. 否则按 manifest 提取，最多重试 1 次:
       - 仅在配置了缓存、且错误码不是 E+三位数字（拉取层已处理的 HTTP 状态）时重试
       - 描述符、integrity 格式错误等无法归类的失败不重试
       - 重试前删除目标目录和失败内容对应的缓存条目
       - 重试只走 manifest，不会回头检查缓存

用法:
    from pkgextract.core.extract import extract

    extract("left-pad@1.3.0", "node_modules/left-pad", {
        "integrity": "sha512-...",
        "cache": "~/.cache/pkgextract",
    })
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from contextlib import closing
from functools import partial
from pathlib import Path
from typing import Any, BinaryIO, Callable

from tenacity import RetryCallState, Retrying, retry_if_exception, stop_after_attempt

from pkgextract.core.cache.store import ContentStore
from pkgextract.core.exceptions import FailureKind, PkgExtractError, classify, is_status_code
from pkgextract.core.extract_stream import extract_stream
from pkgextract.core.fetch.tarball import TarballFetcher
from pkgextract.core.models import ExtractionRequest, ExtractOptions, check_options
from pkgextract.core.pkgspec import PackageSpec
from pkgextract.utils.fs import make_dirs, remove_tree

logger = logging.getLogger(__name__)

# manifest 提取的重试次数；按摘要提取失败时改走 manifest，不计入重试
MANIFEST_RETRIES = 1

# 解压策略：读取 source 并写入 dest
Sink = Callable[[BinaryIO, Path, ExtractOptions], None]
StoreFactory = Callable[[Any], ContentStore]


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def _is_retryable(exc: BaseException, opts: ExtractOptions) -> bool:
    """只在有缓存时重试，且不重试拉取层已给出最终结论的 HTTP 状态错误

    无法归类的失败（描述符、integrity 格式错误）不重试。
    """
    if not isinstance(exc, PkgExtractError) or classify(exc).kind is FailureKind.OTHER:
        return False
    return bool(opts.cache) and not is_status_code(exc.code)


class Extractor:
    """包提取编排器

    通过构造参数注入拉取器、解压器和缓存工厂，默认使用
    TarballFetcher / extract_stream / ContentStore，测试时可替换为 mock。
    """

    def __init__(
        self,
        fetcher: TarballFetcher | None = None,
        sink: Sink | None = None,
        store_factory: StoreFactory | None = None,
    ) -> None:
        self.fetcher = fetcher or TarballFetcher()
        self._sink = sink or extract_stream
        self._store_factory = store_factory or ContentStore

    def extract(
        self,
        spec: str | PackageSpec,
        dest: str | Path,
        opts: ExtractOptions | dict[str, Any] | None = None,
    ) -> None:
        """把 spec 对应的包解压到 dest

        失败时抛出最后一次尝试的异常，其 source 属性为 "digest" 或 "manifest"。
        """
        opts = check_options(opts)
        if not isinstance(spec, PackageSpec):
            spec = PackageSpec.parse(spec, opts.where)
        request = ExtractionRequest(spec=spec, dest=Path(dest), options=opts)
        start = time.monotonic()
        log = opts.logger

        if not opts.use_digest:
            log.debug("未提供 tarball hash，按 manifest 提取 %s", spec)
            self._extract_with_retry(request, start)
            return

        log.debug("按 hash 尝试提取 %s: %s", spec, opts.integrity)
        try:
            self.extract_by_digest(request, start)
            return
        except PkgExtractError as exc:
            failure = classify(exc)
            if failure.kind is FailureKind.NOT_FOUND:
                log.debug("缓存中没有 %s 的数据，改用 manifest 提取", opts.integrity)
            elif failure.kind is FailureKind.INTEGRITY_MISMATCH:
                log.warning(
                    "%s (%s) 的缓存数据疑似损坏，刷新缓存", spec, opts.integrity,
                    extra={"spec": spec, "integrity": opts.integrity, "source": "digest"},
                )
                self.clean_up(request.dest, opts.cache, opts.integrity)
            else:
                raise
        self.extract_by_manifest(request, start)

    # ------------------------------------------------------------------
    # manifest 重试
    # ------------------------------------------------------------------

    def _extract_with_retry(self, request: ExtractionRequest, start: float) -> None:
        opts = request.options
        retrying = Retrying(
            stop=stop_after_attempt(MANIFEST_RETRIES + 1),
            retry=retry_if_exception(lambda e: _is_retryable(e, opts)),
            before_sleep=partial(self._before_retry, request),
            reraise=True,
        )
        retrying(self.extract_by_manifest, request, start)

    def _before_retry(self, request: ExtractionRequest, state: RetryCallState) -> None:
        """重试前清理目标目录和失败内容对应的缓存条目"""
        opts = request.options
        exc = state.outcome.exception() if state.outcome else None
        failure = classify(exc) if exc is not None else None
        if failure and failure.kind is FailureKind.INTEGRITY_MISMATCH:
            integrity = failure.integrity or opts.integrity
            opts.logger.warning(
                "%s (%s) 的 tarball 数据疑似损坏，再试一次", request.spec, integrity,
                extra={"spec": request.spec, "integrity": integrity, "source": "manifest"},
            )
        opts.logger.debug(
            "第 %d 次 manifest 提取失败 (%s)，清理后重试",
            state.attempt_number, failure.code if failure else "",
        )
        self.clean_up(request.dest, opts.cache, failure.integrity if failure else None)

    # ------------------------------------------------------------------
    # 两种数据来源
    # ------------------------------------------------------------------

    def extract_by_digest(self, request: ExtractionRequest, start: float) -> None:
        """从缓存按 integrity 读取并解压"""
        opts = request.options
        store = self._store_factory(opts.cache)
        self._pipe(partial(store.open_read, opts.integrity), request, "digest")
        opts.logger.debug(
            "%s 已按内容地址提取到 %s，耗时 %dms",
            request.spec, request.dest, _elapsed_ms(start),
        )

    def extract_by_manifest(self, request: ExtractionRequest, start: float) -> None:
        """通过拉取器获取 tarball 并解压"""
        opts = request.options
        self._pipe(partial(self.fetcher.tarball, request.spec, opts), request, "manifest")
        opts.logger.debug("%s 提取完成，耗时 %dms", request.spec, _elapsed_ms(start))

    def _pipe(
        self,
        open_source: Callable[[], BinaryIO],
        request: ExtractionRequest,
        source_name: str,
    ) -> None:
        try:
            make_dirs(request.dest)
            with closing(open_source()) as source:
                self._sink(source, request.dest, request.options)
        except PkgExtractError as exc:
            exc.source = source_name
            if exc.integrity is None and classify(exc).kind is FailureKind.INTEGRITY_MISMATCH:
                exc.integrity = request.options.integrity
            raise

    # ------------------------------------------------------------------
    # 清理
    # ------------------------------------------------------------------

    def clean_up(
        self, dest: str | Path, cache: Any, integrity: str | None,
    ) -> None:
        """并发删除目标目录和缓存条目，两者都结束后返回，任一失败则抛出

        两项删除均容忍目标已不存在；integrity 未知时只删除目标目录。
        """
        tasks: list[Callable[[], bool]] = [partial(remove_tree, dest)]
        if cache and integrity:
            store = self._store_factory(cache)
            tasks.append(partial(store.rm_content, integrity))

        with ThreadPoolExecutor(max_workers=len(tasks)) as executor:
            futures = [executor.submit(t) for t in tasks]
        for future in futures:
            future.result()
        logger.debug("已清理 %s (integrity=%s)", dest, integrity)


def extract(
    spec: str | PackageSpec,
    dest: str | Path,
    opts: ExtractOptions | dict[str, Any] | None = None,
) -> None:
    """使用默认协作方提取包，参见 Extractor.extract"""
    Extractor().extract(spec, dest, opts)
