"""
Fetch orchestration: decides, per request, whether to answer from the local
store, from the upstream registry, or from the store as a fallback after an
upstream failure.

Order of operations for a GET on a cacheable path:

1. directory (in the store, or a trailing slash) -> DirectoryConflict, no fallback
2. fresh entry            -> store bytes
3. otherwise              -> upstream bytes, saved to the store first
4. any failure in 2-3     -> whatever the store has, stale or not

Anything still failing is handled by the error boundary.
"""

from __future__ import annotations

import time
from typing import Callable, Optional

from shared.errors import DirectoryConflict, InvalidResourceKey, UpstreamUnavailable
from shared.logging import get_logger
from shared.metrics import MetricsCollector

from ..adapters.rubygems_client import RubygemsClient, relay_headers
from ..caching.classifier import PathClassifier, ResourceKey, ResourceKind
from ..caching.policy import CachePolicy, Freshness
from ..caching.store import FileStore, group_gems
from .error_boundary import error_boundary
from .models import BINARY_CONTENT_TYPE, TEXT_CONTENT_TYPE, ProxyRequest, ProxyResponse
from .views import INDEX_VIEW, ViewContext, ViewRenderer


class FetchOrchestrator:
    """Request handler for the gem proxy."""

    def __init__(
        self,
        classifier: PathClassifier,
        policy: CachePolicy,
        store: FileStore,
        upstream: RubygemsClient,
        renderer: ViewRenderer,
        metrics: MetricsCollector,
        *,
        clock: Callable[[], float] = time.time,
    ):
        self.classifier = classifier
        self.policy = policy
        self.store = store
        self.upstream = upstream
        self.renderer = renderer
        self.metrics = metrics
        self.clock = clock
        self.logger = get_logger("gem_proxy.orchestrator")

    async def handle(self, request: ProxyRequest) -> ProxyResponse:
        method = request.method.upper()
        self.logger.info("Proxy request", method=method, path=request.path, query=request.query)

        key = request.key
        kind = self.classifier.classify(request.path)
        context = self.view_context(request)

        if method == "DELETE":
            handler = self.purge
        elif method == "HEAD":
            handler = lambda: self._handle_head(key, kind)
        else:
            handler = lambda: self._handle_get(key, kind, context)

        return await error_boundary(
            handler,
            renderer=self.renderer,
            context=context,
            logger=self.logger,
            metrics=self.metrics,
            include_body=method != "HEAD",
        )

    async def purge(self) -> ProxyResponse:
        """Remove every spec index file; clients re-fetch them on next use."""
        removed = self.store.purge_spec_index_files()
        self.metrics.increment_counter("spec_purges_total")
        self.metrics.increment_counter("spec_files_purged_total", amount=removed)
        self.logger.info("Spec indices purged", removed=removed)
        return ProxyResponse(200, {"Content-Type": TEXT_CONTENT_TYPE}, b"")

    def view_context(self, request: ProxyRequest) -> ViewContext:
        return ViewContext(
            request_path=request.path,
            server_url=request.server_url.rstrip("/"),
            upstream_url=self.upstream.base_url,
        )

    async def _handle_head(self, key: ResourceKey, kind: ResourceKind) -> ProxyResponse:
        if self.policy.is_cacheable(kind) and kind is not ResourceKind.ROOT:
            last_modified = self.store.last_modified(key, kind)
            if self.policy.is_fresh(kind, last_modified, self.clock()):
                size = self.store.size(key, kind)
                self.metrics.increment_counter("cache_hits_total", cache_type=kind.value)
                return ProxyResponse(
                    200,
                    {"Content-Type": BINARY_CONTENT_TYPE, "Content-Length": str(size)},
                    b"",
                )

        response = await self.upstream.head(key.target)
        self.logger.info("Upstream HEAD", target=key.target, status_code=response.status_code)
        return ProxyResponse(response.status_code, relay_headers(response), b"")

    async def _handle_get(self, key: ResourceKey, kind: ResourceKind, context: ViewContext) -> ProxyResponse:
        try:
            return await self._serve(key, kind, context)
        except (DirectoryConflict, InvalidResourceKey):
            raise
        except Exception as exc:
            # Timeouts, refused redirects, upstream errors: whatever is on
            # disk is better than nothing. A second failure propagates.
            self.logger.error(
                "Serving from store after failure",
                target=key.target,
                error_type=getattr(exc, "code", exc.__class__.__name__),
                error=str(exc),
            )
            content = self.store.read(key, kind)
            self.metrics.increment_counter("cache_hits_total", cache_type=f"{kind.value}_fallback")
            return ProxyResponse.binary(content)

    async def _serve(self, key: ResourceKey, kind: ResourceKind, context: ViewContext) -> ProxyResponse:
        if kind is ResourceKind.ROOT:
            context.grouped_gems = group_gems(self.store.list_artifacts())
            return ProxyResponse.html(self.renderer.render(INDEX_VIEW, context))

        if not self.policy.is_cacheable(kind):
            return await self._passthrough(key)

        if self.store.is_directory(key, kind):
            raise DirectoryConflict(key.target)

        freshness = self.policy.describe_freshness(kind, self.store.last_modified(key, kind), self.clock())
        if freshness is Freshness.FRESH:
            self.logger.info("Read from cache", target=key.target, kind=kind.value)
            self.metrics.increment_counter("cache_hits_total", cache_type=kind.value)
            return ProxyResponse.binary(self.store.read(key, kind))

        self.logger.info("Read from upstream", target=key.target, kind=kind.value, reason=freshness.value)
        self.metrics.increment_counter("cache_misses_total", cache_type=kind.value, reason=freshness.value)
        content = await self._fetch_origin(key, kind)
        self._save(key, kind, content)
        return ProxyResponse.binary(content)

    async def _passthrough(self, key: ResourceKey) -> ProxyResponse:
        kind = ResourceKind.API_PASSTHROUGH
        try:
            response = await self.upstream.stream(key.target)
        except UpstreamUnavailable:
            self.metrics.increment_counter("origin_fetches_total", cache_type=kind.value, outcome="failure")
            raise
        self.metrics.increment_counter("origin_fetches_total", cache_type=kind.value, outcome="success")

        async def body():
            try:
                async for chunk in response.aiter_bytes():
                    yield chunk
            finally:
                await response.aclose()

        return ProxyResponse(response.status_code, relay_headers(response, keep_length=False), body())

    async def _fetch_origin(self, key: ResourceKey, kind: ResourceKind) -> bytes:
        with self.metrics.time_operation("origin_fetch_duration_seconds", cache_type=kind.value):
            try:
                content = await self.upstream.fetch(key.target)
            except UpstreamUnavailable:
                self.metrics.increment_counter("origin_fetches_total", cache_type=kind.value, outcome="failure")
                raise
        self.metrics.increment_counter("origin_fetches_total", cache_type=kind.value, outcome="success")
        return content

    def _save(self, key: ResourceKey, kind: ResourceKind, content: bytes) -> Optional[str]:
        """Persist a fetched body; a failed write never fails the request."""
        try:
            path = self.store.write(key, kind, content)
        except OSError as exc:
            self.logger.error("Cache write failed", target=key.target, error=str(exc))
            self.metrics.increment_counter("store_writes_total", outcome="failure")
            return None
        self.metrics.increment_counter("store_writes_total", outcome="success")
        self.logger.debug("Cached upstream body", target=key.target, path=str(path), size=len(content))
        return str(path)
