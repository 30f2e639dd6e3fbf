"""
Gem proxy service: a caching reverse proxy in front of rubygems.org.
"""

import os
import time
from typing import Callable, Dict, Optional

import httpx
from fastapi import Request, Response
from fastapi.responses import StreamingResponse

from shared.base_service import BaseService
from shared.config import ServiceConfig

from .adapters.rubygems_client import RubygemsClient
from .caching.classifier import PathClassifier
from .caching.policy import CachePolicy
from .caching.store import FileStore
from .domain.fetch_orchestrator import FetchOrchestrator
from .domain.models import ProxyRequest, ProxyResponse
from .domain.views import ViewRenderer

SERVICE_NAME = "gem_proxy"
DEFAULT_PORT = 9292


class GemProxyService(BaseService):
    """Gem proxy service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(SERVICE_NAME, DEFAULT_PORT, config)

        self.upstream = RubygemsClient(
            self.config.upstream_url,
            timeout=self.config.upstream_timeout,
            max_redirects=self.config.max_redirects,
            transport=transport,
        )
        self.store = FileStore(self.config.cache_dir, self.config.specs_dir)
        self.renderer = ViewRenderer()
        self.orchestrator = FetchOrchestrator(
            PathClassifier(self.config.api_prefix),
            CachePolicy(self.config.specs_max_age_seconds),
            self.store,
            self.upstream,
            self.renderer,
            self.metrics,
            clock=clock,
        )

        self.logger.info(
            "Gem proxy configured",
            upstream_url=self.upstream.base_url,
            cache_dir=str(self.store.cache_dir),
            specs_dir=str(self.store.specs_dir),
        )

        @self.app.on_event("shutdown")
        async def _shutdown():
            await self.upstream.close()

        self._setup_proxy_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.gem_proxy_service = self

    def _setup_proxy_routes(self):
        """Set up the catch-all proxy route."""

        @self.app.api_route("/{path:path}", methods=["GET", "HEAD", "DELETE"], include_in_schema=False)
        async def proxy(request: Request, path: str):
            """Serve any registry path from the store or the upstream registry."""
            proxy_request = ProxyRequest(
                method=request.method,
                path=request.url.path,
                query=request.url.query or None,
                server_url=str(request.base_url),
            )
            result = await self.orchestrator.handle(proxy_request)
            return self._to_response(result)

    def _to_response(self, result: ProxyResponse) -> Response:
        if result.is_streaming:
            return StreamingResponse(result.body, status_code=result.status, headers=result.headers)
        return Response(content=result.body, status_code=result.status, headers=result.headers)

    async def _check_dependencies(self) -> Dict[str, str]:
        """Report whether the store roots are usable."""
        dependencies = {}
        for name, root in (("cache_dir", self.store.cache_dir), ("specs_dir", self.store.specs_dir)):
            if not root.exists():
                dependencies[name] = "missing"
            elif os.access(root, os.W_OK):
                dependencies[name] = "ok"
            else:
                dependencies[name] = "read_only"
        return dependencies


def create_app():
    """Create FastAPI application."""
    service = GemProxyService()
    return service.app


def run():
    """Console entry point."""
    service = GemProxyService()
    service.run()


if __name__ == "__main__":
    run()
