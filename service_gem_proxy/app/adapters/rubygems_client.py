"""
Async HTTP client for the upstream gem registry.
"""

from __future__ import annotations

from typing import Optional

import httpx

from shared.errors import UpstreamUnavailable
from shared.logging import get_logger

# Hop-by-hop and transfer-level headers that must not be relayed as-is.
EXCLUDED_RESPONSE_HEADERS = frozenset({
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
    "content-encoding",
})


def relay_headers(response: httpx.Response, *, keep_length: bool = True) -> dict:
    """Upstream headers minus the ones a proxy must not forward."""
    headers = {}
    for name, value in response.headers.items():
        lowered = name.lower()
        if lowered in EXCLUDED_RESPONSE_HEADERS:
            continue
        if lowered == "content-length" and not keep_length:
            continue
        headers[name] = value
    return headers


class RubygemsClient:
    """Thin async client for the registry origin.

    No retries: a single failed attempt is reported as UpstreamUnavailable
    and the caller decides what to fall back to. Redirects are followed by
    hand so that an https origin can never be redirected to plain http.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 5.0,
        max_redirects: int = 5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.max_redirects = max_redirects
        self.logger = get_logger("gem_proxy.rubygems_client")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            follow_redirects=False,
            transport=transport,
            headers={"User-Agent": "gem-proxy/1.0"},
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    def url_for(self, target: str) -> str:
        return f"{self.base_url}{target}"

    async def fetch(self, target: str) -> bytes:
        """GET ``target`` and return the complete body.

        The body is read in full before returning, so callers never see a
        partial download.
        """
        response = await self._send("GET", target)
        self._raise_for_status(target, response)
        return response.content

    async def stream(self, target: str) -> httpx.Response:
        """GET ``target`` without reading the body.

        The caller owns the returned response and must ``aclose()`` it.
        """
        response = await self._send("GET", target, stream=True)
        if not response.is_success:
            await response.aclose()
            self._raise_for_status(target, response)
        return response

    async def head(self, target: str) -> httpx.Response:
        """HEAD ``target``; any status code is returned to the caller."""
        return await self._send("HEAD", target)

    async def _send(self, method: str, target: str, *, stream: bool = False) -> httpx.Response:
        try:
            request = self._client.build_request(method, target)
            for _ in range(self.max_redirects + 1):
                response = await self._client.send(request, stream=stream)
                if not response.is_redirect or response.next_request is None:
                    return response

                next_request = response.next_request
                await response.aclose()
                if request.url.scheme == "https" and next_request.url.scheme != "https":
                    self.logger.warning(
                        "Refusing redirect downgrade",
                        target=target,
                        location=str(next_request.url),
                    )
                    raise UpstreamUnavailable(
                        target,
                        "redirect downgrades to plain http",
                        details={"location": str(next_request.url)},
                    )
                self.logger.debug("Following redirect", target=target, location=str(next_request.url))
                request = next_request
        except httpx.HTTPError as exc:
            self.logger.error("Upstream request failed", method=method, target=target, error=str(exc))
            raise UpstreamUnavailable(
                target,
                str(exc) or exc.__class__.__name__,
                details={"error_type": exc.__class__.__name__},
            ) from exc

        raise UpstreamUnavailable(target, "too many redirects", details={"max_redirects": self.max_redirects})

    def _raise_for_status(self, target: str, response: httpx.Response) -> None:
        if response.is_success:
            return
        self.logger.info("Upstream returned failure status", target=target, status_code=response.status_code)
        raise UpstreamUnavailable(
            target,
            f"Unexpected status {response.status_code}",
            details={"status_code": response.status_code},
        )
