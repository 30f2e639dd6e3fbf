"""
Request and response shapes exchanged between the HTTP layer and the
fetch orchestrator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, Optional, Union

from ..caching.classifier import ResourceKey

HTML_CONTENT_TYPE = "text/html; charset=utf-8"
BINARY_CONTENT_TYPE = "application/octet-stream"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"

Body = Union[bytes, AsyncIterator[bytes]]


@dataclass(frozen=True)
class ProxyRequest:
    """Decoded inbound request."""

    method: str
    path: str
    query: Optional[str] = None
    server_url: str = ""

    @property
    def key(self) -> ResourceKey:
        return ResourceKey(self.path, self.query or None)


@dataclass
class ProxyResponse:
    """Outbound status, headers and body (bytes, or a stream for passthrough)."""

    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: Body = b""

    @property
    def is_streaming(self) -> bool:
        return not isinstance(self.body, (bytes, bytearray))

    @classmethod
    def binary(cls, content: bytes) -> "ProxyResponse":
        return cls(200, {"Content-Type": BINARY_CONTENT_TYPE}, content)

    @classmethod
    def html(cls, content: str, *, include_body: bool = True) -> "ProxyResponse":
        return cls(200, {"Content-Type": HTML_CONTENT_TYPE}, content.encode("utf-8") if include_body else b"")
