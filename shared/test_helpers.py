"""
Test helper functions and factory methods for the Gem Proxy.
"""

import gzip
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import httpx

from shared.config import ServiceConfig, get_config


class FakeRegistry:
    """In-process stand-in for rubygems.org, served through httpx.MockTransport.

    Requests are answered from ``files`` (keyed by path plus query) and
    recorded in ``calls``. Setting ``error`` makes every request raise it.
    """

    def __init__(self, files: Optional[Dict[str, bytes]] = None):
        self.files: Dict[str, bytes] = dict(files or {})
        self.calls: List[Tuple[str, str]] = []
        self.error: Optional[Exception] = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        target = request.url.raw_path.decode("ascii")
        self.calls.append((request.method, target))
        if self.error is not None:
            raise self.error
        if target not in self.files:
            return httpx.Response(404, content=b"Not Found")

        body = self.files[target]
        headers = {"Content-Type": "application/octet-stream", "Content-Length": str(len(body))}
        if request.method == "HEAD":
            return httpx.Response(200, headers=headers)
        return httpx.Response(200, headers=headers, content=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def count(self, target: str, method: str = "GET") -> int:
        """Number of requests seen for ``target``."""
        return sum(1 for seen_method, seen in self.calls if seen_method == method and seen == target)

    def fail_with_connect_error(self):
        self.error = httpx.ConnectError("connection refused")

    def fail_with_timeout(self):
        self.error = httpx.ReadTimeout("read timed out")

    def recover(self):
        self.error = None


class GemDataFactory:
    """Factory for registry payloads."""

    @staticmethod
    def gem_archive(name: str, version: str) -> bytes:
        """Opaque stand-in for a .gem archive."""
        return f"GEM:{name}:{version}".encode("utf-8") * 16

    @staticmethod
    def spec_index(entries: List[Tuple[str, str]]) -> bytes:
        """Gzipped stand-in for a specs.4.8.gz snapshot."""
        lines = "\n".join(f"{name} {version} ruby" for name, version in entries)
        return gzip.compress(lines.encode("utf-8"), mtime=0)

    @staticmethod
    def registry_files() -> Dict[str, bytes]:
        """A small registry with two gems, the spec indices and an API document."""
        entries = [("rails", "7.1.0"), ("rack", "3.0.8")]
        files = {
            f"/gems/{name}-{version}.gem": GemDataFactory.gem_archive(name, version)
            for name, version in entries
        }
        files["/specs.4.8.gz"] = GemDataFactory.spec_index(entries)
        files["/latest_specs.4.8.gz"] = GemDataFactory.spec_index(entries)
        files["/api/v1/gems/rails.json"] = b'{"name": "rails", "version": "7.1.0"}'
        return files


def mock_environment(root: Union[str, Path]) -> Dict[str, str]:
    """Environment variables for a gem proxy rooted at ``root``."""
    root = Path(root)
    return {
        "ACCESS_ENV": "test",
        "ACCESS_LOG_LEVEL": "debug",
        "ACCESS_UPSTREAM_URL": "https://rubygems.org",
        "ACCESS_CACHE_DIR": str(root / "public"),
        "ACCESS_SPECS_DIR": str(root / "specs"),
    }


def build_test_config(root: Union[str, Path], **overrides) -> ServiceConfig:
    """Service configuration with both store roots under ``root``."""
    root = Path(root)
    settings = {
        "env": "test",
        "cache_dir": str(root / "public"),
        "specs_dir": str(root / "specs"),
        "upstream_url": "https://rubygems.org",
    }
    settings.update(overrides)
    return get_config("gem_proxy", 9292, **settings)
