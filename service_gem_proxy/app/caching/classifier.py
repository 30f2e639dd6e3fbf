"""
Request path classification for the gem proxy.

Every inbound path falls into exactly one bucket:

- ROOT: the human-facing index page (``/``)
- API_PASSTHROUGH: anything under the registry API prefix, proxied live
- SPEC_INDEX: the periodically regenerated ``specs.*`` index snapshots
- ARTIFACT: everything else (gems, gemspecs), immutable once fetched
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

DEFAULT_API_PREFIX = "/api"

# specs.4.8.gz, latest_specs.4.8.gz, prerelease_specs.4.8.gz
SPEC_INDEX_NAME = re.compile(r"^(?:latest_|prerelease_)?specs\.")


class ResourceKind(str, Enum):
    """Category of a requested resource."""

    ROOT = "root"
    SPEC_INDEX = "spec_index"
    ARTIFACT = "artifact"
    API_PASSTHROUGH = "api_passthrough"


@dataclass(frozen=True)
class ResourceKey:
    """Canonical identity of a resource: request path plus query string."""

    path: str
    query: Optional[str] = None

    @property
    def target(self) -> str:
        """Path and query joined the way they are sent upstream and stored."""
        if self.query:
            return f"{self.path}?{self.query}"
        return self.path


def basename(path: str) -> str:
    """Final segment of a request path (empty for ``/`` or ``/gems/``)."""
    return path.rsplit("/", 1)[-1]


def is_spec_index_name(name: str) -> bool:
    """True when a file name follows the spec index naming pattern."""
    return bool(SPEC_INDEX_NAME.match(name))


class PathClassifier:
    """Pure classifier from request path to ResourceKind."""

    def __init__(self, api_prefix: str = DEFAULT_API_PREFIX):
        self.api_prefix = "/" + api_prefix.strip("/")

    def is_api_path(self, path: str) -> bool:
        return path == self.api_prefix or path.startswith(self.api_prefix + "/")

    def classify(self, path: str) -> ResourceKind:
        if not isinstance(path, str):
            return ResourceKind.ARTIFACT
        if path == "/":
            return ResourceKind.ROOT
        if self.is_api_path(path):
            return ResourceKind.API_PASSTHROUGH
        if is_spec_index_name(basename(path)):
            return ResourceKind.SPEC_INDEX
        return ResourceKind.ARTIFACT


def classify(path: str, api_prefix: str = DEFAULT_API_PREFIX) -> ResourceKind:
    """Classify ``path`` with a one-off classifier."""
    return PathClassifier(api_prefix).classify(path)
