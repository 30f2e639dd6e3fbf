"""
Cache policy: which resources may be cached and whether a cached copy is
still good enough to serve.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Optional

from .classifier import ResourceKind

# Just under a day so refreshes drift away from exact daily boundaries.
DEFAULT_SPECS_MAX_AGE_SECONDS = 84600


class Freshness(str, Enum):
    """Outcome of a freshness check."""

    FRESH = "fresh"
    MISSING = "missing"
    EXPIRED = "expired"


class CachePolicy:
    """Decides cacheability and freshness from a classification and entry mtime."""

    def __init__(self, specs_max_age_seconds: int = DEFAULT_SPECS_MAX_AGE_SECONDS):
        self.specs_max_age_seconds = specs_max_age_seconds

    def is_cacheable(self, kind: ResourceKind) -> bool:
        """Only API passthrough paths are excluded.

        ROOT counts as cacheable but is rendered, never read from the store;
        callers handle it before consulting the store.
        """
        return kind is not ResourceKind.API_PASSTHROUGH

    def describe_freshness(
        self,
        kind: ResourceKind,
        last_modified: Optional[float],
        now: Optional[float] = None,
    ) -> Freshness:
        """Classify a store entry as fresh, missing or expired.

        ``last_modified`` is the entry's mtime, or None when there is no entry.
        """
        if kind in (ResourceKind.ROOT, ResourceKind.API_PASSTHROUGH):
            return Freshness.MISSING
        if last_modified is None:
            return Freshness.MISSING
        if kind is ResourceKind.SPEC_INDEX:
            if now is None:
                now = time.time()
            if now - last_modified < self.specs_max_age_seconds:
                return Freshness.FRESH
            return Freshness.EXPIRED
        # Artifacts never change upstream once published.
        return Freshness.FRESH

    def is_fresh(
        self,
        kind: ResourceKind,
        last_modified: Optional[float],
        now: Optional[float] = None,
    ) -> bool:
        return self.describe_freshness(kind, last_modified, now) is Freshness.FRESH
