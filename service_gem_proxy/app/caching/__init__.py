"""
Gem proxy caching package.

Classification, freshness policy and the on-disk store. Nothing in here
talks to the network.
"""

from .classifier import PathClassifier, ResourceKey, ResourceKind, classify, is_spec_index_name
from .policy import CachePolicy, Freshness
from .store import FileStore, group_gems

__all__ = [
    "PathClassifier",
    "ResourceKey",
    "ResourceKind",
    "classify",
    "is_spec_index_name",
    "CachePolicy",
    "Freshness",
    "FileStore",
    "group_gems",
]
