"""
Shared error handling for the Gem Proxy.
"""

from typing import Dict, Any, Optional


class GemProxyException(Exception):
    """Base exception for Gem Proxy services."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class UpstreamUnavailable(GemProxyException):
    """The origin could not be reached or answered with a failure."""

    def __init__(self, target: str, message: str = "Upstream unavailable", details: Optional[Dict[str, Any]] = None):
        self.target = target
        super().__init__("UPSTREAM_UNAVAILABLE", f"{target}: {message}", details)


class NotFoundLocally(GemProxyException):
    """No usable local copy exists for a resource."""

    def __init__(self, target: str, message: str = "No local copy", details: Optional[Dict[str, Any]] = None):
        self.target = target
        super().__init__("NOT_FOUND_LOCALLY", f"{target}: {message}", details)


class DirectoryConflict(GemProxyException):
    """The requested resource resolves to a directory in the store."""

    def __init__(self, target: str, details: Optional[Dict[str, Any]] = None):
        self.target = target
        super().__init__("DIRECTORY_CONFLICT", f"{target}: resolves to a directory", details)


class InvalidResourceKey(GemProxyException):
    """The requested resource does not map to a single file in the store."""

    def __init__(self, target: str, details: Optional[Dict[str, Any]] = None):
        self.target = target
        super().__init__("INVALID_RESOURCE_KEY", f"{target}: not a valid store key", details)
