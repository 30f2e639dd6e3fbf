"""
Domain package for the Gem Proxy Service: request/response shapes, the
fetch orchestrator, the error boundary and HTML views.
"""

from .error_boundary import error_boundary, not_found_response
from .fetch_orchestrator import FetchOrchestrator
from .models import ProxyRequest, ProxyResponse
from .views import ViewContext, ViewRenderer

__all__ = [
    "error_boundary",
    "not_found_response",
    "FetchOrchestrator",
    "ProxyRequest",
    "ProxyResponse",
    "ViewContext",
    "ViewRenderer",
]
