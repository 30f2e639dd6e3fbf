"""
The one place where unrecovered request failures are turned into a
response.

Every failure that escapes the fetch orchestrator becomes HTTP 200 with the
rendered not-found view; clients never see a 5xx from the proxy route.
Switching to real error statuses means changing ``not_found_response``
only.
"""

from __future__ import annotations

from typing import Awaitable, Callable

from shared.metrics import MetricsCollector

from .models import ProxyResponse
from .views import NOT_FOUND_VIEW, ViewContext, ViewRenderer

NOT_FOUND_STATUS = 200


def not_found_response(
    renderer: ViewRenderer,
    context: ViewContext,
    *,
    include_body: bool = True,
) -> ProxyResponse:
    """The not-found view, served with a success status."""
    response = ProxyResponse.html(renderer.render(NOT_FOUND_VIEW, context), include_body=include_body)
    response.status = NOT_FOUND_STATUS
    return response


async def error_boundary(
    handler: Callable[[], Awaitable[ProxyResponse]],
    *,
    renderer: ViewRenderer,
    context: ViewContext,
    logger,
    metrics: MetricsCollector,
    include_body: bool = True,
) -> ProxyResponse:
    """Run ``handler``; flatten any exception into the not-found response."""
    try:
        return await handler()
    except Exception as exc:
        code = getattr(exc, "code", exc.__class__.__name__)
        logger.error(
            "Request failed, serving not-found view",
            path=context.request_path,
            code=code,
            error=str(exc),
        )
        metrics.record_error(code)
        return not_found_response(renderer, context, include_body=include_body)
