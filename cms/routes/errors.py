"""Error handlers — the not-found page and the last-resort 500."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse, Response

from core.errors import CMSError
from rendering.dispatch import FALLBACK_TEMPLATE, Dispatcher

logger = logging.getLogger(__name__)

ERROR_PAGE_STATUS = 404


def get_dispatcher(request: Request) -> Dispatcher:
    return request.app.state.dispatcher


async def not_found_handler(request: Request, exc: Exception) -> Response:
    """Render the generic error page for any unmatched path.

    Resolving may re-parse the whole template tree (development mode), so
    it runs off the event loop.
    """
    try:
        return await run_in_threadpool(
            get_dispatcher(request).render,
            request,
            FALLBACK_TEMPLATE,
            ERROR_PAGE_STATUS,
        )
    except CMSError as e:
        logger.error(
            "error_template.unavailable",
            extra={"path": request.url.path, "error": str(e)},
        )
        return Response(status_code=ERROR_PAGE_STATUS)


async def global_exception_handler(request: Request, exc: Exception) -> Response:
    """Last-resort handler for unhandled exceptions."""
    logger.error(
        "unhandled.exception",
        extra={
            "exc_type": type(exc).__name__,
            "path": request.url.path,
            "method": request.method,
        },
        exc_info=exc,
    )
    return PlainTextResponse("Internal Server Error", status_code=500)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(404, not_found_handler)
    app.add_exception_handler(Exception, global_exception_handler)
