"""CSRF protection middleware — Synchronizer Token Pattern.

Stores a random token in the signed session and validates it on unsafe
requests (POST, PUT, PATCH, DELETE). The token can be submitted via
either:

- **Header**: ``X-CSRFToken``
- **Form field**: ``csrf_token``, rendered into forms by templates through
  the ``csrf_field`` view-model entry (see :func:`csrf_input`)

Must sit inside ``SessionMiddleware`` so ``scope["session"]`` exists.
"""

from __future__ import annotations

import logging
import secrets
from re import Pattern

from markupsafe import Markup
from starlette.requests import HTTPConnection, Request
from starlette.responses import PlainTextResponse
from starlette.types import ASGIApp, Receive, Scope, Send

logger = logging.getLogger(__name__)

_SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "TRACE"})
_SESSION_KEY = "_csrf_token"
_SCOPE_KEY = "csrf_token"
_HEADER_NAME = "x-csrftoken"
FORM_FIELD = "csrf_token"


def csrf_token(conn: HTTPConnection) -> str | None:
    """Token exposed on the scope by :class:`CSRFMiddleware`, if any."""
    return conn.scope.get(_SCOPE_KEY)


def csrf_input(conn: HTTPConnection) -> Markup:
    """Hidden form input carrying the token; empty without a token."""
    token = csrf_token(conn)
    if token is None:
        return Markup("")
    return Markup('<input type="hidden" name="{}" value="{}">').format(
        FORM_FIELD, token
    )


class CSRFMiddleware:
    """Synchronizer Token CSRF middleware.

    Args:
        app: The ASGI application.
        exempt_urls: Optional regex patterns for paths that skip CSRF
            checks.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        exempt_urls: list[Pattern[str]] | None = None,
    ) -> None:
        self.app = app
        self.exempt_urls = exempt_urls or []

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        session = scope.get("session")
        if session is None:
            # SessionMiddleware not active; nothing to check against.
            await self.app(scope, receive, send)
            return

        if _SESSION_KEY not in session:
            session[_SESSION_KEY] = secrets.token_urlsafe(32)
        scope[_SCOPE_KEY] = session[_SESSION_KEY]

        request = Request(scope, receive)
        if request.method in _SAFE_METHODS or self._url_is_exempt(request.url.path):
            await self.app(scope, receive, send)
            return

        submitted = request.headers.get(_HEADER_NAME)
        if not submitted:
            content_type = request.headers.get("content-type", "")
            if "application/x-www-form-urlencoded" in content_type:
                form = await request.form()
                value = form.get(FORM_FIELD)
                if isinstance(value, str):
                    submitted = value
                await form.close()

        if not submitted or not secrets.compare_digest(
            submitted, session[_SESSION_KEY]
        ):
            logger.warning(
                "csrf.validation_failed",
                extra={"path": request.url.path, "method": request.method},
            )
            response = PlainTextResponse(
                "CSRF token verification failed", status_code=403
            )
            await response(scope, receive, send)
            return

        await self.app(scope, receive, send)

    def _url_is_exempt(self, path: str) -> bool:
        return any(pattern.match(path) for pattern in self.exempt_urls)
