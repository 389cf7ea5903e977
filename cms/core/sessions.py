"""Signed-cookie sessions that stay off selected paths.

Responses under an exempt path never read or write the session, so they
carry no ``Set-Cookie`` and are safe to store in a shared cache. Requests
there see no ``scope["session"]``, which also keeps
:class:`~core.csrf.CSRFMiddleware` from minting a token for them.
"""

from __future__ import annotations

from re import Pattern
from typing import Any

from starlette.middleware.sessions import SessionMiddleware
from starlette.types import ASGIApp, Receive, Scope, Send


class ScopedSessionMiddleware(SessionMiddleware):
    """``SessionMiddleware`` that skips paths matching *exempt_urls*."""

    def __init__(
        self,
        app: ASGIApp,
        *,
        exempt_urls: list[Pattern[str]] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(app, **kwargs)
        self.exempt_urls = exempt_urls or []

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] in ("http", "websocket") and self._url_is_exempt(
            scope["path"]
        ):
            await self.app(scope, receive, send)
            return
        await super().__call__(scope, receive, send)

    def _url_is_exempt(self, path: str) -> bool:
        return any(pattern.match(path) for pattern in self.exempt_urls)
