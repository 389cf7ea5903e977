"""Static asset serving — hashed-name file server and caching middleware."""

from __future__ import annotations

import os
from collections.abc import Awaitable, Callable

from starlette.datastructures import Headers
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.staticfiles import StaticFiles
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from core.assets import AssetStore, parse_name

ASSET_ETAG = '"4FROTHS24N"'
ASSET_MAX_AGE = 60 * 60 * 24 * 180

ErrorHandler = Callable[[Request, HTTPException], Awaitable[Response]]


class HashedStaticFiles(StaticFiles):
    """StaticFiles over an :class:`AssetStore` root.

    ``app-<sha256>.css`` is served from ``app.css``; unhashed names are
    served as-is.
    """

    def __init__(self, assets: AssetStore) -> None:
        super().__init__(directory=assets.root)

    def lookup_path(self, path: str) -> tuple[str, os.stat_result | None]:
        logical, _ = parse_name(path.replace(os.sep, "/"))
        return super().lookup_path(logical.replace("/", os.sep))


class CacheStaticFiles:
    """Stamps a fixed ETag and a 180-day max-age on every response.

    The ETag is the same for every asset, so a request whose
    ``If-None-Match`` contains it is answered 304 without touching the
    wrapped app. Invalidation relies on the hashed file name changing.

    Errors raised by the wrapped app (a missing file, a wrong method) are
    answered here so they carry the same headers: a 404 goes to
    *not_found* when given, anything else gets a plain-text body.
    """

    CACHE_HEADERS: list[tuple[bytes, bytes]] = [
        (b"etag", ASSET_ETAG.encode("latin-1")),
        (b"cache-control", f"max-age={ASSET_MAX_AGE}".encode("latin-1")),
    ]
    _REPLACED = frozenset(name for name, _ in CACHE_HEADERS)

    def __init__(
        self, app: ASGIApp, *, not_found: ErrorHandler | None = None
    ) -> None:
        self.app = app
        self.not_found = not_found

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        match = Headers(scope=scope).get("if-none-match", "")
        if match and ASSET_ETAG in match:
            response = Response(status_code=304)
            response.raw_headers.extend(self.CACHE_HEADERS)
            await response(scope, receive, send)
            return

        async def send_wrapper(message: Message) -> None:
            if message.get("type") == "http.response.start":
                headers = [
                    (name, value)
                    for name, value in message.get("headers", [])
                    if name.lower() not in self._REPLACED
                ]
                headers.extend(self.CACHE_HEADERS)
                message["headers"] = headers
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except HTTPException as exc:
            response = await self._error_response(Request(scope, receive), exc)
            await response(scope, receive, send_wrapper)

    async def _error_response(
        self, request: Request, exc: HTTPException
    ) -> Response:
        if exc.status_code == 404 and self.not_found is not None:
            return await self.not_found(request, exc)
        return PlainTextResponse(
            exc.detail, status_code=exc.status_code, headers=exc.headers
        )


def asset_app(
    assets: AssetStore, *, not_found: ErrorHandler | None = None
) -> ASGIApp:
    """File server for *assets* wrapped in the caching middleware."""
    return CacheStaticFiles(HashedStaticFiles(assets), not_found=not_found)
