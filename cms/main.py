"""FastAPI application for the CMS web server."""

import logging
import re
import sys

import fastapi
import uvicorn

from core.assets import AssetStore
from core.config import Settings, get_settings
from core.csrf import CSRFMiddleware
from core.errors import TemplateLoadError
from core.logger import bind_contextvars, configure_logging
from core.sessions import ScopedSessionMiddleware
from core.templates import TemplateRegistry
from rendering.dispatch import Dispatcher
from rendering.functions import TemplateFunctions
from routes import ASSETS_PREFIX, mount_assets, register_error_handlers

SERVICE_NAME = "CMS"
VERSION = "1.0.0"

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> fastapi.FastAPI:
    """Build the application.

    A template tree that fails to parse is logged and the app starts with
    an empty template set; every page then degrades to an empty error
    response until the templates are fixed (and, outside development, the
    process restarted).
    """
    settings = settings or get_settings()

    assets = AssetStore(settings.assets_path)
    functions = TemplateFunctions(assets)
    registry = TemplateRegistry(
        assets, functions.namespace(), development=settings.is_development
    )
    try:
        registry.load()
    except TemplateLoadError as e:
        logger.error(
            "templates.load_failed", extra={"error": str(e), "path": e.path}
        )

    app = fastapi.FastAPI(
        title="CMS",
        version=VERSION,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.assets = assets
    app.state.templates = registry
    app.state.dispatcher = Dispatcher(registry, settings.environment)

    register_error_handlers(app)
    mount_assets(app, assets)

    app.add_middleware(CSRFMiddleware)
    app.add_middleware(
        ScopedSessionMiddleware,
        exempt_urls=[re.compile(rf"^{re.escape(ASSETS_PREFIX)}(/|$)")],
        secret_key=settings.session_secret_key,
        session_cookie="session",
        same_site="lax",
        https_only=settings.require_https,
    )
    return app


def run() -> int:
    """Load configuration, build the app and serve it until interrupted."""
    try:
        settings = get_settings()
    except ValueError as e:  # ValidationError or a malformed config.toml
        print(f"failed to load configuration: {e}", file=sys.stderr)
        return 1

    configure_logging()
    bind_contextvars(
        environment=settings.environment,
        service=SERVICE_NAME,
        version=VERSION,
    )

    try:
        app = create_app(settings)
    except (OSError, RuntimeError) as e:
        logger.error("server.setup_failed", extra={"error": str(e)})
        return 1

    logger.info(
        "server.starting",
        extra={"host": settings.server.host, "port": settings.server.port},
    )
    # uvicorn logs bind failures itself, through the handlers set up above
    uvicorn.run(
        app,
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,
    )
    return 0


if __name__ == "__main__":
    sys.exit(run())
