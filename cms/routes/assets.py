"""Static asset route."""

from fastapi import FastAPI

from core.assets import AssetStore
from core.static import asset_app

from .errors import not_found_handler

ASSETS_PREFIX = "/assets"


def mount_assets(app: FastAPI, assets: AssetStore) -> None:
    """Serve *assets* under ``/assets`` with long-lived caching headers.

    A missing file renders the same error page as any unmatched path.
    """
    app.mount(
        ASSETS_PREFIX,
        asset_app(assets, not_found=not_found_handler),
        name="assets",
    )
