"""HTTP routing: static assets and the catch-all error page."""

from .assets import ASSETS_PREFIX, mount_assets
from .errors import register_error_handlers

__all__ = [
    "ASSETS_PREFIX",
    "mount_assets",
    "register_error_handlers",
]
