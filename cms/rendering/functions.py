"""Functions exposed to template authors.

The names are camelCase because templates call them directly, e.g.
``<link href="{{ assetHash('css/app.css') }}">``. Everything that needs
server state (only the asset store, today) is injected through
:class:`TemplateFunctions` rather than captured from module globals.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from datetime import date, datetime
from typing import Any

from markupsafe import Markup

from core.assets import AssetStore, clean_name

CONTENT_NOT_FOUND = Markup("<h1>Content not found</h1>")
NOW_TIME_FORMAT = "%d %b %Y"


def active_status(status: int) -> str:
    return "Active" if status == 1 else "Inactive"


def increment_key(value: int) -> int:
    return value + 1


def _as_datetime(ts: Any) -> datetime | None:
    """Coerce a timestamp, returning None when it is unset or invalid."""
    if isinstance(ts, datetime):
        return ts if ts.year > 1 else None
    if isinstance(ts, date):
        return datetime(ts.year, ts.month, ts.day) if ts.year > 1 else None
    if isinstance(ts, (int, float)) and not isinstance(ts, bool) and ts > 0:
        try:
            return datetime.fromtimestamp(ts)
        except (OverflowError, OSError, ValueError):
            return None
    return None


def format_date(ts: Any, layout: str) -> str:
    """Format *ts* with the strftime *layout*; ``""`` when *ts* is unusable."""
    value = _as_datetime(ts)
    if value is None:
        return ""
    return value.strftime(layout)


def count_paginate(total: int, per_page: int) -> int:
    """Number of pages needed for *total* items, *per_page* per page."""
    if total <= 0 or per_page <= 0:
        return 0
    pages, remainder = divmod(total, per_page)
    if remainder:
        pages += 1
    return pages


def no_escape(html: str) -> Markup:
    """Pass *html* through unescaped."""
    if not html:
        return CONTENT_NOT_FOUND
    return Markup(html)


def now_time() -> str:
    return datetime.now().strftime(NOW_TIME_FORMAT)


def permission_checked(
    resource: str, action: str, all_permissions: Mapping[str, Sequence[str]]
) -> str:
    """``"checked"`` when *action* is granted on *resource*."""
    if action in all_permissions.get(resource, ()):
        return "checked"
    return ""


def permission(resource: str) -> bool:
    # No role model yet: every resource is allowed.
    return True


def urls(url: str, *params: str) -> str:
    """Fill ``{key}`` placeholders from ``"key_value"`` params.

    >>> urls("/users/{id}/posts/{post}", "id_7", "post_3")
    '/users/7/posts/3'
    """
    for param in params:
        parts = param.split("_")
        if len(parts) == 2:
            key, value = parts
            url = url.replace("{" + key + "}", value, 1)
    return url


class TemplateFunctions:
    """The template function namespace, bound to an asset store."""

    def __init__(self, assets: AssetStore) -> None:
        self.assets = assets

    def asset_hash(self, name: str) -> str:
        return "/" + self.assets.hash_name(clean_name(name))

    def namespace(self) -> dict[str, Callable[..., Any]]:
        return {
            "assetHash": self.asset_hash,
            "activeStatus": active_status,
            "incrementKey": increment_key,
            "formatDate": format_date,
            "countPaginate": count_paginate,
            "noScape": no_escape,
            "nowTime": now_time,
            "permissionChecked": permission_checked,
            "permission": permission,
            "urls": urls,
        }
