"""Jinja2 template registry.

Templates live under ``<assets>/templates/<group>/<name>.html``. Every file
is compiled into one set, addressed by its file name (``error.html``),
and every template shares the same function namespace. The ``<group>``
directory only organises files on disk, so two files with the same name
in different groups are rejected.

In development mode each lookup re-parses the whole tree so edits show up
on the next request. In every other mode the set is parsed once at
startup.
"""

from __future__ import annotations

import logging
import posixpath
import threading
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

import jinja2

from core.assets import AssetStore
from core.errors import TemplateLoadError

logger = logging.getLogger(__name__)

TEMPLATE_PATTERN = "templates/*/*.html"


class TemplateSet:
    """Immutable name → compiled template mapping."""

    def __init__(
        self,
        env: jinja2.Environment,
        templates: Mapping[str, jinja2.Template],
    ) -> None:
        self.env = env
        self._templates = MappingProxyType(dict(templates))

    def __contains__(self, name: object) -> bool:
        return name in self._templates

    def __len__(self) -> int:
        return len(self._templates)

    @property
    def names(self) -> list[str]:
        return sorted(self._templates)

    def get(self, name: str) -> jinja2.Template | None:
        return self._templates.get(name)


_EMPTY = TemplateSet(jinja2.Environment(), {})


class TemplateRegistry:
    """Loads the template tree and hands out compiled templates.

    Args:
        assets: Store whose root contains ``templates/``.
        functions: Globals shared by every template.
        development: Reload the whole set before every lookup.
    """

    def __init__(
        self,
        assets: AssetStore,
        functions: Mapping[str, Callable[..., Any]],
        *,
        development: bool = False,
    ) -> None:
        self.assets = assets
        self.functions = dict(functions)
        self.development = development
        self._set = _EMPTY
        self._lock = threading.Lock()

    @property
    def templates(self) -> TemplateSet:
        with self._lock:
            return self._set

    def _read_sources(self) -> tuple[dict[str, str], dict[str, str]]:
        """Template sources and the root-relative file of each, by name."""
        sources: dict[str, str] = {}
        origins: dict[str, str] = {}
        for rel_path in self.assets.glob(TEMPLATE_PATTERN):
            name = posixpath.basename(rel_path)
            if name in sources:
                raise TemplateLoadError(
                    f"template name {name!r} already defined by {origins[name]}",
                    path=rel_path,
                )
            try:
                sources[name] = self.assets.read_text(rel_path)
            except (OSError, UnicodeDecodeError) as e:
                raise TemplateLoadError(str(e), path=rel_path) from e
            origins[name] = rel_path
        return sources, origins

    def _build_environment(self, sources: dict[str, str]) -> jinja2.Environment:
        env = jinja2.Environment(
            loader=jinja2.DictLoader(sources),
            autoescape=jinja2.select_autoescape(
                enabled_extensions=("html",), default_for_string=True
            ),
            auto_reload=False,
        )
        env.globals.update(self.functions)
        return env

    def load(self) -> TemplateSet:
        """Parse every template and install the new set.

        Raises:
            TemplateLoadError: A file could not be read or compiled. The
                previously installed set stays in place.
        """
        sources, origins = self._read_sources()
        env = self._build_environment(sources)

        compiled: dict[str, jinja2.Template] = {}
        for name in sources:
            try:
                compiled[name] = env.get_template(name)
            except jinja2.TemplateSyntaxError as e:
                failed = e.name or name
                raise TemplateLoadError(
                    f"line {e.lineno}: {e.message}",
                    path=origins.get(failed, failed),
                ) from e

        template_set = TemplateSet(env, compiled)
        with self._lock:
            self._set = template_set
        logger.debug("templates.loaded", extra={"count": len(template_set)})
        return template_set

    def lookup(self, name: str) -> jinja2.Template | None:
        """Compiled template called *name*, or None.

        In development mode a failed reload is logged and treated as a
        miss.
        """
        if self.development:
            try:
                self.load()
            except TemplateLoadError as e:
                logger.error(
                    "template.reload_failed",
                    extra={"template": name, "error": str(e)},
                )
                return None
        return self.templates.get(name)
