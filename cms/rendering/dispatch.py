"""Template dispatch: resolve a page, fix the status, stream the body.

Pages that do not exist, and partial fragments (``*.part.html``) that must
never be served on their own, are answered with the fallback error page
at 404 whatever status the caller asked for.

The body is streamed after the status line has gone out, so a template
that fails half way cannot be turned into a clean error response. Such
failures are logged and the body simply ends.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

import jinja2
from starlette.requests import Request
from starlette.responses import StreamingResponse

from core.errors import TemplateNotFoundError
from core.templates import TemplateRegistry
from rendering.context import build_template_data

logger = logging.getLogger(__name__)

FALLBACK_TEMPLATE = "error.html"
PARTIAL_SUFFIX = ".part.html"


def is_partial_template(name: str) -> bool:
    return name.endswith(PARTIAL_SUFFIX)


def _stream(
    template: jinja2.Template, context: dict[str, Any], name: str
) -> Iterator[str]:
    try:
        yield from template.generate(context)
    except Exception:
        logger.exception("template.execute_failed", extra={"template": name})


class Dispatcher:
    """Renders named templates through a :class:`TemplateRegistry`."""

    def __init__(self, registry: TemplateRegistry, env: str) -> None:
        self.registry = registry
        self.env = env

    def resolve(self, name: str, status: int) -> tuple[str, jinja2.Template, int]:
        """Pick the template and status actually served for *name*.

        Raises:
            TemplateNotFoundError: The fallback template is missing too.
        """
        template = self.registry.lookup(name)
        if template is None or is_partial_template(name):
            name, status = FALLBACK_TEMPLATE, 404
            template = self.registry.templates.get(FALLBACK_TEMPLATE)
            if template is None:
                raise TemplateNotFoundError(FALLBACK_TEMPLATE)
        return name, template, status

    def render(
        self, request: Request, name: str, status: int = 200
    ) -> StreamingResponse:
        name, template, status = self.resolve(name, status)
        data = build_template_data(request, self.env)
        return StreamingResponse(
            _stream(template, data.as_context(request), name),
            status_code=status,
            media_type="text/html",
        )
