"""Per-request view-model handed to every template.

The error form carries fixed placeholder values; it is not derived from
the failure being rendered. Operators read the logs for the real cause.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from markupsafe import Markup
from starlette.requests import Request

from core.csrf import csrf_input


@dataclass(frozen=True)
class TemplateForm:
    error_code: str = "500"
    error_details: str = "Internal error"


@dataclass(frozen=True)
class TemplateData:
    env: str
    csrf_field: Markup
    form: TemplateForm = field(default_factory=TemplateForm)

    def as_context(self, request: Request) -> dict[str, Any]:
        """Template context; ``request`` is needed by ``url_for``."""
        return {
            "request": request,
            "env": self.env,
            "csrf_field": self.csrf_field,
            "form": self.form,
        }


def build_template_data(request: Request, env: str) -> TemplateData:
    return TemplateData(env=env, csrf_field=csrf_input(request))
