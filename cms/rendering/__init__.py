"""Rendering module for presentation concerns.

This module handles everything between a route and a template:
- The function namespace available to template authors
- The per-request view-model
- Template dispatch with the error-page fallback
"""

from rendering.context import TemplateData, TemplateForm, build_template_data
from rendering.dispatch import Dispatcher, is_partial_template
from rendering.functions import TemplateFunctions

__all__ = [
    "Dispatcher",
    "TemplateData",
    "TemplateForm",
    "TemplateFunctions",
    "build_template_data",
    "is_partial_template",
]
