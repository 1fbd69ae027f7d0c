# backend/slicedadvice/services/template_service.py
"""
Template rendering service for the SlicedAdvice platform.

Renders the plain-text email bodies under ``slicedadvice/templates`` with
Jinja2, adding the common brand and link context every email uses.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateNotFound

from ..core.config import settings
from ..core.constants import BRAND_NAME
from .base import BaseService

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates"


class TemplateService(BaseService):
    """Centralized template rendering service using Jinja2."""

    def __init__(self, template_dir: Optional[Path] = None):
        super().__init__()
        template_dir = template_dir or TEMPLATE_DIR

        # Bodies are plain text, so nothing is HTML-escaped
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )

        self.logger.debug(f"Template service initialized with template directory: {template_dir}")

    def get_common_context(self) -> Dict[str, Any]:
        return {
            "brand_name": BRAND_NAME,
            "frontend_url": settings.frontend_url.rstrip("/"),
            "response_window_days": settings.response_window_days,
        }

    @BaseService.measure_operation("render_template")
    def render_template(
        self, template_name: str, context: Optional[Dict[str, Any]] = None, **kwargs: Any
    ) -> str:
        """
        Render a template with the given context.

        Raises:
            TemplateNotFound: If template doesn't exist
        """
        try:
            template = self.env.get_template(template_name)

            full_context = self.get_common_context()
            if context:
                full_context.update(context)
            full_context.update(kwargs)

            return template.render(full_context)
        except TemplateNotFound:
            self.logger.error(f"Template not found: {template_name}")
            raise

