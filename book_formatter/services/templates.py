"""Style templates.

Compiled Jinja2 templates are cached per style name for the life of the
process. Two requests may compile the same style concurrently; the later
insert simply replaces the earlier one.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Mapping

from jinja2 import Environment, FileSystemLoader, Template, TemplateError, select_autoescape

from book_formatter.errors import TemplateLoadError

logger = logging.getLogger(__name__)


class TemplateCache:
    def __init__(self, template_dir: str, allowed: Mapping[str, str], default: str):
        if default not in allowed:
            raise ValueError(f"Default template {default!r} is not in the allow-list")
        self.allowed = dict(allowed)
        self.default = default
        self.env = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html"]),
            cache_size=0,
        )
        self._compiled: Dict[str, Template] = {}

    def resolve_name(self, name) -> str:
        if name in self.allowed:
            return name
        logger.warning('Requested template "%s" not allowed, using default "%s"', name, self.default)
        return self.default

    def resolve(self, name) -> Template:
        valid_name = self.resolve_name(name)
        template = self._compiled.get(valid_name)
        if template is not None:
            logger.debug("Using cached template %s", valid_name)
            return template

        try:
            template = self.env.get_template(f"{valid_name}.html")
        except (TemplateError, OSError) as exc:
            raise TemplateLoadError(valid_name) from exc

        self._compiled[valid_name] = template
        logger.info("Compiled and cached template %s", valid_name)
        return template

    def render(self, name, **context) -> str:
        valid_name = self.resolve_name(name)
        template = self.resolve(valid_name)
        try:
            return template.render(**context)
        except TemplateError as exc:
            raise TemplateLoadError(valid_name, f"Could not render template: {exc}") from exc

    def options(self) -> List[Dict[str, str]]:
        return [{"value": value, "label": label} for value, label in self.allowed.items()]
