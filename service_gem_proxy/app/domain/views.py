"""
HTML views for the gem proxy (index listing and not-found page).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List
from urllib.parse import quote

from jinja2 import Environment, FileSystemLoader, select_autoescape

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

INDEX_VIEW = "index"
NOT_FOUND_VIEW = "404"


@dataclass
class ViewContext:
    """Everything a view may use; passed explicitly to the renderer."""

    request_path: str = "/"
    server_url: str = ""
    upstream_url: str = "https://rubygems.org"
    grouped_gems: Dict[str, List[str]] = field(default_factory=dict)

    def gem_url(self, name: str, version: str) -> str:
        """Download URL of a cached gem on this proxy."""
        return f"{self.server_url.rstrip('/')}/gems/{quote(f'{name}-{version}.gem')}"

    def rubygems_url(self, name: str) -> str:
        """Upstream registry page for a gem."""
        return f"{self.upstream_url.rstrip('/')}/gems/{quote(name, safe='')}"


class ViewRenderer:
    """Jinja2-backed renderer; templates are loaded once and cached."""

    def __init__(self, template_dir: Path = TEMPLATE_DIR):
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(["html"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, view: str, context: ViewContext) -> str:
        template = self.env.get_template(f"{view}.html")
        return template.render(view=context)
