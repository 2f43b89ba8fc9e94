"""Jinja2 templates shared by pages and components."""

from pathlib import Path

from fastapi.templating import Jinja2Templates

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def render_fragment(template_name: str, **context) -> str:
    """Render a template outside of a request (component fragments)."""
    return templates.get_template(template_name).render(**context)
