"""
HTML page builders.

Page shells live in templates/ and are filled with string.Template. Maps are
embedded through an iframe ``srcdoc`` so each page stays a single response.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""

import html
import json
import os
from functools import lru_cache
from string import Template
from typing import Any, Dict, List, Optional

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
TEMPLATE_DIR = os.path.join(BASE_DIR, "templates")

BACK_BUTTON_COLOR = "#0288d1"


@lru_cache(maxsize=None)
def load_template(name: str) -> Template:
    """Load a page template from the templates directory.

    Args:
        name: Template file name, e.g. ``"bear.html"``.

    Returns:
        Template ready for substitution.
    """
    with open(os.path.join(TEMPLATE_DIR, name), "r", encoding="utf-8") as f:
        return Template(f.read())


def _e(value: Any) -> str:
    return html.escape(str(value if value is not None else ""), quote=True)


def layout(title: str, body: str, back_color: Optional[str] = None) -> str:
    """Wrap a page body in the shared layout.

    Args:
        title: Document title.
        body: Inner HTML.
        back_color: When set, show a "Back to All Bears" link in this color.
    """
    back = ""
    if back_color:
        back = f'<a class="back" href="/" style="background-color: {_e(back_color)}">&larr; Back to All Bears</a>'
    return load_template("layout.html").substitute(title=_e(title), back=back, body=body)


def map_frame(map_html: str, height: int) -> str:
    return f'<iframe class="map" style="height: {height}px" srcdoc="{_e(map_html)}"></iframe>'


def _reload_script(bear_id: Optional[str]) -> str:
    quoted = json.dumps(bear_id).replace("</", "<\\/")
    return load_template("reload.html").substitute(bear_id=quoted)


def loading_page() -> str:
    return layout("Loading...", "<p>Loading...</p>")


def not_found_page(bear_id: str) -> str:
    return layout("Bear not found", f"<p>No bear called {_e(bear_id)} is being tracked.</p>", BACK_BUTTON_COLOR)


def bear_page(
    bear: Dict[str, Any],
    map_html: str,
    color: str,
    error: Optional[str] = None,
    form: Optional[Dict[str, str]] = None,
) -> str:
    """Build the journey page for one bear.

    Args:
        bear: Bear dictionary.
        map_html: Rendered journey map document.
        color: Color assigned to the bear.
        error: User-facing message from a failed submission.
        form: Previously entered form values to keep after a failure.
    """
    form = form or {}
    body = load_template("bear.html").substitute(
        name=_e(bear.get("name")),
        bear_id=_e(bear.get("id")),
        color=_e(color),
        map=map_frame(map_html, 400),
        error=f'<p class="error">{_e(error)}</p>' if error else "",
        city=_e(form.get("city")),
        country=_e(form.get("country")),
        message=_e(form.get("message")),
        reload_script=_reload_script(bear.get("id")),
    )
    return layout(f"{bear.get('name')}'s Journey", body, color)


def index_page(bears: List[Dict[str, Any]], map_html: str, colors: Dict[str, str]) -> str:
    """Build the overview page listing every bear.

    Args:
        bears: Bear dictionaries.
        map_html: Rendered overview map document.
        colors: Bear id -> assigned color.
    """
    legend = "".join(
        f'<div><span class="swatch" style="background-color: {_e(colors.get(b["id"]))}"></span> '
        f'<a href="/bear/{_e(b["id"])}">{_e(b.get("name"))}</a></div>'
        for b in bears
    )
    body = load_template("index.html").substitute(
        map=map_frame(map_html, 500),
        legend=legend,
        reload_script=_reload_script(None),
    )
    return layout("Bears Around the World", body)
