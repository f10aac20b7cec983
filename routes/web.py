"""HTML-facing Flask routes."""
from __future__ import annotations

from typing import Any, Mapping

from flask import Blueprint, render_template

web_blueprint = Blueprint("web", __name__)

_context: dict[str, Any] = {}


def configure(context: Mapping[str, Any]) -> None:
    """Provide shared state required by the HTML routes."""
    _context.update(context)


def _ctx(key: str) -> Any:
    if key not in _context:
        raise RuntimeError(f"web routes missing context value: {key}")
    return _context[key]


@web_blueprint.route("/")
def index():
    return render_template(
        "index.html",
        window_modes=_ctx("window_modes"),
        default_mode=_ctx("default_mode"),
    )
