from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from flask import render_template
from jinja2 import TemplateError

from .errors import TemplateRenderError
from .settings import VERSION, WebSettings
from .state import SessionState

logger = logging.getLogger(__name__)

MASTER_TEMPLATE = "master.html"


def page_vars(
    settings: WebSettings,
    state: Optional[SessionState],
    section: str,
    **extra: Any,
) -> Dict[str, Any]:
    variables: Dict[str, Any] = {
        "abs_htdocs_path": str(settings.htdocs_dir),
        "rel_htdocs_path": settings.rel_htdocs_path,
        "rel_results_path": settings.rel_results_path,
        "version": VERSION,
        "devel_version": settings.devel,
        "bg_color_class": state.bg_color_class if state else "",
        "title": state.title if state else "oPOSSUM",
        "heading": state.heading if state else "oPOSSUM",
        "sid": state.sid if state else "",
        "section": section,
    }
    variables.update(extra)
    return variables


def render_page(template_name: str, variables: Dict[str, Any]) -> str:
    try:
        return render_template(template_name, **variables)
    except TemplateError as exc:
        logger.error("Template %s failed: %s", template_name, exc)
        raise TemplateRenderError(f"Could not render template {template_name}: {exc}") from exc
