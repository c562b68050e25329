from __future__ import annotations

from .analysis_routes import register_analysis_routes
from .common_routes import register_common_routes

__all__ = [
    "register_common_routes",
    "register_analysis_routes",
]
