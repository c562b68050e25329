from __future__ import annotations

from .errors import JobLaunchError, OpossumWebError, SequenceInputError, TemplateRenderError
from .settings import VARIANTS, AnalysisVariant, WebSettings

__version__ = "3.0"

__all__ = [
    "AnalysisVariant",
    "JobLaunchError",
    "OpossumWebError",
    "SequenceInputError",
    "TemplateRenderError",
    "VARIANTS",
    "WebSettings",
]
