from __future__ import annotations


class OpossumWebError(Exception):
    """Base class for errors raised by the web tier."""


class SequenceInputError(OpossumWebError):
    pass


class JobLaunchError(OpossumWebError):
    pass


class TemplateRenderError(OpossumWebError):
    pass
