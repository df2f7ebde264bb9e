"""
Error taxonomy for the book processing pipeline.

Every component wraps the exceptions of the library it drives into one of
these, so the orchestrator can branch on ``kind`` instead of message text.
"""
from __future__ import annotations

import enum
from typing import Optional


class ErrorKind(enum.Enum):
    VALIDATION = "validation"
    TEMPLATE = "template"
    EXTRACTION = "extraction"
    RENDERER_UNAVAILABLE = "renderer_unavailable"
    RENDER = "render"
    STORAGE = "storage"
    PERSISTENCE = "persistence"
    INTERNAL = "internal"


class BookFormatterError(Exception):
    """Base class for pipeline errors"""

    kind = ErrorKind.INTERNAL

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(BookFormatterError):
    """Upload rejected before any record exists"""
    kind = ErrorKind.VALIDATION


class TemplateLoadError(BookFormatterError):
    kind = ErrorKind.TEMPLATE

    def __init__(self, template_name: str, message: Optional[str] = None):
        self.template_name = template_name
        super().__init__(message or f"Could not load template: {template_name}")


class ExtractionError(BookFormatterError):
    kind = ErrorKind.EXTRACTION


class RendererUnavailableError(BookFormatterError):
    """No usable Chromium executable in this environment"""
    kind = ErrorKind.RENDERER_UNAVAILABLE


class RenderError(BookFormatterError):
    """Chromium was found but producing the PDF failed"""
    kind = ErrorKind.RENDER


class StorageError(BookFormatterError):
    kind = ErrorKind.STORAGE


class PersistenceError(BookFormatterError):
    kind = ErrorKind.PERSISTENCE
