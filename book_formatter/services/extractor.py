"""Word document to HTML extraction via mammoth.

Conversion is best-effort: unsupported formatting is dropped and reported
by mammoth as messages, which are logged rather than treated as failures.
"""
from __future__ import annotations

import io
import logging

import mammoth

from book_formatter.errors import ExtractionError

logger = logging.getLogger(__name__)


def extract_html(data: bytes) -> str:
    try:
        result = mammoth.convert_to_html(io.BytesIO(data))
    except Exception as exc:
        raise ExtractionError(f"Could not read document: {exc}") from exc

    for message in result.messages:
        logger.debug("mammoth %s: %s", message.type, message.message)
    if result.messages:
        logger.info("Extracted content with %d conversion warnings", len(result.messages))
    return result.value
