"""
Book processing pipeline.

Stages, in order:
    received -> validated -> record_created -> original_stored
    -> content_extracted -> rendered -> pdf_stored -> completed

Any stage may fail. Once the book record exists every failure is written
back to it, and artifacts already stored stay referenced.
"""
from __future__ import annotations

import enum
import logging
import ntpath
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from book_formatter.errors import (
    BookFormatterError,
    ErrorKind,
    PersistenceError,
    ValidationError,
)
from book_formatter.services.extractor import extract_html
from book_formatter.services.records import RecordStore
from book_formatter.services.renderer import PdfRenderer, pdf_page_count, select_resolver
from book_formatter.services.storage import ArtifactKind, ArtifactStore, artifact_key
from book_formatter.services.templates import TemplateCache

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Book processed successfully!"


class PipelineStage(enum.Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    RECORD_CREATED = "record_created"
    ORIGINAL_STORED = "original_stored"
    CONTENT_EXTRACTED = "content_extracted"
    RENDERED = "rendered"
    PDF_STORED = "pdf_stored"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class PipelineResult:
    success: bool
    message: str
    book_id: Optional[int] = None
    original_url: Optional[str] = None
    pdf_url: Optional[str] = None
    stage: PipelineStage = PipelineStage.COMPLETED
    error_kind: Optional[ErrorKind] = None

    def to_dict(self) -> Dict[str, Any]:
        if self.success:
            return {
                "success": True,
                "message": self.message,
                "bookId": self.book_id,
                "originalUrl": self.original_url,
                "pdfUrl": self.pdf_url,
            }
        return {
            "success": False,
            "message": self.message,
            "bookId": self.book_id,
            "errorKind": self.error_kind.value if self.error_kind else None,
        }


def failure_message(error: Exception) -> str:
    if isinstance(error, BookFormatterError):
        if error.kind is ErrorKind.RENDERER_UNAVAILABLE:
            return f"Processing failed: PDF renderer unavailable in this environment ({error.message})"
        if error.kind is ErrorKind.RENDER:
            return f"Processing failed: PDF rendering failed ({error.message})"
        return f"Processing failed: {error.message}"
    return "Processing failed: An unknown error occurred during processing."


def validate_upload(upload, expected_mimetype: str, max_bytes: int) -> bytes:
    """Check the uploaded file and return its bytes."""
    if upload is None or not getattr(upload, "filename", None):
        raise ValidationError("File field 'file' is missing or invalid.")
    if upload.content_type != expected_mimetype:
        raise ValidationError("Invalid file type. Only .docx files are allowed.")

    limit_mb = max_bytes // (1024 * 1024)
    if upload.content_length and upload.content_length > max_bytes:
        raise ValidationError(f"File size exceeds the {limit_mb}MB limit.")
    data = upload.stream.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise ValidationError(f"File size exceeds the {limit_mb}MB limit.")
    if not data:
        raise ValidationError("Uploaded file is empty.")
    return data


class BookPipeline:
    def __init__(self, templates: TemplateCache, renderer: PdfRenderer, store: ArtifactStore,
                 records: RecordStore, extract=extract_html, *,
                 expected_mimetype: str, max_upload_bytes: int,
                 originals_folder: str, pdfs_folder: str):
        self.templates = templates
        self.renderer = renderer
        self.store = store
        self.records = records
        self.extract = extract
        self.expected_mimetype = expected_mimetype
        self.max_upload_bytes = max_upload_bytes
        self.originals_folder = originals_folder
        self.pdfs_folder = pdfs_folder

    def _record_progress(self, book_id: int, **fields: Any) -> None:
        try:
            self.records.update(book_id, **fields)
        except PersistenceError as exc:
            logger.warning("Book %s: could not record progress: %s", book_id, exc.message)

    def process(self, upload, template_name: Optional[str] = None) -> PipelineResult:
        stage = PipelineStage.RECEIVED
        book_id = None
        try:
            data = validate_upload(upload, self.expected_mimetype, self.max_upload_bytes)
            stage = PipelineStage.VALIDATED
            original_filename = ntpath.basename(upload.filename)
            logger.info("Received %s (%d bytes), template %r", original_filename, len(data), template_name)

            book_id = self.records.create(original_filename).id
            stage = PipelineStage.RECORD_CREATED

            original = self.store.upload(data, self.originals_folder, ArtifactKind.RAW, artifact_key(book_id))
            self._record_progress(book_id, original_url=original.url, original_secure_url=original.secure_url)
            stage = PipelineStage.ORIGINAL_STORED
            logger.info("Book %s: original stored", book_id)

            content = self.extract(data)
            stage = PipelineStage.CONTENT_EXTRACTED
            logger.info("Book %s: content extracted", book_id)

            style = self.templates.resolve_name(template_name)
            title = os.path.splitext(original_filename)[0]
            html = self.templates.render(style, content=content, title=title)
            pdf_bytes = self.renderer.render(html)
            stage = PipelineStage.RENDERED
            logger.info("Book %s: rendered with template %s", book_id, style)

            pdf = self.store.upload(pdf_bytes, self.pdfs_folder, ArtifactKind.DOCUMENT, artifact_key(book_id))
            self._record_progress(
                book_id,
                template_name=style,
                pdf_url=pdf.url,
                pdf_secure_url=pdf.secure_url,
                page_count=pdf_page_count(pdf_bytes),
                processed_at=datetime.now(timezone.utc),
                error_message=None,
            )
            stage = PipelineStage.PDF_STORED
            logger.info("Book %s: PDF stored", book_id)
        except BookFormatterError as exc:
            logger.error("Book %s failed after stage %s: [%s] %s", book_id, stage.value, exc.kind.value, exc.message)
            return self._fail(book_id, stage, exc)
        except Exception as exc:
            logger.exception("Book %s failed unexpectedly after stage %s", book_id, stage.value)
            return self._fail(book_id, stage, exc)

        return PipelineResult(
            success=True,
            message=SUCCESS_MESSAGE,
            book_id=book_id,
            original_url=original.secure_url,
            pdf_url=pdf.secure_url,
        )

    def _fail(self, book_id: Optional[int], stage: PipelineStage, error: Exception) -> PipelineResult:
        message = failure_message(error)
        if book_id is not None:
            self._record_progress(book_id, error_message=message)
        else:
            logger.error("Processing failed before the book record was created")
        kind = error.kind if isinstance(error, BookFormatterError) else ErrorKind.INTERNAL
        return PipelineResult(
            success=False,
            message=message,
            book_id=book_id,
            stage=PipelineStage.FAILED,
            error_kind=kind,
        )


def build_pipeline(settings) -> BookPipeline:
    """Wire the pipeline from a Flask config mapping."""
    return BookPipeline(
        templates=TemplateCache(
            settings["STYLE_TEMPLATE_DIR"],
            settings["ALLOWED_TEMPLATES"],
            settings["DEFAULT_TEMPLATE"],
        ),
        renderer=PdfRenderer(
            select_resolver(settings),
            settle_timeout_ms=settings["RENDER_SETTLE_TIMEOUT_MS"],
            min_pdf_bytes=settings["MIN_PDF_BYTES"],
        ),
        store=ArtifactStore(
            settings["AWS_S3_BUCKET"],
            settings["AWS_REGION"],
            endpoint_url=settings.get("S3_ENDPOINT_URL"),
            public_base_url=settings.get("ARTIFACT_PUBLIC_BASE_URL", ""),
        ),
        records=RecordStore(),
        expected_mimetype=settings["DOCX_MIMETYPE"],
        max_upload_bytes=settings["MAX_UPLOAD_BYTES"],
        originals_folder=settings["ORIGINALS_FOLDER"],
        pdfs_folder=settings["PDFS_FOLDER"],
    )
