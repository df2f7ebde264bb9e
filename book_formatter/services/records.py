"""Job record persistence on top of Flask-SQLAlchemy."""
from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError

from book_formatter import db
from book_formatter.errors import PersistenceError
from book_formatter.models import Book

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({
    'template_name',
    'original_url',
    'original_secure_url',
    'pdf_url',
    'pdf_secure_url',
    'page_count',
    'processed_at',
    'error_message',
})


class RecordStore:
    """One Book row per job. Each update commits on its own."""

    def create(self, original_filename: str) -> Book:
        try:
            book = Book(original_filename=original_filename)
            db.session.add(book)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceError(f"Could not create book record: {exc}") from exc
        logger.info("Created book record %s for %s", book.id, original_filename)
        return book

    def get(self, book_id: int) -> Optional[Book]:
        try:
            return db.session.get(Book, book_id)
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceError(f"Could not load book {book_id}: {exc}") from exc

    def update(self, book_id: int, **fields: Any) -> None:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown book fields: {sorted(unknown)}")
        try:
            book = db.session.get(Book, book_id)
            if book is None:
                raise PersistenceError(f"Book {book_id} does not exist")
            for key, value in fields.items():
                setattr(book, key, value)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceError(f"Could not update book {book_id}: {exc}") from exc
