"""
Database Models

Book: one record per submitted document (a processing job). Created before
any artifact is stored; never deleted by the pipeline.
"""
from datetime import datetime, timezone

from book_formatter import db


class Book(db.Model):
    __tablename__ = 'books'

    id = db.Column(db.Integer, primary_key=True)
    original_filename = db.Column(db.String(255), nullable=False)
    template_name = db.Column(db.String(50))

    # Artifact references
    original_url = db.Column(db.String(1024))
    original_secure_url = db.Column(db.String(1024))
    pdf_url = db.Column(db.String(1024))
    pdf_secure_url = db.Column(db.String(1024))
    page_count = db.Column(db.Integer)

    # Outcome
    processed_at = db.Column(db.DateTime(timezone=True))
    error_message = db.Column(db.Text)

    # Timestamps
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime(timezone=True), onupdate=lambda: datetime.now(timezone.utc))

    @property
    def is_processed(self):
        return self.processed_at is not None

    def to_dict(self):
        """Convert book to dictionary for API responses"""
        result = {
            'id': self.id,
            'originalFilename': self.original_filename,
            'templateName': self.template_name,
            'originalUrl': self.original_secure_url,
            'pdfUrl': self.pdf_secure_url,
            'pageCount': self.page_count,
            'errorMessage': self.error_message,
            'processed': self.is_processed,
        }
        for key, value in (('processedAt', self.processed_at),
                           ('createdAt', self.created_at),
                           ('updatedAt', self.updated_at)):
            result[key] = value.isoformat() if value else None
        return result
