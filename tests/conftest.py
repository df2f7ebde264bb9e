"""
Test Configuration and Fixtures
"""
import io

import docx
import pytest
from PyPDF2 import PdfWriter

from book_formatter import create_app, db
from book_formatter.errors import StorageError
from book_formatter.services.storage import ArtifactKind, StoredArtifact

DOCX_MIMETYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def make_docx(heading="Chapter One", paragraphs=("It was a bright cold day in April.",)):
    document = docx.Document()
    document.add_heading(heading, level=1)
    for text in paragraphs:
        document.add_paragraph(text)
    buf = io.BytesIO()
    document.save(buf)
    return buf.getvalue()


def make_pdf(pages=2):
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=595, height=842)
    buf = io.BytesIO()
    writer.write(buf)
    return buf.getvalue()


class FakeArtifactStore:
    """Records uploads in memory; can be told to fail for one artifact kind"""

    def __init__(self, fail_kind=None):
        self.fail_kind = fail_kind
        self.uploads = []

    def upload(self, data, folder, kind, key):
        if kind is self.fail_kind:
            raise StorageError(f"Upload of {folder}/{key} failed: simulated outage")
        suffix = ".pdf" if kind is ArtifactKind.DOCUMENT else ".docx"
        object_key = f"{folder}/{key}{suffix}"
        self.uploads.append((object_key, kind, data))
        return StoredArtifact(
            key=object_key,
            url=f"s3://test-bucket/{object_key}",
            secure_url=f"https://test-bucket.s3.us-east-1.amazonaws.com/{object_key}",
        )


class FakeRenderer:
    def __init__(self, error=None):
        self.error = error
        self.rendered = []

    def render(self, html):
        self.rendered.append(html)
        if self.error is not None:
            raise self.error
        return make_pdf()


@pytest.fixture(scope='session')
def app():
    """Create application for testing"""
    app = create_app('testing')

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client"""
    return app.test_client()


@pytest.fixture(scope='function')
def pipeline(app):
    return app.extensions["book_pipeline"]


@pytest.fixture(scope='function')
def fake_store(pipeline, monkeypatch):
    store = FakeArtifactStore()
    monkeypatch.setattr(pipeline, "store", store)
    return store


@pytest.fixture(scope='function')
def fake_renderer(pipeline, monkeypatch):
    renderer = FakeRenderer()
    monkeypatch.setattr(pipeline, "renderer", renderer)
    return renderer


@pytest.fixture(scope='function')
def docx_bytes():
    return make_docx()


def upload_form(data, filename='manuscript.docx', mimetype=DOCX_MIMETYPE, template_name=None):
    form = {'file': (io.BytesIO(data), filename, mimetype)}
    if template_name is not None:
        form['templateName'] = template_name
    return form
