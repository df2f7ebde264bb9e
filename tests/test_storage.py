"""
Artifact storage tests against a stubbed S3 client
"""
import boto3
import pytest
from botocore.stub import Stubber

from book_formatter.errors import StorageError
from book_formatter.services.storage import ArtifactKind, ArtifactStore, artifact_key


@pytest.fixture
def s3_client():
    return boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


class TestArtifactStore:

    def test_upload_pdf(self, s3_client):
        store = ArtifactStore("books", "us-east-1", client=s3_client)
        with Stubber(s3_client) as stubber:
            stubber.add_response("put_object", {}, {
                "Bucket": "books",
                "Key": "book-formatter/pdfs/book-7-1700000000000.pdf",
                "Body": b"%PDF-1.7",
                "ContentType": "application/pdf",
            })
            artifact = store.upload(b"%PDF-1.7", "book-formatter/pdfs", ArtifactKind.DOCUMENT, "book-7-1700000000000")
            stubber.assert_no_pending_responses()

        assert artifact.url == "s3://books/book-formatter/pdfs/book-7-1700000000000.pdf"
        assert artifact.secure_url == "https://books.s3.us-east-1.amazonaws.com/book-formatter/pdfs/book-7-1700000000000.pdf"

    def test_original_uses_docx_content_type(self, s3_client):
        store = ArtifactStore("books", "us-east-1", public_base_url="https://cdn.example.com/", client=s3_client)
        with Stubber(s3_client) as stubber:
            stubber.add_response("put_object", {}, {
                "Bucket": "books",
                "Key": "originals/book-1-5.docx",
                "Body": b"PK",
                "ContentType": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            })
            artifact = store.upload(b"PK", "originals/", ArtifactKind.RAW, "book-1-5")

        assert artifact.secure_url == "https://cdn.example.com/originals/book-1-5.docx"

    def test_client_error_becomes_storage_error(self, s3_client):
        store = ArtifactStore("books", "us-east-1", client=s3_client)
        with Stubber(s3_client) as stubber:
            stubber.add_client_error("put_object", service_error_code="AccessDenied", http_status_code=403)
            with pytest.raises(StorageError, match="AccessDenied"):
                store.upload(b"PK", "originals", ArtifactKind.RAW, "book-1-5")

    def test_missing_bucket(self):
        with pytest.raises(StorageError, match="AWS_S3_BUCKET"):
            ArtifactStore("", "us-east-1").upload(b"PK", "originals", ArtifactKind.RAW, "book-1-5")


def test_artifact_key_includes_book_id():
    key = artifact_key(42)
    prefix, book_id, millis = key.split("-")
    assert prefix == "book"
    assert book_id == "42"
    assert millis.isdigit()
