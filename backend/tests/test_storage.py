"""Document storage tests."""

import pytest

from legalhub.utils.storage import DocumentUpload, LocalDocumentStorage, StorageError


def _upload(filename="cert.PDF", content=b"%PDF-1.4"):
    return DocumentUpload(filename=filename, content_type="application/pdf", content=content)


@pytest.mark.unit
class TestLocalDocumentStorage:

    def test_store_and_delete(self, tmp_path):
        storage = LocalDocumentStorage(tmp_path)

        reference = storage.store(_upload(), "lawyers/u1/documents")

        assert reference.startswith("lawyers/u1/documents/")
        assert reference.endswith(".pdf")
        assert (tmp_path / reference).read_bytes() == b"%PDF-1.4"

        storage.delete(reference)
        assert not (tmp_path / reference).exists()

    def test_each_upload_gets_own_file(self, tmp_path):
        storage = LocalDocumentStorage(tmp_path)
        first = storage.store(_upload(), "lawyers/u1/documents")
        second = storage.store(_upload(), "lawyers/u1/documents")
        assert first != second

    def test_delete_missing_is_noop(self, tmp_path):
        LocalDocumentStorage(tmp_path).delete("lawyers/u1/documents/gone.pdf")

    def test_empty_upload_rejected(self, tmp_path):
        with pytest.raises(StorageError):
            LocalDocumentStorage(tmp_path).store(_upload(content=b""), "lawyers/u1")

    def test_reference_cannot_escape_root(self, tmp_path):
        storage = LocalDocumentStorage(tmp_path / "documents")
        with pytest.raises(StorageError):
            storage.store(_upload(), "../outside")
        with pytest.raises(StorageError):
            storage.delete("../../etc/passwd")


@pytest.mark.unit
def test_upload_metadata():
    upload = _upload(filename="My CV.DOCX", content=b"12345")
    assert upload.extension == "docx"
    assert upload.size == 5
    assert _upload(filename="README").extension == ""
