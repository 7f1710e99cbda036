"""Document storage for onboarding uploads.

The onboarding core only needs two calls: `store(upload, scope_path)`
returning an opaque reference, and `delete(reference)` to drop a file
again when the enclosing save fails.  `LocalDocumentStorage` keeps files
on disk under `settings.document_storage_root`; any object with the same
two methods can be injected instead (see `get_document_storage`).

Usage:
    storage = LocalDocumentStorage("/srv/legalhub/documents")
    ref = storage.store(upload, f"lawyers/{user.id}/documents")
    # ref == "lawyers/<user-id>/documents/3f0c….pdf"
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from pathlib import Path, PurePosixPath
from typing import Iterable, Protocol

from pydantic import BaseModel

from legalhub.config import settings

logger = logging.getLogger(__name__)


class DocumentUpload(BaseModel):
    """An uploaded file, already read into memory by the HTTP layer."""
    filename: str
    content_type: str | None = None
    content: bytes

    @property
    def extension(self) -> str:
        return PurePosixPath(self.filename).suffix.lower().lstrip(".")

    @property
    def size(self) -> int:
        return len(self.content)


class StorageError(Exception):
    """The storage backend could not persist or remove a document."""


class DocumentStorage(Protocol):
    def store(self, upload: DocumentUpload, scope_path: str) -> str: ...

    def delete(self, reference: str) -> None: ...


class LocalDocumentStorage:
    """Filesystem-backed storage; references are paths relative to `root`."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def _resolve(self, reference: str) -> Path:
        path = (self.root / reference).resolve()
        if self.root.resolve() not in path.parents:
            raise StorageError(f"Reference escapes storage root: {reference}")
        return path

    def store(self, upload: DocumentUpload, scope_path: str) -> str:
        if not upload.content:
            raise StorageError(f"Empty upload: {upload.filename}")

        suffix = f".{upload.extension}" if upload.extension else ""
        reference = str(PurePosixPath(scope_path) / f"{uuid.uuid4().hex}{suffix}")
        target = self._resolve(reference)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(upload.content)
        except OSError as e:
            raise StorageError(f"Failed to write {reference}: {e}") from e

        logger.info("Stored document %s (%d bytes)", reference, upload.size)
        return reference

    def delete(self, reference: str) -> None:
        try:
            self._resolve(reference).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete {reference}: {e}") from e


def get_document_storage() -> DocumentStorage:
    """FastAPI dependency: storage backend configured for this process."""
    return LocalDocumentStorage(settings.document_storage_root)


async def remove_documents(storage: DocumentStorage, references: Iterable[str]) -> None:
    """Best-effort delete of stored documents; failures are logged."""
    for reference in references:
        try:
            await asyncio.to_thread(storage.delete, reference)
        except StorageError as e:
            logger.error("Could not remove document %s: %s", reference, e)
