"""Storage for uploaded employee documents."""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path

from payroll_admin.errors import FieldError

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPES = {"application/pdf", "application/x-pdf"}
PDF_SIGNATURE = b"%PDF"


def format_file_size(size_bytes: float) -> str:
    """Format file size in human readable format."""
    for unit in ["B", "KB", "MB", "GB"]:
        if size_bytes < 1024:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024
    return f"{size_bytes:.1f} TB"


@dataclass(frozen=True)
class UploadedDocument:
    """An uploaded file, already read into memory."""

    field: str
    filename: str
    content_type: str | None
    content: bytes


def validate_pdf(document: UploadedDocument, max_bytes: int) -> list[FieldError]:
    """Check that an upload is a non-empty PDF within the size limit."""
    errors = []
    if not document.content:
        errors.append(FieldError(document.field, "file is required"))
        return errors
    if len(document.content) > max_bytes:
        errors.append(
            FieldError(
                document.field,
                f"file exceeds maximum size of {format_file_size(max_bytes)}",
            )
        )
    is_pdf_type = (document.content_type or "").lower() in PDF_CONTENT_TYPES
    if not is_pdf_type or not document.content.startswith(PDF_SIGNATURE):
        errors.append(FieldError(document.field, "file must be a PDF document"))
    return errors


class LocalDocumentStorage:
    """Stores documents under a root directory on local disk."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    async def save(self, folder: str, document: UploadedDocument) -> str:
        """Write the document and return its storage path (relative to root)."""
        relative = Path(folder) / f"{uuid.uuid4().hex}.pdf"
        target = self.root / relative
        await asyncio.to_thread(self._write, target, document.content)
        logger.debug(
            "Stored %s as %s (%s)",
            document.filename,
            relative,
            format_file_size(len(document.content)),
        )
        return relative.as_posix()

    async def delete(self, path: str) -> None:
        await asyncio.to_thread((self.root / path).unlink, True)
        logger.debug("Removed %s", path)

    async def read(self, path: str) -> bytes:
        return await asyncio.to_thread((self.root / path).read_bytes)

    @staticmethod
    def _write(target: Path, content: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
