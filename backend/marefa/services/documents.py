"""
Research document storage: uploads are written under UPLOAD_DIR with a
unique name, and removed together with their Document row.
"""
import logging
import secrets
import time
from pathlib import Path
from typing import List

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool

from ..config import settings
from ..core.errors import NotFound, ValidationError
from ..models.document import Document
from ..models.user import User

logger = logging.getLogger("uvicorn.error")

ALLOWED_MIME_TYPES = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/plain",
}

_CHUNK = 1024 * 1024


def _stored_name(original: str) -> str:
    ext = Path(original or "").suffix.lower()
    return f"file-{int(time.time() * 1000)}-{secrets.token_hex(6)}{ext}"


async def save_upload(upload: UploadFile) -> str:
    """Write an upload to UPLOAD_DIR, enforcing type and size; returns the stored path."""
    if upload.content_type not in ALLOWED_MIME_TYPES:
        raise ValidationError("Invalid file type. Only PDF, DOC, DOCX, and TXT files are allowed.")

    upload_dir = Path(settings.upload_dir)
    await run_in_threadpool(upload_dir.mkdir, parents=True, exist_ok=True)
    path = upload_dir / _stored_name(upload.filename)

    size = 0
    out = await run_in_threadpool(path.open, "wb")
    try:
        try:
            while chunk := await upload.read(_CHUNK):
                size += len(chunk)
                if size > settings.max_upload_bytes:
                    raise ValidationError("File too large. Maximum size is 10MB.")
                await run_in_threadpool(out.write, chunk)
        finally:
            await run_in_threadpool(out.close)
    except ValidationError:
        await run_in_threadpool(path.unlink, missing_ok=True)
        raise
    return str(path)


async def create_document(
    upload: UploadFile,
    uploader: User,
    title: str,
    author: str,
    category: str,
    description: str | None = None,
) -> Document:
    fields = {"title": title, "author": author, "category": category}
    for name, value in fields.items():
        if not (value or "").strip():
            raise ValidationError(f"{name.capitalize()} is required")

    path = await save_upload(upload)
    try:
        return await Document.create(
            title=title.strip(),
            author=author.strip(),
            category=category.strip(),
            description=(description or "").strip() or None,
            file_url=path,
            file_type=upload.content_type,
            uploaded_by=uploader,
        )
    except Exception:
        await run_in_threadpool(Path(path).unlink, missing_ok=True)
        raise


async def list_documents() -> List[Document]:
    return await Document.all().order_by("-created_at").prefetch_related("uploaded_by")


async def get_document(document_id) -> Document:
    doc = await Document.get_or_none(id=document_id).prefetch_related("uploaded_by")
    if not doc:
        raise NotFound("Document not found")
    return doc


async def delete_document(document_id) -> None:
    """Remove the row first; the stored file goes once the delete has committed."""
    doc = await Document.get_or_none(id=document_id)
    if not doc:
        raise NotFound("Document not found")
    path = Path(doc.file_url) if doc.file_url else None
    await doc.delete()

    if path is None or not await run_in_threadpool(path.exists):
        logger.warning("[documents] stored file missing for %s: %s", document_id, doc.file_url)
        return
    await run_in_threadpool(path.unlink, missing_ok=True)
