from __future__ import annotations

import os
import uuid

from fastapi import UploadFile

from .config import settings
from .errors import ValidationError
from .logging_config import get_logger

logger = get_logger(__name__)

RESUME_SUBDIR = "resumes"
CHUNK_SIZE = 64 * 1024


def _is_pdf(upload: UploadFile) -> bool:
    ext = os.path.splitext(upload.filename or "")[1].lower()
    return upload.content_type == "application/pdf" or ext == ".pdf"


def save_resume(upload: UploadFile) -> str:
    """Store an uploaded resume and return its public ``/uploads/...`` path."""
    if not _is_pdf(upload):
        raise ValidationError("Only PDF files are allowed for resumes")

    target_dir = os.path.join(settings.UPLOAD_DIR, RESUME_SUBDIR)
    os.makedirs(target_dir, exist_ok=True)
    filename = f"resume-{uuid.uuid4().hex}.pdf"
    path = os.path.join(target_dir, filename)

    written = 0
    try:
        with open(path, "wb") as out:
            while True:
                chunk = upload.file.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > settings.MAX_RESUME_BYTES:
                    limit_mb = settings.MAX_RESUME_BYTES / (1024 * 1024)
                    raise ValidationError(f"File too large. Maximum size is {limit_mb:g}MB")
                out.write(chunk)
    except Exception:
        if os.path.exists(path):
            os.remove(path)
        raise

    if written == 0:
        os.remove(path)
        raise ValidationError("Uploaded resume is empty")

    logger.info("Stored resume %s (%d bytes)", filename, written)
    return f"/uploads/{RESUME_SUBDIR}/{filename}"


def discard_resume(public_path: str) -> None:
    """Remove a resume stored by :func:`save_resume` that ended up unused."""
    filename = os.path.basename(public_path)
    path = os.path.join(settings.UPLOAD_DIR, RESUME_SUBDIR, filename)
    if os.path.exists(path):
        os.remove(path)
        logger.info("Discarded unused resume %s", filename)
