"""
Invoice Uploads

Admins upload supplier invoices (PDF or Excel). The file is stored on the
data volume and handed to a Celery task that forwards it to the
extraction webhook, so the request returns as soon as the file is safe
on disk.
"""

import asyncio
import logging
import re
import uuid
from pathlib import Path
from typing import Optional

from celery.result import AsyncResult
from fastapi import UploadFile

from storefront.celery_worker import celery_app
from storefront.core.config import get_settings
from storefront.tasks import forward_invoice

logger = logging.getLogger(__name__)

INVOICE_SUBDIRECTORY = "invoices"


class InvoiceError(Exception):
    """Rejected upload."""


class InvoiceTooLarge(InvoiceError):
    pass


def _safe_name(filename: str) -> str:
    name = Path(filename).name
    return re.sub(r"[^A-Za-z0-9._-]", "_", name) or "invoice"


def validate_invoice_name(filename: Optional[str]) -> str:
    """Return the lowercase extension, or raise if it is not accepted."""
    settings = get_settings()
    if not filename:
        raise InvoiceError("No file provided")

    extension = Path(filename).suffix.lower()
    allowed = settings.allowed_invoice_extensions_list
    if extension not in allowed:
        raise InvoiceError(
            f"Unsupported file type '{extension or filename}'. Allowed: {', '.join(allowed)}"
        )
    return extension


async def save_invoice(upload: UploadFile) -> tuple[Path, int]:
    """
    Validate and persist an uploaded invoice.

    Returns:
        (stored path, size in bytes)

    Raises:
        InvoiceError: bad extension, empty file or too large
    """
    settings = get_settings()
    validate_invoice_name(upload.filename)

    content = await upload.read(settings.max_invoice_bytes + 1)
    if not content:
        raise InvoiceError("Uploaded file is empty")
    if len(content) > settings.max_invoice_bytes:
        raise InvoiceTooLarge(
            f"File too large. Maximum size is {settings.max_invoice_bytes // (1024 * 1024)} MB"
        )

    directory = Path(settings.data_directory) / INVOICE_SUBDIRECTORY
    path = directory / f"{uuid.uuid4().hex[:12]}_{_safe_name(upload.filename)}"

    def write():
        directory.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)

    await asyncio.to_thread(write)
    logger.info(f"📄 Stored invoice {upload.filename} ({len(content)} bytes) at {path}")
    return path, len(content)


def queue_invoice(path: Path, filename: str) -> str:
    """Queue the webhook delivery and return the Celery task id."""
    task = forward_invoice.delay(str(path), filename)
    logger.info(f"Queued invoice {filename} as task {task.id}")
    return task.id


def invoice_status(task_id: str) -> tuple[str, Optional[dict]]:
    result = AsyncResult(task_id, app=celery_app)
    payload = result.result if result.ready() else None
    if isinstance(payload, Exception):
        payload = {"error": str(payload)}
    return result.state, payload
