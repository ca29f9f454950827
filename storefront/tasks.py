"""
Celery Tasks
Background jobs that talk to the workflow-automation webhooks.
"""

import mimetypes
import time
from datetime import datetime
from pathlib import Path

import httpx
from celery.utils.log import get_task_logger

from storefront.celery_worker import celery_app
from storefront.core.config import get_settings

logger = get_task_logger(__name__)


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(httpx.HTTPError,),
    retry_backoff=True
)
def forward_invoice(self, file_path: str, filename: str) -> dict:
    """
    Forward an uploaded invoice to the extraction webhook.

    The file is sent as multipart field ``file``; the webhook extracts
    line items on its own schedule, so only delivery is tracked here.

    Args:
        file_path: Saved upload on the shared data volume
        filename: Name the admin uploaded the file under

    Returns:
        dict: Result of the delivery
    """
    task_id = self.request.id
    settings = get_settings()

    if not settings.invoice_webhook_url:
        logger.warning(f"⚠️ Task {task_id}: INVOICE_WEBHOOK_URL not configured, keeping {filename}")
        return {
            'success': False,
            'task_id': task_id,
            'filename': filename,
            'message': 'Invoice webhook not configured',
        }

    path = Path(file_path)
    content_type = mimetypes.guess_type(filename)[0] or 'application/octet-stream'

    logger.info(f"📄 Task {task_id}: Forwarding invoice {filename}")
    start_time = time.time()

    with path.open('rb') as fh:
        response = httpx.post(
            settings.invoice_webhook_url,
            files={'file': (filename, fh, content_type)},
            timeout=settings.webhook_timeout_seconds,
        )
    response.raise_for_status()

    elapsed = round(time.time() - start_time, 3)
    logger.info(f"✅ Task {task_id}: {filename} delivered in {elapsed}s")

    return {
        'success': True,
        'task_id': task_id,
        'filename': filename,
        'status_code': response.status_code,
        'processing_time_seconds': elapsed,
    }


@celery_app.task
def health_check() -> dict:
    """
    Simple health check task to verify Celery is working.
    """
    return {
        'status': 'healthy',
        'worker': 'celery',
        'timestamp': datetime.now().isoformat()
    }
