"""Read-only access to uploaded files in Google Cloud Storage."""

import asyncio
import json
import logging
from functools import lru_cache

from google.cloud import storage

from dragon_api.config.settings import get_settings

logger = logging.getLogger(__name__)


class StorageConfigurationError(RuntimeError):
    pass


@lru_cache()
def get_bucket() -> storage.Bucket:
    settings = get_settings()
    if not settings.GCS_CREDENTIALS:
        raise StorageConfigurationError(
            "GCS_CREDENTIALS env var is required. Set it to the full JSON service account key."
        )
    info = json.loads(settings.GCS_CREDENTIALS)
    client = storage.Client.from_service_account_info(info, project=info.get("project_id"))
    logger.info("Using GCS bucket %s", settings.GCS_BUCKET)
    return client.bucket(settings.GCS_BUCKET)


async def download_to_buffer(file_id: str) -> bytes:
    """Download an uploaded object; ``file_id`` is its path inside the bucket."""
    blob = get_bucket().blob(file_id)
    # The GCS client is blocking; keep it off the event loop
    return await asyncio.to_thread(blob.download_as_bytes)
