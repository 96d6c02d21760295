# helperbars/core/templating/helpers/cloud.py
"""Cloud Storage object reads."""
from typing import Any, Callable, Dict

import structlog
from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import storage

from helperbars.exceptions import TransportError

log = structlog.get_logger(__name__)


def gcloud_storage_get(bucket: str, object_name: str) -> str:
    """Download ``gs://bucket/object_name`` as UTF-8 text using ambient credentials."""
    log.debug("gcloud_storage_get", bucket=bucket, object=object_name)
    try:
        client = storage.Client()
        return client.bucket(bucket).blob(object_name).download_as_text()
    except (google_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError) as e:
        log.warning("gcloud_storage_get_failed", bucket=bucket, object=object_name, error=str(e))
        raise TransportError(f"gs://{bucket}/{object_name}: {e}") from e


HELPERS: Dict[str, Callable[..., Any]] = {
    "gcloud_storage_get": gcloud_storage_get,
}
