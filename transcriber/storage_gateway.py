"""
Thin wrapper around Google Cloud Storage.

The pipeline only needs three operations on blobs: download to a local
path, upload from a local path and delete.  Keeping them behind
:class:`GcsStore` lets the reassembly and handler code receive the store as a
parameter, so tests can pass an in-memory fake instead of a real client.
"""

from __future__ import annotations

import logging
import os
from typing import Optional, Protocol

from google.cloud import storage

logger = logging.getLogger(__name__)


class ObjectStore(Protocol):
    """Blob operations the pipeline needs; implemented by :class:`GcsStore`."""

    def download(self, bucket_name: str, blob_name: str, directory: str) -> str: ...

    def upload(
        self,
        local_path: str,
        bucket_name: str,
        blob_name: Optional[str] = None,
        *,
        content_type: Optional[str] = None,
    ) -> str: ...

    def delete(self, bucket_name: str, blob_name: str) -> None: ...


def gcs_uri(bucket_name: str, blob_name: str) -> str:
    return f"gs://{bucket_name}/{blob_name}"


class GcsStore:
    """Blob operations on Cloud Storage using a lazily created client."""

    def __init__(self, client: Optional[storage.Client] = None):
        self._client = client

    @property
    def client(self) -> storage.Client:
        if self._client is None:
            self._client = storage.Client()
        return self._client

    def download(self, bucket_name: str, blob_name: str, directory: str) -> str:
        """Download ``blob_name`` into ``directory`` and return the local path."""
        os.makedirs(directory, exist_ok=True)
        local_path = os.path.join(directory, os.path.basename(blob_name))
        blob = self.client.bucket(bucket_name).blob(blob_name)
        blob.download_to_filename(local_path)
        logger.info("Downloaded %s to %s", gcs_uri(bucket_name, blob_name), local_path)
        return local_path

    def upload(
        self,
        local_path: str,
        bucket_name: str,
        blob_name: Optional[str] = None,
        *,
        content_type: Optional[str] = None,
    ) -> str:
        """Upload a local file and return its ``gs://`` URI.

        The blob is named after the local file unless ``blob_name`` is given.
        """
        blob_name = blob_name or os.path.basename(local_path)
        blob = self.client.bucket(bucket_name).blob(blob_name)
        blob.upload_from_filename(local_path, content_type=content_type)
        uri = gcs_uri(bucket_name, blob_name)
        logger.info("Uploaded %s to %s", local_path, uri)
        return uri

    def delete(self, bucket_name: str, blob_name: str) -> None:
        self.client.bucket(bucket_name).blob(blob_name).delete()
        logger.info("Deleted %s", gcs_uri(bucket_name, blob_name))
