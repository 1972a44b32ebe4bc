from __future__ import annotations
"""Generation-aware access to objects stored in Google Cloud Storage."""
from contextlib import contextmanager
import logging
import os
from typing import Callable, Iterator, Optional

from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from google.cloud.storage.exceptions import DataCorruption, InvalidResponse
from requests import RequestException

from .errors import BackendError, LocalIOError, NotVersionedError
from .models import BucketAttributes, ObjectAttributes, ObjectReference
from .progress import ProgressBar, ProgressReader
from .settings import ClientSettings
from .transport import create_storage_client

LOGGER = logging.getLogger(__name__)

# RequestException derives from OSError, so backend errors are matched first.
BACKEND_ERRORS = (GoogleAPIError, GoogleAuthError, RequestException, DataCorruption, InvalidResponse)

# Resumable upload chunks must be a multiple of 256 KiB.
UPLOAD_CHUNK_ALIGNMENT = 256 * 1024


@contextmanager
def _backend_call(action: str) -> Iterator[None]:
    try:
        yield
    except BACKEND_ERRORS as exc:
        raise BackendError(f"Failed to {action}: {exc}", code=getattr(exc, "code", None)) from exc


@contextmanager
def _local_io(action: str) -> Iterator[None]:
    try:
        yield
    except OSError as exc:
        raise LocalIOError(f"Failed to {action}: {exc}") from exc


class GCSClient:
    """Reads, writes, lists and deletes objects with generation pinning.

    Every operation re-reads the bucket's versioning state when it matters; nothing
    is cached between calls.
    """

    def __init__(
        self,
        progress_output=None,
        json_key: str = "",
        *,
        settings: ClientSettings | None = None,
        client_factory: Callable[..., object] | None = None,
    ):
        self._settings = settings or ClientSettings()
        factory = client_factory or create_storage_client
        self._storage = factory(json_key=json_key, user_agent=self._settings.user_agent)
        self._progress_output = progress_output

    def get_bucket_attributes(self, *, bucket_name: str) -> BucketAttributes:
        with _backend_call(f"get attributes of bucket {bucket_name}"):
            bucket = self._storage.get_bucket(bucket_name)
        return BucketAttributes(
            name=bucket.name,
            versioning_enabled=bool(bucket.versioning_enabled),
        )

    def get_versioning(self, *, bucket_name: str) -> bool:
        """Return whether object versioning is enabled on the bucket.

        Raises:
            BackendError: when the bucket does not exist or cannot be read.
        """
        return self.get_bucket_attributes(bucket_name=bucket_name).versioning_enabled

    def list_objects(self, *, bucket_name: str, prefix: str = "") -> list[str]:
        """Return the names of live objects starting with ``prefix``.

        Only the latest version of each object is listed, in backend order.
        """
        LOGGER.debug("Listing objects in %s with prefix %r", bucket_name, prefix)
        with _backend_call(f"list objects in bucket {bucket_name}"):
            return [
                blob.name
                for blob in self._iter_blobs(bucket_name, prefix=prefix, versions=False)
                if blob.name.startswith(prefix)
            ]

    def list_generations(self, *, bucket_name: str, object_path: str) -> list[int]:
        """Return every generation stored for exactly ``object_path``.

        Raises:
            NotVersionedError: when the bucket does not keep object history.
            BackendError: when the bucket or a listing page cannot be read.
        """
        if not self.get_versioning(bucket_name=bucket_name):
            raise NotVersionedError(bucket_name)

        LOGGER.debug("Listing generations of gs://%s/%s", bucket_name, object_path)
        with _backend_call(f"list generations of gs://{bucket_name}/{object_path}"):
            # The prefix also matches sibling keys such as "<path>.bak".
            return [
                int(blob.generation)
                for blob in self._iter_blobs(bucket_name, prefix=object_path, versions=True)
                if blob.name == object_path
            ]

    def get_object_info(self, *, bucket_name: str, object_path: str, generation: int = 0) -> ObjectAttributes:
        """Fetch fresh attributes of the live object, or of a pinned generation."""
        reference = ObjectReference(bucket=bucket_name, path=object_path, generation=generation)
        blob = self._blob(reference)
        with _backend_call(f"get attributes of {reference.url}"):
            blob.reload()
        return ObjectAttributes.from_blob(blob)

    def download(self, *, bucket_name: str, object_path: str, destination: str, generation: int = 0) -> None:
        """Stream an object into ``destination``, overwriting it.

        A failed transfer leaves the partially written destination in place.

        Raises:
            NotVersionedError: when ``generation`` is set on an unversioned bucket.
            LocalIOError: when the destination cannot be created or written.
            BackendError: when the object cannot be read.
        """
        reference = ObjectReference(bucket=bucket_name, path=object_path, generation=generation)
        versioned = self.get_versioning(bucket_name=bucket_name)
        if reference.is_pinned and not versioned:
            raise NotVersionedError(bucket_name)

        LOGGER.debug("Downloading %s to %s", reference.url, destination)
        blob = self._blob(reference)
        with _local_io(f"open {destination} for writing"):
            local_file = open(destination, "wb")
        with local_file:
            with _local_io(f"write {destination}"), _backend_call(f"download {reference.url}"):
                blob.download_to_file(local_file)

    def upload(
        self,
        *,
        bucket_name: str,
        object_path: str,
        source_path: str,
        content_type: str = "",
        predefined_acl: str = "",
        cache_control: str = "",
    ) -> int:
        """Replace the object at ``object_path`` with the contents of a local file.

        Content type and cache control are patched onto the object once the write
        has committed. If that patch fails the uploaded content stays in place and
        :class:`BackendError` is raised.

        Returns:
            The new generation when the bucket is versioned, otherwise ``0``.
        """
        reference = ObjectReference(bucket=bucket_name, path=object_path)
        versioned = self.get_versioning(bucket_name=bucket_name)

        with _local_io(f"stat {source_path}"):
            size = os.stat(source_path).st_size
        with _local_io(f"open {source_path}"):
            local_file = open(source_path, "rb")

        LOGGER.debug("Uploading %s (%d bytes) to %s", source_path, size, reference.url)
        blob = self._blob(reference, chunk_size=self._upload_chunk_size())
        progress = self._new_progress_bar(size)
        with local_file:
            progress.start()
            try:
                with _local_io(f"read {source_path}"), _backend_call(f"upload {source_path} to {reference.url}"):
                    blob.upload_from_file(
                        ProgressReader(local_file, progress),
                        predefined_acl=predefined_acl or None,
                    )
            finally:
                progress.finish()

        self._patch_metadata(blob, reference, content_type=content_type, cache_control=cache_control)

        if versioned:
            return self.get_object_info(bucket_name=bucket_name, object_path=object_path).generation
        return 0

    def delete(self, *, bucket_name: str, object_path: str, generation: int = 0) -> None:
        """Delete the live object, or exactly one generation when pinned."""
        reference = ObjectReference(bucket=bucket_name, path=object_path, generation=generation)
        if reference.is_pinned and not self.get_versioning(bucket_name=bucket_name):
            raise NotVersionedError(bucket_name)

        LOGGER.debug("Deleting %s", reference.url)
        with _backend_call(f"delete {reference.url}"):
            self._blob(reference).delete()

    def resolve_url(self, *, bucket_name: str, object_path: str, generation: int = 0) -> str:
        """Return ``gs://bucket/path``, with ``#generation`` appended when pinned.

        Raises:
            BackendError: when the object (or generation) does not exist.
        """
        attributes = self.get_object_info(bucket_name=bucket_name, object_path=object_path, generation=generation)
        if generation:
            return ObjectReference(bucket=bucket_name, path=object_path, generation=attributes.generation).url
        return ObjectReference(bucket=bucket_name, path=object_path).url

    def _iter_blobs(self, bucket_name: str, *, prefix: str, versions: bool):
        iterator = self._storage.list_blobs(bucket_name, prefix=prefix or None, versions=versions)
        for page in iterator.pages:
            yield from page

    def _blob(self, reference: ObjectReference, chunk_size: Optional[int] = None):
        bucket = self._storage.bucket(reference.bucket)
        return bucket.blob(
            reference.path,
            chunk_size=chunk_size,
            generation=reference.generation or None,
        )

    def _patch_metadata(self, blob, reference: ObjectReference, *, content_type: str, cache_control: str) -> None:
        if not content_type and not cache_control:
            return
        if content_type:
            blob.content_type = content_type
        if cache_control:
            blob.cache_control = cache_control
        with _backend_call(f"update metadata of {reference.url}"):
            blob.patch()

    def _upload_chunk_size(self) -> int:
        chunks = -(-self._settings.copy_buffer_size // UPLOAD_CHUNK_ALIGNMENT)
        return max(chunks, 1) * UPLOAD_CHUNK_ALIGNMENT

    def _new_progress_bar(self, total: int) -> ProgressBar:
        return ProgressBar(total, self._progress_output, width=self._settings.progress_width)
