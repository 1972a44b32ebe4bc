"""In-memory stand-in for ``google.cloud.storage.Client`` used by the tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import itertools
from types import SimpleNamespace

from google.api_core.exceptions import NotFound


@dataclass
class StoredVersion:
    name: str
    generation: int
    data: bytes
    live: bool = True
    content_type: str | None = "application/octet-stream"
    cache_control: str | None = None
    metageneration: int = 1
    predefined_acl: str | None = None


@dataclass
class StoredBucket:
    name: str
    versioning_enabled: bool = False
    versions: list[StoredVersion] = field(default_factory=list)

    def live(self, name: str) -> StoredVersion | None:
        for version in self.versions:
            if version.name == name and version.live:
                return version
        return None

    def find(self, name: str, generation: int | None) -> StoredVersion | None:
        if not generation:
            return self.live(name)
        for version in self.versions:
            if version.name == name and version.generation == generation:
                return version
        return None


class FakeIterator:
    def __init__(self, pages, error_after_page=None):
        self._pages = pages
        self._error_after_page = error_after_page

    @property
    def pages(self):
        for index, page in enumerate(self._pages):
            yield iter(page)
            if self._error_after_page is not None and index + 1 == self._error_after_page[0]:
                raise self._error_after_page[1]


class FakeBlob:
    def __init__(self, client: "FakeStorageClient", bucket: "FakeBucket", name: str, chunk_size=None, generation=None):
        self._client = client
        self.bucket = bucket
        self.name = name
        self.chunk_size = chunk_size
        self.generation = generation
        self.size = None
        self.content_type = None
        self.cache_control = None
        self.metageneration = None
        self.md5_hash = None
        self.crc32c = None
        self.updated = None

    def _stored_bucket(self) -> StoredBucket:
        try:
            return self._client.buckets[self.bucket.name]
        except KeyError:
            raise NotFound(f"bucket {self.bucket.name} not found") from None

    def _require_version(self) -> StoredVersion:
        version = self._stored_bucket().find(self.name, self.generation)
        if version is None:
            raise NotFound(f"object {self.name}#{self.generation} not found")
        return version

    def _load(self, version: StoredVersion) -> None:
        self.generation = version.generation
        self.size = len(version.data)
        self.content_type = version.content_type
        self.cache_control = version.cache_control
        self.metageneration = version.metageneration
        self.md5_hash = "md5"
        self.crc32c = "crc"
        self.updated = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def reload(self):
        self._client.calls.append(("reload", self.bucket.name, self.name, self.generation))
        self._load(self._require_version())

    def download_to_file(self, file_obj):
        self._client.calls.append(("download", self.bucket.name, self.name, self.generation))
        version = self._require_version()
        chunk = 4
        for offset in range(0, len(version.data), chunk):
            if self._client.download_error is not None and offset >= chunk:
                raise self._client.download_error
            file_obj.write(version.data[offset:offset + chunk])

    def upload_from_file(self, file_obj, predefined_acl=None):
        self._client.calls.append(("upload", self.bucket.name, self.name, predefined_acl))
        stored = self._stored_bucket()
        parts = []
        while True:
            chunk = file_obj.read(self.chunk_size or 1024)
            if not chunk:
                break
            parts.append(chunk)
        if self._client.upload_error is not None:
            raise self._client.upload_error
        previous = stored.live(self.name)
        if previous is not None:
            if stored.versioning_enabled:
                previous.live = False
            else:
                stored.versions.remove(previous)
        version = StoredVersion(
            name=self.name,
            generation=next(self._client.generations),
            data=b"".join(parts),
            predefined_acl=predefined_acl,
        )
        stored.versions.append(version)
        self._load(version)

    def patch(self):
        self._client.calls.append(("patch", self.bucket.name, self.name, self.generation))
        if self._client.patch_error is not None:
            raise self._client.patch_error
        version = self._require_version()
        version.content_type = self.content_type
        version.cache_control = self.cache_control
        version.metageneration += 1
        self._load(version)

    def delete(self):
        self._client.calls.append(("delete", self.bucket.name, self.name, self.generation))
        stored = self._stored_bucket()
        version = self._require_version()
        if not self.generation and stored.versioning_enabled:
            version.live = False
        else:
            stored.versions.remove(version)


class FakeBucket:
    def __init__(self, client: "FakeStorageClient", name: str):
        self._client = client
        self.name = name

    def blob(self, blob_name, chunk_size=None, generation=None):
        return FakeBlob(self._client, self, blob_name, chunk_size=chunk_size, generation=generation)


class FakeStorageClient:
    """Records every backend call; listing is split into pages of ``page_size``."""

    def __init__(self, page_size: int = 2):
        self.buckets: dict[str, StoredBucket] = {}
        self.page_size = page_size
        self.generations = itertools.count(1000)
        self.calls: list[tuple] = []
        self.list_blobs_kwargs: list[dict] = []
        self.list_error = None
        self.download_error = None
        self.upload_error = None
        self.patch_error = None
        self.factory_kwargs: dict = {}

    def factory(self, **kwargs):
        self.factory_kwargs = kwargs
        return self

    def add_bucket(self, name: str, *, versioning_enabled: bool = False) -> StoredBucket:
        bucket = StoredBucket(name=name, versioning_enabled=versioning_enabled)
        self.buckets[name] = bucket
        return bucket

    def put(self, bucket_name: str, name: str, data: bytes = b"", *, generation=None, live=True) -> StoredVersion:
        version = StoredVersion(
            name=name,
            generation=generation if generation is not None else next(self.generations),
            data=data,
            live=live,
        )
        self.buckets[bucket_name].versions.append(version)
        return version

    def get_bucket(self, bucket_name):
        self.calls.append(("get_bucket", bucket_name))
        if bucket_name not in self.buckets:
            raise NotFound(f"bucket {bucket_name} not found")
        stored = self.buckets[bucket_name]
        return SimpleNamespace(name=stored.name, versioning_enabled=stored.versioning_enabled)

    def bucket(self, bucket_name):
        return FakeBucket(self, bucket_name)

    def list_blobs(self, bucket_or_name, prefix=None, versions=False):
        self.calls.append(("list_blobs", bucket_or_name))
        self.list_blobs_kwargs.append({"bucket": bucket_or_name, "prefix": prefix, "versions": versions})
        if bucket_or_name not in self.buckets:
            raise NotFound(f"bucket {bucket_or_name} not found")
        stored = self.buckets[bucket_or_name]
        entries = []
        for version in stored.versions:
            if not versions and not version.live:
                continue
            if prefix and not version.name.startswith(prefix):
                continue
            blob = FakeBlob(self, FakeBucket(self, bucket_or_name), version.name, generation=version.generation)
            blob._load(version)
            entries.append(blob)
        pages = [entries[i:i + self.page_size] for i in range(0, len(entries), self.page_size)] or [[]]
        return FakeIterator(pages, error_after_page=self.list_error)

    def network_calls(self, kind: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == kind]
