from __future__ import annotations
"""Read-only views of buckets and objects stored in Google Cloud Storage."""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

URL_SCHEME = "gs"


@dataclass(frozen=True)
class BucketAttributes:
    """Bucket-level attributes relevant to generation handling."""

    name: str
    versioning_enabled: bool = False


@dataclass(frozen=True)
class ObjectReference:
    """Identifies an object, optionally pinned to a single generation.

    A generation of ``0`` means the live (latest) object.
    """

    bucket: str
    path: str
    generation: int = 0

    @property
    def is_pinned(self) -> bool:
        return self.generation != 0

    @property
    def url(self) -> str:
        base = f"{URL_SCHEME}://{self.bucket}/{self.path}"
        if self.is_pinned:
            return f"{base}#{self.generation}"
        return base


@dataclass(frozen=True)
class ObjectAttributes:
    """Metadata snapshot of a single object generation."""

    bucket: str
    name: str
    generation: int
    size: Optional[int] = None
    content_type: Optional[str] = None
    metageneration: Optional[int] = None
    cache_control: Optional[str] = None
    md5_hash: Optional[str] = None
    crc32c: Optional[str] = None
    updated: Optional[datetime] = None

    @classmethod
    def from_blob(cls, blob) -> "ObjectAttributes":
        bucket = getattr(blob, "bucket", None)
        return cls(
            bucket=getattr(bucket, "name", "") or "",
            name=blob.name,
            generation=int(blob.generation or 0),
            size=blob.size,
            content_type=blob.content_type,
            metageneration=blob.metageneration,
            cache_control=blob.cache_control,
            md5_hash=blob.md5_hash,
            crc32c=blob.crc32c,
            updated=blob.updated,
        )

    @property
    def reference(self) -> ObjectReference:
        return ObjectReference(bucket=self.bucket, path=self.name, generation=self.generation)
