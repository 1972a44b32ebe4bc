from __future__ import annotations
"""Exceptions raised by the GCS resource client."""
from typing import Optional


class GCSResourceError(RuntimeError):
    """Base class for every error raised by this package."""


class NotVersionedError(GCSResourceError):
    """A generation was supplied for, or requested from, an unversioned bucket."""

    def __init__(self, bucket_name: str):
        super().__init__(f"bucket is not versioned: {bucket_name}")
        self.bucket_name = bucket_name


class BackendError(GCSResourceError):
    """The storage backend or its transport reported a failure.

    The original exception is kept as ``__cause__``; ``code`` is the HTTP
    status when the backend provided one.
    """

    def __init__(self, message: str, *, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class LocalIOError(GCSResourceError):
    """Reading or writing the local side of a transfer failed."""


class CredentialsError(GCSResourceError):
    """An authenticated transport could not be built."""
