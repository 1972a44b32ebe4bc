from __future__ import annotations
"""Connects stored settings and credentials to a :class:`GCSClient`."""

from typing import Callable

from .errors import GCSResourceError
from .models import ObjectAttributes
from .services import GCSClient
from .settings import ClientSettings, SettingsStorage


class NotConnectedError(GCSResourceError):
    """Raised when a storage operation is attempted before connecting."""


class GCSResourceController:
    """Owns the connected :class:`GCSClient` and forwards storage operations to it."""

    def __init__(
        self,
        client_factory: Callable[..., GCSClient] | None = None,
        settings_storage: SettingsStorage | None = None,
        progress_output=None,
    ):
        self._client_factory = client_factory or GCSClient
        self._settings_storage = settings_storage or SettingsStorage()
        self._progress_output = progress_output
        self._client: GCSClient | None = None

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    def connect(self, *, json_key: str = "") -> None:
        """Build a client from an inline service-account key, or ambient credentials."""
        settings: ClientSettings = self._settings_storage.load()
        self._client = self._client_factory(
            self._progress_output,
            json_key,
            settings=settings,
        )

    def list_objects(self, *, bucket_name: str, prefix: str = "") -> list[str]:
        return self._require_connection().list_objects(bucket_name=bucket_name, prefix=prefix)

    def list_generations(self, *, bucket_name: str, object_path: str) -> list[int]:
        return self._require_connection().list_generations(bucket_name=bucket_name, object_path=object_path)

    def get_object_info(self, *, bucket_name: str, object_path: str, generation: int = 0) -> ObjectAttributes:
        return self._require_connection().get_object_info(
            bucket_name=bucket_name,
            object_path=object_path,
            generation=generation,
        )

    def download(self, *, bucket_name: str, object_path: str, destination: str, generation: int = 0) -> None:
        self._require_connection().download(
            bucket_name=bucket_name,
            object_path=object_path,
            destination=destination,
            generation=generation,
        )

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
        return self._require_connection().upload(
            bucket_name=bucket_name,
            object_path=object_path,
            source_path=source_path,
            content_type=content_type,
            predefined_acl=predefined_acl,
            cache_control=cache_control,
        )

    def delete(self, *, bucket_name: str, object_path: str, generation: int = 0) -> None:
        self._require_connection().delete(
            bucket_name=bucket_name,
            object_path=object_path,
            generation=generation,
        )

    def resolve_url(self, *, bucket_name: str, object_path: str, generation: int = 0) -> str:
        return self._require_connection().resolve_url(
            bucket_name=bucket_name,
            object_path=object_path,
            generation=generation,
        )

    def _require_connection(self) -> GCSClient:
        if self._client is None:
            raise NotConnectedError("Not connected to Google Cloud Storage")
        return self._client
