from __future__ import annotations
"""Client settings and their JSON persistence."""

from dataclasses import asdict, dataclass
import json
import logging
from pathlib import Path

LOGGER = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "gcs-resource/0.0.1"
DEFAULT_PROGRESS_WIDTH = 80
DEFAULT_COPY_BUFFER_SIZE = 1024 * 1024


@dataclass
class ClientSettings:
    """Static configuration handed to the transport and the progress sink."""

    user_agent: str = DEFAULT_USER_AGENT
    progress_width: int = DEFAULT_PROGRESS_WIDTH
    copy_buffer_size: int = DEFAULT_COPY_BUFFER_SIZE


def _positive_int(value: object, default: int) -> int:
    try:
        number = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    if number <= 0:
        return default
    return number


class SettingsStorage:
    """JSON-backed persistence for :class:`ClientSettings`."""

    def __init__(self, storage_path: str | Path | None = None):
        if storage_path is None:
            storage_path = Path.home() / ".gcs_resource_settings.json"
        self._path = Path(storage_path)

    def load(self) -> ClientSettings:
        if not self._path.exists():
            return ClientSettings()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            LOGGER.warning("Ignoring unreadable settings file %s", self._path)
            return ClientSettings()
        if not isinstance(data, dict):
            return ClientSettings()

        user_agent = data.get("user_agent")
        if not isinstance(user_agent, str) or not user_agent.strip():
            user_agent = ClientSettings.user_agent
        return ClientSettings(
            user_agent=user_agent.strip(),
            progress_width=_positive_int(data.get("progress_width"), ClientSettings.progress_width),
            copy_buffer_size=_positive_int(data.get("copy_buffer_size"), ClientSettings.copy_buffer_size),
        )

    def save(self, settings: ClientSettings) -> None:
        payload = asdict(settings)
        payload["progress_width"] = max(int(settings.progress_width), 1)
        payload["copy_buffer_size"] = max(int(settings.copy_buffer_size), 1)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError:
            # Persist best-effort; ignore filesystem issues.
            LOGGER.warning("Could not write settings file %s", self._path)
            return
