"""Host settings persistence: one JSON file, one section per extension."""

import asyncio
import json
import logging
import os

logger = logging.getLogger(__name__)


class SettingsStore:
    def __init__(self, path: str, debounce_seconds: float = 1.0):
        self._path = path
        self._debounce = debounce_seconds
        self._data: dict[str, dict] = {}
        self._pending: asyncio.TimerHandle | None = None
        self._load()

    def _load(self):
        if not os.path.exists(self._path):
            return
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if isinstance(data, dict):
                self._data = data
            logger.info("Loaded settings from %s (%d sections)", self._path, len(self._data))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Failed to load settings %s: %s", self._path, e)
            self._data = {}

    def section(self, key: str) -> dict:
        """The mutable settings object for *key*, created empty if absent."""
        return self._data.setdefault(key, {})

    @property
    def save_pending(self) -> bool:
        return self._pending is not None

    def save_soon(self):
        """Debounced save. Outside a running loop, saves immediately."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.flush()
            return
        if self._pending is not None:
            self._pending.cancel()
        self._pending = loop.call_later(self._debounce, self.flush)

    def flush(self):
        """Atomic write: write to tmp file then replace."""
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        try:
            os.makedirs(os.path.dirname(self._path) or ".", exist_ok=True)
            tmp_path = self._path + ".tmp"
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2)
            os.replace(tmp_path, self._path)
        except OSError as e:
            logger.error("Failed to save settings %s: %s", self._path, e)
            return
        logger.debug("Saved settings to %s", self._path)
