"""Log viewer and exporter."""

import datetime
import json
import logging
import os
from dataclasses import dataclass

import aiofiles
import aiofiles.os

from prompt_logger.codec import ParseFailure, decode_lines
from prompt_logger.errors import TransportError
from prompt_logger.notify import Notifier
from prompt_logger.store import LogStore

logger = logging.getLogger(__name__)

PLACEHOLDER = "No logs found."
SEPARATOR = "\n---\n\n"


def render(raw: str) -> str:
    """Format a raw log for reading. Lines that fail to decode are shown as-is."""
    blocks = []
    for result in decode_lines(raw or ""):
        if isinstance(result, ParseFailure):
            blocks.append(result.line)
        else:
            body = json.dumps(dict(result.data), indent=2, ensure_ascii=False)
            blocks.append(f"[{result.timestamp}] {result.character_name}\n{body}\n")
    if not blocks:
        return PLACEHOLDER
    return SEPARATOR.join(blocks)


@dataclass(frozen=True)
class ExportBlob:
    filename: str
    content: str
    media_type: str = "application/json"


def export_blob(raw: str, today: datetime.date | None = None) -> ExportBlob | None:
    """Package the undecoded log as a dated download, or None if it is empty."""
    if not raw:
        return None
    today = today or datetime.datetime.now(datetime.timezone.utc).date()
    return ExportBlob(filename=f"prompt_logs_{today.isoformat()}.jsonl", content=raw)


class LogViewer:
    """The dismissible log panel plus its view, clear, and export actions."""

    def __init__(self, store: LogStore, notifier: Notifier, export_dir: str = "."):
        self.store = store
        self.export_dir = export_dir
        self._notifier = notifier
        self.content = PLACEHOLDER
        self.visible = False

    async def view(self) -> str | None:
        try:
            raw = await self.store.read_all()
        except TransportError as e:
            logger.error("Failed to read logs: %s", e)
            self._notifier.error("Failed to read logs. Check the log for details.")
            return None
        self.content = render(raw)
        self.visible = True
        return self.content

    def close(self) -> None:
        self.visible = False

    async def clear(self) -> bool:
        try:
            await self.store.clear()
        except TransportError as e:
            logger.error("Failed to clear logs: %s", e)
            self._notifier.error("Failed to clear logs. Check the log for details.")
            return False
        self.content = PLACEHOLDER
        self._notifier.success("Logs cleared successfully")
        return True

    async def export(self, today: datetime.date | None = None) -> str | None:
        """Write the raw log into ``export_dir``. Returns the written path."""
        try:
            raw = await self.store.read_all()
        except TransportError as e:
            logger.error("Failed to export logs: %s", e)
            self._notifier.error("Failed to export logs. Check the log for details.")
            return None

        blob = export_blob(raw, today)
        if blob is None:
            self._notifier.info("No logs to export")
            return None

        path = os.path.join(self.export_dir, blob.filename)
        try:
            await aiofiles.os.makedirs(self.export_dir, exist_ok=True)
            async with aiofiles.open(path, mode="w", encoding="utf-8", newline="") as f:
                await f.write(blob.content)
        except (OSError, UnicodeError) as e:
            logger.error("Failed to export logs to %s: %s", path, e)
            self._notifier.error("Failed to export logs. Check the log for details.")
            return None
        logger.info("Exported %d bytes to %s", len(blob.content.encode("utf-8")), path)
        self._notifier.success(f"Exported logs to {path}")
        return path
