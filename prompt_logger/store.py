"""Append-only log store over a pluggable storage transport."""

import logging
import posixpath

from prompt_logger.codec import encode
from prompt_logger.errors import DirectoryExistsError, TransportError
from prompt_logger.models import LogRecord
from prompt_logger.transport import StorageTransport

logger = logging.getLogger(__name__)

DEFAULT_LOG_PATH = "logs/prompt_logs.jsonl"


class LogStore:
    """A single JSONL resource, identified by a logical path on the transport.

    Records are only ever appended; the only other mutation is clear().
    """

    def __init__(self, transport: StorageTransport, path: str = DEFAULT_LOG_PATH):
        self.transport = transport
        self.path = path

    async def _ensure_dir(self) -> None:
        directory = posixpath.dirname(self.path)
        if not directory:
            return
        try:
            await self.transport.make_dir(directory)
            logger.debug("Created log directory %s", directory)
        except DirectoryExistsError:
            pass
        except TransportError as e:
            # Continue anyway, the write below reports anything real.
            logger.warning("Failed to create log directory %s: %s", directory, e)

    async def append(self, text: str) -> None:
        """Append *text* as whole lines, creating the resource if needed."""
        if not text.endswith("\n"):
            text += "\n"
        await self._ensure_dir()
        await self.transport.write(self.path, text, append=True)

    async def append_record(self, record: LogRecord) -> None:
        await self.append(encode(record))

    async def read_all(self) -> str:
        content = await self.transport.read(self.path)
        return content or ""

    async def clear(self) -> None:
        await self.transport.write(self.path, "")
        logger.info("Cleared log %s", self.path)
