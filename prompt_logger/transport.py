"""Storage transports: local files via aiofiles, or the host's HTTP file API.

Both implement the same three coroutines, so the log store never needs to know
where the bytes actually go.
"""

import abc
import asyncio
import json
import logging
import os

import aiofiles
import aiofiles.os
import httpx

from prompt_logger.errors import DirectoryExistsError, TransportError

logger = logging.getLogger(__name__)

# Message the file service sends with a 404 for a path that does not exist.
FILE_NOT_FOUND = "file not found"


class StorageTransport(abc.ABC):
    @abc.abstractmethod
    async def read(self, path: str) -> str | None:
        """Return the contents at *path*, or None if nothing is there."""

    @abc.abstractmethod
    async def write(self, path: str, content: str, append: bool = False) -> None:
        """Replace (or append to) the contents at *path*."""

    @abc.abstractmethod
    async def make_dir(self, path: str) -> None:
        """Create a directory; raise DirectoryExistsError if it already exists."""

    async def close(self) -> None:
        pass


def resolve_path(root_dir: str, path: str) -> str:
    """Join *path* onto *root_dir*, refusing anything that escapes the root."""
    root = os.path.realpath(root_dir)
    full = os.path.realpath(os.path.join(root, path))
    if full != root and not full.startswith(root + os.sep):
        raise TransportError(f"Path escapes storage root: {path}")
    return full


class LocalFileTransport(StorageTransport):
    """Direct file access under a root directory."""

    def __init__(self, root_dir: str) -> None:
        self.root_dir = root_dir
        self._lock = asyncio.Lock()

    async def read(self, path: str) -> str | None:
        full = resolve_path(self.root_dir, path)
        try:
            # Undecodable bytes become U+FFFD so one bad line cannot hide the rest.
            async with aiofiles.open(full, mode="r", encoding="utf-8", errors="replace",
                                     newline="") as f:
                return await f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise TransportError(f"Failed to read {path}: {e}") from e

    async def write(self, path: str, content: str, append: bool = False) -> None:
        full = resolve_path(self.root_dir, path)
        mode = "a" if append else "w"
        # One write per call on an O_APPEND handle keeps each record whole.
        async with self._lock:
            try:
                await aiofiles.os.makedirs(os.path.dirname(full), exist_ok=True)
                async with aiofiles.open(full, mode=mode, encoding="utf-8", newline="") as f:
                    await f.write(content)
                    await f.flush()
            except (OSError, UnicodeError) as e:
                raise TransportError(f"Failed to write {path}: {e}") from e

    async def make_dir(self, path: str) -> None:
        full = resolve_path(self.root_dir, path)
        try:
            await aiofiles.os.makedirs(full)
        except FileExistsError as e:
            if not os.path.isdir(full):
                raise TransportError(f"Not a directory: {path}") from e
            raise DirectoryExistsError(f"Directory already exists: {path}") from e
        except OSError as e:
            raise TransportError(f"Failed to create {path}: {e}") from e


def _is_missing_file(body: str | None) -> bool:
    """True if a 404 body is the file service's own "file not found" answer."""
    try:
        payload = json.loads(body or "")
    except ValueError:
        return False
    return isinstance(payload, dict) and payload.get("message") == FILE_NOT_FOUND


class RemoteFileTransport(StorageTransport):
    """Calls the host's ``/readFile`` and ``/writeFile`` endpoints.

    The token goes out in a CSRF header on every request; how the host issues
    it is not our concern.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        csrf_header: str = "X-CSRF-Token",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Content-Type": "application/json"}
        if token:
            headers[csrf_header] = token
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _post(self, endpoint: str, body: dict) -> httpx.Response:
        try:
            response = await self._client.post(endpoint, json=body)
        except httpx.HTTPError as e:
            raise TransportError(f"API request to {endpoint} failed: {e}") from e
        if response.is_success:
            return response
        if response.status_code == 409 and body.get("type") == "directory":
            raise DirectoryExistsError(
                f"Directory already exists: {body.get('path')}", status=409
            )
        raise TransportError(
            f"API request failed: {response.status_code} {response.reason_phrase}\n{response.text}",
            status=response.status_code,
            body=response.text,
        )

    async def read(self, path: str) -> str | None:
        try:
            response = await self._post("/readFile", {"path": path})
        except TransportError as e:
            if e.status == 404 and _is_missing_file(e.body):
                return None
            raise
        return response.text

    async def write(self, path: str, content: str, append: bool = False) -> None:
        body = {"path": path, "content": content}
        if append:
            body["append"] = True
        await self._post("/writeFile", body)

    async def make_dir(self, path: str) -> None:
        await self._post("/writeFile", {"path": path, "type": "directory"})
