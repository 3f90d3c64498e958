import httpx
import pytest
import yaml

from prompt_logger.config import TOKEN_ENV, Config
from prompt_logger.errors import TransportError
from prompt_logger.file_service import create_app
from prompt_logger.host import HostContext
from prompt_logger.models import LogRecord
from prompt_logger.store import LogStore
from prompt_logger.transport import LocalFileTransport, RemoteFileTransport

TOKEN = "test-token"


class RecordingNotifier:
    """Collects notifications as (kind, message) tuples."""

    def __init__(self):
        self.messages = []

    def info(self, message):
        self.messages.append(("info", message))

    def success(self, message):
        self.messages.append(("success", message))

    def error(self, message):
        self.messages.append(("error", message))

    def kinds(self):
        return [kind for kind, _ in self.messages]


class SpyTransport(LocalFileTransport):
    """Local transport that records every call made to it."""

    def __init__(self, root_dir):
        super().__init__(root_dir)
        self.calls = []

    async def read(self, path):
        self.calls.append(("read", path))
        return await super().read(path)

    async def write(self, path, content, append=False):
        self.calls.append(("write", path, append))
        await super().write(path, content, append=append)

    async def make_dir(self, path):
        self.calls.append(("make_dir", path))
        await super().make_dir(path)


class FailingTransport(LocalFileTransport):
    """Every operation fails the way a dead disk or server would."""

    def __init__(self):
        super().__init__("/nonexistent")

    async def read(self, path):
        raise TransportError("read failed", status=500)

    async def write(self, path, content, append=False):
        raise TransportError("write failed", status=500)

    async def make_dir(self, path):
        raise TransportError("mkdir failed", status=500)


def flask_bridge(flask_client) -> httpx.MockTransport:
    """Route httpx requests into a Flask test client, in-process."""

    def handler(request: httpx.Request) -> httpx.Response:
        headers = {
            k: v for k, v in request.headers.items()
            if k.lower() in ("content-type", "x-csrf-token")
        }
        resp = flask_client.open(
            request.url.path, method=request.method,
            data=request.content, headers=headers,
        )
        return httpx.Response(
            resp.status_code,
            content=resp.get_data(),
            headers={"Content-Type": resp.content_type},
        )

    return httpx.MockTransport(handler)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def local_transport(tmp_path):
    return LocalFileTransport(str(tmp_path / "local"))


@pytest.fixture
def local_store(local_transport):
    return LogStore(local_transport)


@pytest.fixture
def server_root(tmp_path):
    return tmp_path / "served"


@pytest.fixture
def file_app(server_root):
    app = create_app(str(server_root), token=TOKEN)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def file_client(file_app):
    return file_app.test_client()


@pytest.fixture
def remote_transport(file_client):
    return RemoteFileTransport(
        "http://host.test", token=TOKEN, transport=flask_bridge(file_client)
    )


@pytest.fixture
def remote_store(remote_transport):
    return LogStore(remote_transport)


@pytest.fixture
def host_context():
    return HostContext(
        name2="Seraphina",
        chat=[{"name": "User", "mes": "hi"}, {"name": "Seraphina", "mes": "hello"}],
        world_info={"entries": {"0": {"key": ["forest"], "content": "A dark forest."}}},
        characters=[{"name": "Seraphina", "avatar": "sera.png"}],
        groups=[],
        chat_metadata={"note_prompt": ""},
    )


@pytest.fixture
def sample_record():
    return LogRecord(
        timestamp="2024-01-15T10:30:00.123Z",
        character_name="Seraphina",
        data={
            "finalPrompt": "System: be nice\nUser: hi",
            "messageHistory": [{"name": "User", "mes": "hi"}],
        },
    )


@pytest.fixture
def spy_transport(tmp_path):
    return SpyTransport(str(tmp_path / "spy"))


@pytest.fixture
def failing_store():
    return LogStore(FailingTransport())


@pytest.fixture
def make_config(tmp_path, monkeypatch):
    """Write a YAML config rooted in tmp_path, with optional section overrides."""
    monkeypatch.delenv(TOKEN_ENV, raising=False)

    def _make(**overrides):
        data = {
            "store": {"root_dir": str(tmp_path / "data")},
            "settings": {"path": str(tmp_path / "data" / "settings.json"),
                         "debounce_seconds": 0.05},
            "export": {"dir": str(tmp_path / "exports")},
        }
        for section, values in overrides.items():
            data.setdefault(section, {}).update(values)
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump(data))
        return Config(str(path)), str(path)

    return _make
