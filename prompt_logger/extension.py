"""Extension wiring: builds the components from config and hooks into the host."""

import logging
from typing import Callable

from prompt_logger.capture import CaptureService
from prompt_logger.config import Config
from prompt_logger.errors import ConfigError
from prompt_logger.host import EventBus, HostContext
from prompt_logger.models import CapturePolicy
from prompt_logger.notify import LoggingNotifier, Notifier
from prompt_logger.settings import SettingsStore
from prompt_logger.store import LogStore
from prompt_logger.transport import LocalFileTransport, RemoteFileTransport, StorageTransport
from prompt_logger.viewer import LogViewer

logger = logging.getLogger(__name__)


def build_transport(config: Config) -> StorageTransport:
    """Pick the storage transport named in ``store.transport``."""
    kind = config["store"]["transport"]
    if kind == "local":
        return LocalFileTransport(config["store"]["root_dir"])
    if kind == "remote":
        remote = config["remote"]
        return RemoteFileTransport(
            base_url=remote["base_url"],
            token=remote["token"],
            csrf_header=remote["csrf_header"],
            timeout=float(remote["timeout"]),
        )
    raise ConfigError(f"Unknown store transport: {kind!r} (expected 'local' or 'remote')")


class PromptLoggerExtension:
    """Loads settings once, owns the capture policy, and subscribes to host events."""

    def __init__(
        self,
        config: Config,
        bus: EventBus,
        context_provider: Callable[[], HostContext],
        settings: SettingsStore | None = None,
        notifier: Notifier | None = None,
        transport: StorageTransport | None = None,
    ) -> None:
        self.config = config
        self.bus = bus
        self.name = config["extension"]["name"]
        self.notifier = notifier or LoggingNotifier()
        self.settings = settings or SettingsStore(
            config["settings"]["path"], float(config["settings"]["debounce_seconds"])
        )
        self.transport = transport or build_transport(config)
        self.store = LogStore(self.transport, config["store"]["log_path"])
        self.capture = CaptureService(
            self.store, context_provider, self.notifier, policy=self._load_policy()
        )
        self.viewer = LogViewer(self.store, self.notifier, config["export"]["dir"])
        self._started = False

    def _load_policy(self) -> CapturePolicy:
        section = self.settings.section(self.name)
        if not section:
            section.update(CapturePolicy().to_dict())
            self.settings.save_soon()
        return CapturePolicy.from_dict(section)

    def start(self) -> None:
        """Subscribe the capture handler once per configured event type."""
        if self._started:
            return
        for event_type in self.config["capture"]["events"]:
            self.bus.on(event_type, self.capture.handle_event)
        self._started = True
        logger.info("Prompt logger initialized (events: %s, transport: %s)",
                    ", ".join(self.config["capture"]["events"]),
                    type(self.transport).__name__)

    def stop(self) -> None:
        if not self._started:
            return
        for event_type in self.config["capture"]["events"]:
            self.bus.off(event_type, self.capture.handle_event)
        self._started = False

    def on_toggle(self, name: str, enabled: bool) -> CapturePolicy:
        """Checkbox handler: update the policy, then schedule a settings save."""
        policy = self.capture.policy.with_toggle(name, enabled)
        self.capture.set_policy(policy)
        self.settings.section(self.name).update(policy.to_dict())
        self.settings.save_soon()
        return policy

    async def close(self) -> None:
        self.stop()
        self.settings.flush()
        await self.transport.close()
