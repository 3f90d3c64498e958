"""Capture policy: decide what to copy out of a host event and log it."""

import datetime
import logging
from typing import Callable, Mapping

from prompt_logger.errors import TransportError
from prompt_logger.host import HostContext
from prompt_logger.models import CapturePolicy, LogRecord, utc_timestamp
from prompt_logger.notify import Notifier
from prompt_logger.store import LogStore

logger = logging.getLogger(__name__)

# Event flavours name the prompt differently; the first one present wins.
PROMPT_KEYS = ("finalPrompt", "prompt")


def should_capture(event, policy: CapturePolicy) -> bool:
    return bool(event) and policy.any_enabled


def build_record(
    event,
    policy: CapturePolicy,
    context: HostContext,
    now: datetime.datetime | None = None,
) -> LogRecord:
    """Assemble one record holding only the enabled, present fields.

    Non-mapping payloads carry no prompt or history of their own.
    """
    fields = event if isinstance(event, Mapping) else {}
    data = {}

    if policy.log_prompt:
        for key in PROMPT_KEYS:
            if fields.get(key):
                data[key] = fields[key]
                break

    if policy.log_history:
        if fields.get("messageHistory") is not None:
            data["messageHistory"] = fields["messageHistory"]
        elif context.chat is not None:
            data["messageHistory"] = context.chat

    if policy.log_context:
        data["context"] = {
            "worldInfo": context.world_info,
            "characters": context.characters,
            "groups": context.groups,
            "chatMetadata": context.chat_metadata,
        }

    return LogRecord(
        timestamp=utc_timestamp(now),
        character_name=context.name2 or "",
        data=data,
    )


class CaptureService:
    """Owns the capture policy and writes one record per qualifying event."""

    def __init__(
        self,
        store: LogStore,
        context_provider: Callable[[], HostContext],
        notifier: Notifier,
        policy: CapturePolicy | None = None,
        clock: Callable[[], datetime.datetime] | None = None,
    ) -> None:
        self.store = store
        self._context_provider = context_provider
        self._notifier = notifier
        self._policy = policy or CapturePolicy()
        self._clock = clock

    @property
    def policy(self) -> CapturePolicy:
        return self._policy

    def set_policy(self, policy: CapturePolicy) -> None:
        self._policy = policy
        logger.debug("Capture policy now %s", policy.to_dict())

    async def handle_event(self, event) -> LogRecord | None:
        """Capture *event* if anything is enabled.

        Storage and serialization failures are logged and notified, never
        raised back into the host's event dispatch.
        """
        if not should_capture(event, self._policy):
            return None

        now = self._clock() if self._clock else None
        try:
            record = build_record(event, self._policy, self._context_provider(), now=now)
            logger.debug("Attempting to log record with keys %s", sorted(record.data))
            await self.store.append_record(record)
        except (TransportError, TypeError, ValueError) as e:
            logger.error("Failed to log prompt data: %s", e)
            self._notifier.error("Failed to log prompt data. Check the log for details.")
            return None
        logger.debug("Successfully logged record at %s", record.timestamp)
        return record
