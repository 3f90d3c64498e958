"""Log record and capture policy models."""

import datetime
from dataclasses import dataclass, field
from types import MappingProxyType


def utc_timestamp(now: datetime.datetime | None = None) -> str:
    """ISO-8601 UTC instant with millisecond precision and a ``Z`` suffix."""
    now = now or datetime.datetime.now(datetime.timezone.utc)
    now = now.astimezone(datetime.timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class LogRecord:
    """One captured entry. ``data`` is a read-only view over a private copy."""

    timestamp: str = field(default_factory=utc_timestamp)
    character_name: str = ""
    data: MappingProxyType = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "data", MappingProxyType(dict(self.data)))

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "characterName": self.character_name,
            "data": dict(self.data),
        }

    @classmethod
    def from_dict(cls, raw: dict) -> "LogRecord":
        return cls(
            timestamp=raw["timestamp"],
            character_name=raw.get("characterName") or "",
            data=raw.get("data") or {},
        )


@dataclass(frozen=True)
class CapturePolicy:
    """Which field categories get copied into a captured record."""

    log_prompt: bool = True
    log_history: bool = True
    log_context: bool = True

    # wire key -> attribute name
    KEYS = {
        "logPrompt": "log_prompt",
        "logHistory": "log_history",
        "logContext": "log_context",
    }

    @property
    def any_enabled(self) -> bool:
        return self.log_prompt or self.log_history or self.log_context

    def to_dict(self) -> dict:
        return {key: getattr(self, attr) for key, attr in self.KEYS.items()}

    @classmethod
    def from_dict(cls, raw: dict | None) -> "CapturePolicy":
        """Build from a persisted settings object; missing keys default to on."""
        raw = raw or {}
        return cls(**{attr: bool(raw.get(key, True)) for key, attr in cls.KEYS.items()})

    def with_toggle(self, key: str, enabled: bool) -> "CapturePolicy":
        """Return a copy with one toggle changed. Accepts wire or short names."""
        attr = self.KEYS.get(key) or self.KEYS.get(toggle_key(key))
        if attr is None:
            raise KeyError(f"Unknown capture toggle: {key}")
        values = {a: getattr(self, a) for a in self.KEYS.values()}
        values[attr] = bool(enabled)
        return CapturePolicy(**values)


def toggle_key(name: str) -> str:
    """Map a checkbox id such as ``log_prompt`` or ``prompt`` to ``logPrompt``."""
    short = name[4:] if name.startswith("log_") else name
    return f"log{short[:1].upper()}{short[1:]}"
