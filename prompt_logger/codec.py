"""Entry codec: one log record per line of JSON, tolerant on the way back in."""

import json
import os
import re
from dataclasses import dataclass
from typing import Iterator

import jsonschema

from prompt_logger.models import LogRecord

# Lone surrogates (e.g. a streamed emoji cut in half) cannot be written as UTF-8.
_SURROGATE = re.compile("[\ud800-\udfff]")

SCHEMA_PATH = os.path.join(os.path.dirname(__file__), "schemas", "log_record.json")

with open(SCHEMA_PATH, "r") as _f:
    _validator = jsonschema.Draft202012Validator(json.load(_f))


@dataclass(frozen=True)
class ParseFailure:
    """A line that could not be decoded. ``line`` is kept verbatim for display."""

    line: str
    reason: str


def encode(record: LogRecord) -> str:
    """Serialize a record to a single line (no trailing newline).

    json.dumps escapes every control character, so string fields holding
    newlines never break the one-record-per-line layout. Other non-ASCII text
    is kept as-is, except lone surrogates, which are written as ``\\uXXXX``
    escapes so the line always encodes to UTF-8.

    Raises TypeError for values JSON cannot represent.
    """
    line = json.dumps(record.to_dict(), ensure_ascii=False, separators=(",", ":"))
    return _SURROGATE.sub(lambda m: f"\\u{ord(m.group()):04x}", line)


def decode(line: str) -> LogRecord | ParseFailure:
    try:
        raw = json.loads(line)
    except (json.JSONDecodeError, TypeError) as e:
        return ParseFailure(line, f"invalid JSON: {e}")

    errors = list(_validator.iter_errors(raw))
    if errors:
        return ParseFailure(line, "; ".join(error.message for error in errors))
    return LogRecord.from_dict(raw)


def iter_lines(text: str) -> Iterator[str]:
    """Yield the non-blank lines of a raw log.

    Splits on "\\n" only: str.splitlines() would also break on U+2028/U+2029,
    which JSON leaves unescaped inside strings.
    """
    for line in text.split("\n"):
        line = line.rstrip("\r")
        if line.strip():
            yield line


def decode_lines(text: str) -> Iterator[LogRecord | ParseFailure]:
    for line in iter_lines(text):
        yield decode(line)
