"""Tests for the entry codec."""

import json

import pytest

from prompt_logger.codec import ParseFailure, decode, decode_lines, encode, iter_lines
from prompt_logger.models import LogRecord


class TestEncode:
    def test_single_line(self, sample_record):
        line = encode(sample_record)
        assert "\n" not in line
        assert "\r" not in line

    def test_wire_keys(self, sample_record):
        raw = json.loads(encode(sample_record))
        assert raw == {
            "timestamp": "2024-01-15T10:30:00.123Z",
            "characterName": "Seraphina",
            "data": dict(sample_record.data),
        }

    def test_control_characters_escaped(self):
        record = LogRecord(
            timestamp="2024-01-15T10:30:00.000Z",
            data={"prompt": "a\nb\r\nc\td\x00e"},
        )
        line = encode(record)
        assert "\n" not in line and "\r" not in line and "\x00" not in line
        assert "\\n" in line

    def test_non_ascii_kept(self):
        record = LogRecord(timestamp="t", character_name="Łucja", data={"prompt": "こんにちは"})
        assert "こんにちは" in encode(record)

    def test_lone_surrogate_escaped(self):
        record = LogRecord(timestamp="t", data={"prompt": "cut emoji \ud83d"})
        line = encode(record)
        assert "\\ud83d" in line
        line.encode("utf-8")
        assert json.loads(line)["data"]["prompt"] == "cut emoji \ud83d"

    def test_unserializable_value_raises_type_error(self):
        record = LogRecord(timestamp="t", data={"context": {"when": object()}})
        with pytest.raises(TypeError):
            encode(record)


class TestDecode:
    def test_round_trip(self, sample_record):
        assert decode(encode(sample_record)) == sample_record

    def test_round_trip_with_context(self):
        record = LogRecord(
            timestamp="2024-01-15T10:30:00.000Z",
            character_name="",
            data={"context": {"worldInfo": None, "characters": [], "groups": [], "chatMetadata": {}}},
        )
        assert decode(encode(record)) == record

    def test_invalid_json(self):
        result = decode("{not json")
        assert isinstance(result, ParseFailure)
        assert result.line == "{not json"
        assert "invalid JSON" in result.reason

    def test_schema_mismatch(self):
        result = decode(json.dumps({"characterName": "x", "data": {}}))
        assert isinstance(result, ParseFailure)
        assert "timestamp" in result.reason

    def test_non_object_json(self):
        assert isinstance(decode("[1, 2, 3]"), ParseFailure)
        assert isinstance(decode("42"), ParseFailure)

    def test_missing_character_name_defaults_empty(self):
        result = decode('{"timestamp":"t","data":{"prompt":"p"}}')
        assert result == LogRecord(timestamp="t", character_name="", data={"prompt": "p"})

    def test_array_prompt_allowed(self):
        line = '{"timestamp":"t","characterName":"A","data":{"finalPrompt":[{"role":"user","content":"x"}]}}'
        result = decode(line)
        assert isinstance(result, LogRecord)
        assert result.data["finalPrompt"][0]["role"] == "user"


class TestLines:
    def test_blank_lines_dropped(self):
        assert list(iter_lines("a\n\n  \nb\n")) == ["a", "b"]

    def test_crlf_stripped(self):
        assert list(iter_lines("a\r\nb\r\n")) == ["a", "b"]

    def test_unicode_line_separator_not_split(self):
        record = LogRecord(timestamp="t", data={"prompt": "one\u2028two\u2029three"})
        text = encode(record) + "\n"
        assert list(iter_lines(text)) == [encode(record)]
        assert list(decode_lines(text)) == [record]

    def test_bad_line_does_not_stop_decoding(self, sample_record):
        text = "garbage\n" + encode(sample_record) + "\n"
        results = list(decode_lines(text))
        assert isinstance(results[0], ParseFailure)
        assert results[1] == sample_record

    def test_empty_text(self):
        assert list(decode_lines("")) == []
