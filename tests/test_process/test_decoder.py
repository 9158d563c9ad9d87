"""Tests for testie.process.decoder — structured events vs passthrough text."""

from __future__ import annotations

from typing import TYPE_CHECKING

from testie.process.decoder import decode_line
from testie.process.models import Action, Event, Passthrough

if TYPE_CHECKING:
    from conftest import LineFactory


class TestStructuredEvents:
    def test_decodes_output_event(self, event_line: LineFactory) -> None:
        event = decode_line(event_line("output", output="hello\n"))
        assert isinstance(event, Event)
        assert event.action is Action.OUTPUT
        assert event.package == "example.com/pkg"
        assert event.test == "TestA"
        assert event.output == "hello\n"
        assert event.elapsed == 0.0

    def test_nanosecond_timestamp(self, event_line: LineFactory) -> None:
        event = decode_line(event_line("run"))
        assert isinstance(event, Event)
        assert event.time is not None
        assert event.time.microsecond == 123456
        assert event.time.utcoffset() is not None

    def test_integer_elapsed_becomes_float(self, event_line: LineFactory) -> None:
        event = decode_line(event_line("pass", elapsed=2))
        assert isinstance(event, Event)
        assert event.elapsed == 2.0
        assert isinstance(event.elapsed, float)

    def test_missing_time_is_allowed(self) -> None:
        event = decode_line(b'{"Action":"run","Package":"p","Test":"TestA"}\n')
        assert isinstance(event, Event)
        assert event.time is None

    def test_every_action_decodes(self, event_line: LineFactory) -> None:
        for action in Action:
            event = decode_line(event_line(action.value))
            assert isinstance(event, Event)
            assert event.action is action


class TestDroppedRecords:
    def test_package_summary_without_test_is_dropped(self) -> None:
        line = b'{"Action":"pass","Package":"example.com/pkg","Elapsed":0.01}\n'
        assert decode_line(line) is None

    def test_unknown_action_is_dropped(self, event_line: LineFactory) -> None:
        assert decode_line(event_line("start")) is None


class TestPassthrough:
    def test_plain_text(self) -> None:
        line = b"# example.com/pkg\n./a_test.go:3:2: undefined: foo\n"
        result = decode_line(line)
        assert result == Passthrough(line.decode())

    def test_json_that_is_not_an_object(self) -> None:
        assert decode_line(b"[1, 2]\n") == Passthrough("[1, 2]\n")
        assert decode_line(b"42\n") == Passthrough("42\n")

    def test_wrong_field_type(self) -> None:
        line = b'{"Action":"run","Package":"p","Test":7}\n'
        assert isinstance(decode_line(line), Passthrough)

    def test_boolean_elapsed_is_rejected(self) -> None:
        line = b'{"Action":"pass","Package":"p","Test":"TestA","Elapsed":true}\n'
        assert isinstance(decode_line(line), Passthrough)

    def test_bad_timestamp(self) -> None:
        line = b'{"Time":"yesterday","Action":"run","Package":"p","Test":"TestA"}\n'
        assert isinstance(decode_line(line), Passthrough)

    def test_invalid_utf8_is_replaced(self) -> None:
        result = decode_line(b"panic: \xff\xfe\n")
        assert isinstance(result, Passthrough)
        assert result.text.startswith("panic: ")
        assert "�" in result.text

    def test_unterminated_final_line(self) -> None:
        assert decode_line(b"FAIL") == Passthrough("FAIL")

    def test_deeply_nested_array(self) -> None:
        line = b"[" * 100_000 + b"\n"
        assert decode_line(line) == Passthrough(line.decode())

    def test_elapsed_too_large_for_float(self) -> None:
        line = b'{"Action":"pass","Package":"p","Test":"TestA","Elapsed":' + b"9" * 400 + b"}\n"
        assert decode_line(line) == Passthrough(line.decode())

    def test_integer_literal_over_digit_limit(self) -> None:
        line = b'{"Action":"pass","Package":"p","Test":"TestA","Elapsed":' + b"9" * 5000 + b"}\n"
        assert decode_line(line) == Passthrough(line.decode())
