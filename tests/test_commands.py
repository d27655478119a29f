"""
Tests for protocol value types

Run with: python -m pytest tests/test_commands.py -v
"""

import json

from mini_redis.protocol.commands import Command, CommandType, Response


class TestCommandClass:
    """Test Command helpers."""

    def test_command_defaults(self):
        cmd = Command(type=CommandType.PING)

        assert cmd.tokens == []
        assert cmd.key == ""
        assert cmd.value == ""

    def test_command_is_empty(self):
        assert Command(type=CommandType.UNKNOWN).is_empty is True
        assert Command(type=CommandType.UNKNOWN, verb="FOO", tokens=["FOO"]).is_empty is False

    def test_tokens_not_shared(self):
        first = Command(type=CommandType.PING)
        second = Command(type=CommandType.PING)
        first.tokens.append("PING")
        assert second.tokens == []


class TestResponseClass:
    """Test Response factory methods."""

    def test_response_ok(self):
        assert Response.ok().text == "OK"

    def test_response_error(self):
        resp = Response.error("something broke")

        assert resp.text == "ERROR: something broke"
        assert resp.is_error is True

    def test_response_pong(self):
        assert Response.pong().text == "PONG"

    def test_response_null_and_not_found(self):
        assert Response.null().text == "NULL"
        assert Response.not_found().text == "NOT FOUND"
        assert Response.not_found().is_error is False

    def test_only_bye_closes(self):
        assert Response.bye().text == "BYE"
        assert Response.bye().close_connection is True
        assert Response.value_response("BYE").close_connection is False
        assert Response.ok().close_connection is False

    def test_keys_response(self):
        assert Response.keys_response(["a", "b"]).text == '["a","b"]'
        assert Response.keys_response([]).text == "[]"

    def test_keys_response_escapes_quotes(self):
        text = Response.keys_response(['say "hi"']).text
        assert json.loads(text) == ['say "hi"']

    def test_keys_response_keeps_unicode(self):
        assert Response.keys_response(["café"]).text == '["café"]'

    def test_stats_response(self):
        assert Response.stats_response(3, 700).text == '{"keys": 3, "memory_bytes": 700}'

    def test_unknown_command(self):
        assert Response.unknown_command("FOO").text == "ERROR: Unknown command 'FOO'"

    def test_encode_appends_newline(self):
        assert Response.pong().encode() == b"PONG\n"
        assert Response.value_response("café").encode() == "café\n".encode("utf-8")
