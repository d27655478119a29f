"""
Command Processor Module

This module turns one raw command line into a reply by parsing it and
dispatching it against the Storage Table. It has no knowledge of sockets.

Protocol Format:
    Request:  <VERB> [ARGS...]\n
    Reply:    <TEXT>\n

Commands:
    PING                -> PONG
    SET <key> <value>   -> OK | ERROR: ...
    GET <key>           -> <value> | NULL
    DEL <key>           -> OK | NOT FOUND
    KEYS                -> ["key1","key2",...]
    STATS               -> {"keys": <n>, "memory_bytes": <n>}
    QUIT                -> BYE (connection closes)

Verbs are case-insensitive; arguments are not.
"""

import logging
import re
import string
from typing import List

from .commands import Command, CommandType, Response
from ..config.settings import settings
from ..storage.table import HashTable

logger = logging.getLogger(__name__)

# Characters trimmed from the line and skipped when locating the SET value
_WHITESPACE = " \t\n\r\f\v"
# Tokens are separated by runs of spaces and tabs only
_TOKEN_SEPARATOR = re.compile(r"[ \t]+")
# Verbs are upper-cased letter by letter over ASCII only
_ASCII_UPPER = str.maketrans(string.ascii_lowercase, string.ascii_uppercase)

_VERBS = {
    "PING": CommandType.PING,
    "SET": CommandType.SET,
    "GET": CommandType.GET,
    "DEL": CommandType.DEL,
    "KEYS": CommandType.KEYS,
    "STATS": CommandType.STATS,
    "QUIT": CommandType.QUIT,
}


def _skip(line: str, pos: int, whitespace: bool) -> int:
    """Advance pos while the character is (or is not) whitespace."""
    while pos < len(line) and (line[pos] in _WHITESPACE) == whitespace:
        pos += 1
    return pos


def _value_offset(line: str) -> int:
    """
    Locate the start of the SET value in a trimmed line.

    The value is everything after the verb, the key and the whitespace
    following each, so runs of spaces inside the value survive untouched.
    """
    pos = _skip(line, 0, whitespace=False)  # verb
    pos = _skip(line, pos, whitespace=True)
    pos = _skip(line, pos, whitespace=False)  # key
    return _skip(line, pos, whitespace=True)


class CommandProcessor:
    """
    Parses command lines and executes them against a HashTable.

    The processor never raises: every failure path becomes an
    ``ERROR: ...`` reply.

    Attributes:
        table: The HashTable every command operates on
        max_tokens: Maximum number of tokens kept from a line
    """

    def __init__(self, table: HashTable):
        self.table = table
        self.max_tokens = settings.MAX_TOKENS

    def tokenize(self, line: str) -> List[str]:
        """Split a trimmed line on runs of spaces/tabs, keeping at most max_tokens."""
        tokens = [token for token in _TOKEN_SEPARATOR.split(line) if token]
        return tokens[:self.max_tokens]

    def parse(self, data: str) -> Command:
        """
        Parse a raw command line into a Command object.

        Args:
            data: Raw command line (may include surrounding whitespace)

        Returns:
            Command object. Empty input yields an UNKNOWN command with no
            tokens; an unrecognised verb yields UNKNOWN with the verb set.

        Examples:
            >>> processor = CommandProcessor(HashTable())
            >>> cmd = processor.parse("set greeting Hello,  World!")
            >>> cmd.type == CommandType.SET
            True
            >>> cmd.value
            'Hello,  World!'
        """
        raw = data.strip(_WHITESPACE)
        if not raw:
            return Command(type=CommandType.UNKNOWN, raw=raw)

        tokens = self.tokenize(raw)
        if not tokens:
            return Command(type=CommandType.UNKNOWN, raw=raw)

        verb = tokens[0].translate(_ASCII_UPPER)
        tokens[0] = verb
        command = Command(
            type=_VERBS.get(verb, CommandType.UNKNOWN),
            verb=verb,
            tokens=tokens,
            raw=raw,
        )

        if command.type in (CommandType.SET, CommandType.GET, CommandType.DEL) and len(tokens) > 1:
            command.key = tokens[1]
        if command.type == CommandType.SET and len(tokens) > 2:
            command.value = raw[_value_offset(raw):]

        return command

    def execute(self, command: Command) -> Response:
        """
        Execute a parsed command against the table.

        Args:
            command: The Command object to execute

        Returns:
            Response object with the reply text
        """
        if command.is_empty:
            return Response.error("Empty command")

        if command.type == CommandType.SET:
            return self._execute_set(command)

        if command.type == CommandType.GET:
            if len(command.tokens) < 2:
                return Response.error("GET requires a key")
            value = self.table.get(command.key)
            if value is None:
                logger.info(f"GET {command.key} -> NULL")
                return Response.null()
            logger.info(f"GET {command.key} -> {value}")
            return Response.value_response(value)

        if command.type == CommandType.DEL:
            if len(command.tokens) < 2:
                return Response.error("DEL requires a key")
            if self.table.delete(command.key):
                logger.info(f"DEL {command.key} -> OK")
                return Response.ok()
            logger.info(f"DEL {command.key} -> NOT FOUND")
            return Response.not_found()

        if command.type == CommandType.STATS:
            num_keys, memory_bytes = self.table.stats()
            logger.info(f"STATS -> keys={num_keys}, memory={memory_bytes} bytes")
            return Response.stats_response(num_keys, memory_bytes)

        if command.type == CommandType.KEYS:
            response = Response.keys_response(self.table.keys())
            logger.info(f"KEYS -> {response.text}")
            return response

        if command.type == CommandType.PING:
            logger.debug("PING -> PONG")
            return Response.pong()

        if command.type == CommandType.QUIT:
            logger.debug("QUIT -> BYE")
            return Response.bye()

        logger.info(f"Unknown command: {command.verb}")
        return Response.unknown_command(command.verb)

    def _execute_set(self, command: Command) -> Response:
        if len(command.tokens) < 3:
            return Response.error("SET requires key and value")
        if not command.value:
            return Response.error("SET requires a value")

        if not self.table.set(command.key, command.value):
            return Response.error("Failed to set value")

        logger.info(f"SET {command.key} = {command.value}")
        return Response.ok()

    def handle(self, data: str) -> Response:
        """
        Parse and execute one command line.

        Unexpected exceptions are logged and reported to the client as an
        error reply so a bad command never takes the connection down.
        """
        try:
            return self.execute(self.parse(data))
        except Exception as exc:
            logger.exception(f"Error processing command {data!r}: {exc}")
            return Response.error("Internal error")


def process_command(table: HashTable, raw_line: str) -> str:
    """
    Process one raw command line against table and return the reply text.

    Args:
        table: The HashTable to operate on
        raw_line: The command line as received

    Returns:
        Reply text without the trailing newline
    """
    return CommandProcessor(table).handle(raw_line).text
