"""
Protocol Command and Response Definitions

This module defines the data structures for protocol commands and replies.
"""

import json
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Sequence


class CommandType(Enum):
    """Enumeration of supported command verbs."""
    PING = auto()
    SET = auto()
    GET = auto()
    DEL = auto()
    KEYS = auto()
    STATS = auto()
    QUIT = auto()
    UNKNOWN = auto()


@dataclass
class Command:
    """
    Represents a parsed protocol command.

    Attributes:
        type: The command verb (UNKNOWN for unrecognised or empty input)
        verb: The upper-cased first token, as sent by the client
        tokens: The whitespace-separated tokens (at most MAX_TOKENS)
        key: The key argument for SET/GET/DEL (empty when missing)
        value: The SET value, taken verbatim from the source text
        raw: The trimmed command line
    """
    type: CommandType
    verb: str = ""
    tokens: List[str] = field(default_factory=list)
    key: str = ""
    value: str = ""
    raw: str = ""

    @property
    def is_empty(self) -> bool:
        """True when the line held no tokens at all."""
        return not self.tokens


@dataclass
class Response:
    """
    Represents a single reply line.

    Attributes:
        text: The reply payload, without the trailing newline
        close_connection: Close the connection once the reply is sent.
            Only the QUIT reply sets this.
    """
    text: str
    close_connection: bool = False

    @property
    def is_error(self) -> bool:
        return self.text.startswith("ERROR: ")

    def encode(self) -> bytes:
        """Wire form of the reply, newline terminated."""
        return f"{self.text}\n".encode("utf-8", errors="surrogateescape")

    @classmethod
    def ok(cls) -> "Response":
        return cls("OK")

    @classmethod
    def error(cls, message: str) -> "Response":
        """Create an error reply (``ERROR: <message>``)."""
        return cls(f"ERROR: {message}")

    @classmethod
    def pong(cls) -> "Response":
        return cls("PONG")

    @classmethod
    def null(cls) -> "Response":
        """Reply for GET on an absent key."""
        return cls("NULL")

    @classmethod
    def not_found(cls) -> "Response":
        """Reply for DEL on an absent key."""
        return cls("NOT FOUND")

    @classmethod
    def bye(cls) -> "Response":
        """Sentinel reply for QUIT; the connection closes after sending it."""
        return cls("BYE", close_connection=True)

    @classmethod
    def value_response(cls, value: str) -> "Response":
        return cls(value)

    @classmethod
    def keys_response(cls, keys: Sequence[str]) -> "Response":
        """Compact JSON array of keys, e.g. ``["a","b"]``."""
        return cls(json.dumps(list(keys), separators=(",", ":"), ensure_ascii=False))

    @classmethod
    def stats_response(cls, num_keys: int, memory_bytes: int) -> "Response":
        return cls(json.dumps({"keys": num_keys, "memory_bytes": memory_bytes}))

    @classmethod
    def unknown_command(cls, verb: str) -> "Response":
        return cls.error(f"Unknown command '{verb}'")
