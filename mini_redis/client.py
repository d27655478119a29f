"""
Mini-Redis Client

A blocking client for the Mini-Redis line protocol, behaving the way a
bridge in front of the engine is expected to: every command opens a fresh
TCP connection, sends exactly one line, reads up to the trailing newline
and closes. Commands are never pipelined on one connection.
"""

import json
import socket
from typing import Any, Dict, List, Optional

from .config.settings import settings


class MiniRedisClientError(Exception):
    """Raised when the engine cannot be reached or drops the connection."""


class MiniRedisClient:
    """
    One-command-per-connection client.

    Usage:
        client = MiniRedisClient('127.0.0.1', 6379)
        client.set('greeting', 'Hello, World!')
        client.get('greeting')  # 'Hello, World!'
    """

    def __init__(self, host: str = "127.0.0.1", port: int = None, timeout: float = 5.0):
        self.host = host
        self.port = port if port is not None else settings.PORT
        self.timeout = timeout

    def send_command(self, command: str) -> str:
        """
        Send one command line and return the reply without its newline.

        Raises:
            MiniRedisClientError: On connection failure, timeout, or if the
                server closes the connection before replying
        """
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout) as sock:
                sock.sendall(f"{command}\n".encode("utf-8", errors="surrogateescape"))

                response = b''
                while not response.endswith(b'\n'):
                    chunk = sock.recv(4096)
                    if not chunk:
                        break
                    response += chunk
        except socket.timeout:
            raise MiniRedisClientError("Connection timeout")
        except OSError as exc:
            raise MiniRedisClientError(f"Connection error: {exc}") from exc

        if not response:
            raise MiniRedisClientError("Connection closed by server")
        return response.decode("utf-8", errors="surrogateescape").strip()

    # Convenience methods

    def ping(self) -> bool:
        return self.send_command("PING") == "PONG"

    def get(self, key: str) -> Optional[str]:
        """Return the value for key, or None when the engine replies NULL."""
        response = self.send_command(f"GET {key}")
        return None if response == "NULL" else response

    def set(self, key: str, value: str) -> str:
        return self.send_command(f"SET {key} {value}")

    def delete(self, key: str) -> bool:
        return self.send_command(f"DEL {key}") == "OK"

    def keys(self) -> List[str]:
        response = self.send_command("KEYS")
        try:
            return json.loads(response)
        except ValueError:
            return []

    def stats(self) -> Dict[str, Any]:
        response = self.send_command("STATS")
        try:
            return json.loads(response)
        except ValueError:
            return {"keys": 0, "memory_bytes": 0}
