"""Network module for Mini-Redis."""

from .connection import ClientConnection, ConnectionState
from .context import ServerContext, ShutdownRequested
from .tcp_server import MiniRedisServer

__all__ = [
    "ClientConnection",
    "ConnectionState",
    "ServerContext",
    "ShutdownRequested",
    "MiniRedisServer",
]
