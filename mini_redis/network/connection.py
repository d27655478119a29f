"""
Connection Loop Module

Owns one accepted client socket for its whole lifetime: reads a command,
hands it to the CommandProcessor, writes the reply, and closes the socket
when the peer disconnects, sends QUIT, or the server shuts down.

Each read is treated as exactly one command line. There is no buffering
across reads and no pipelining of several commands in one read.
"""

import asyncio
import logging
import socket
from enum import Enum, auto
from typing import Tuple, Any

from .context import ServerContext, ShutdownRequested
from ..protocol.commands import Response

logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """States of a client connection."""
    AWAITING_LINE = auto()
    PROCESSING = auto()
    REPLIED = auto()
    CLOSED = auto()


class ClientConnection:
    """
    Serves a single client until it goes away.

    State machine:
        AWAITING_LINE -> PROCESSING -> REPLIED -> (AWAITING_LINE | CLOSED)

    Attributes:
        context: Shared ServerContext (table, processor, shutdown token)
        sock: The accepted, non-blocking client socket
        addr: Peer address, for logging
        state: Current ConnectionState
        commands_processed: Number of replies written on this connection
    """

    def __init__(self, context: ServerContext, sock: socket.socket, addr: Tuple[Any, ...]):
        self.context = context
        self.sock = sock
        self.addr = addr
        self.state = ConnectionState.AWAITING_LINE
        self.commands_processed = 0

    def _process(self, data: bytes) -> Response:
        # Non-UTF-8 bytes survive as surrogates and are restored on encode
        line = data.decode("utf-8", errors="surrogateescape")
        return self.context.processor.handle(line)

    async def run(self) -> int:
        """
        Run the read/process/reply loop to completion.

        Transport errors end this connection only; the socket is always
        closed on exit.

        Returns:
            Number of commands processed
        """
        loop = asyncio.get_running_loop()
        logger.info(f"Client connected: {self.addr}")

        try:
            while self.context.running:
                self.state = ConnectionState.AWAITING_LINE
                try:
                    data = await self.context.until_shutdown(
                        loop.sock_recv(self.sock, self.context.read_buffer_size)
                    )
                except ShutdownRequested:
                    logger.debug(f"Shutdown requested, closing {self.addr}")
                    break
                except InterruptedError:
                    continue
                except OSError as exc:
                    logger.error(f"recv() failed for {self.addr}: {exc}")
                    break

                if not data:
                    logger.info(f"Client disconnected: {self.addr}")
                    break

                self.state = ConnectionState.PROCESSING
                response = self._process(data)

                try:
                    await loop.sock_sendall(self.sock, response.encode())
                except OSError as exc:
                    logger.error(f"send() failed for {self.addr}: {exc}")
                    break

                self.state = ConnectionState.REPLIED
                self.commands_processed += 1

                if response.close_connection:
                    logger.info(f"Client quit: {self.addr}")
                    break
        finally:
            self.state = ConnectionState.CLOSED
            self.sock.close()

        return self.commands_processed
