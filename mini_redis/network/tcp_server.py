"""
TCP Listener Module

This module implements the listening side of the Mini-Redis engine.

The server is deliberately single-client: it accepts one connection,
runs that connection's loop to completion, and only then accepts the
next one. Further clients wait in the OS accept backlog meanwhile.

Key asyncio concepts used:
- loop.sock_accept(): Accept on a non-blocking listening socket
- loop.sock_recv() / sock_sendall(): Client I/O (see connection.py)
- asyncio.Event: Shutdown token raced against every blocking call
"""

import asyncio
import logging
import socket
from typing import Any, Optional, Tuple

from .connection import ClientConnection
from .context import ServerContext, ShutdownRequested
from ..config.settings import settings
from ..storage.table import HashTable

logger = logging.getLogger(__name__)


def _close_accepted(accepted: Tuple[socket.socket, Any]) -> None:
    """Close a client socket accepted after shutdown was requested."""
    client_sock, _ = accepted
    client_sock.close()


class MiniRedisServer:
    """
    Single-client TCP server for the Mini-Redis engine.

    Usage:
        server = MiniRedisServer(host='0.0.0.0', port=6379)
        await server.start()  # Runs until stop() or a shutdown request

    Attributes:
        host: Server bind address (e.g., '0.0.0.0')
        port: Server port number; updated to the bound port once started,
            so port 0 can be used to pick a free one
        backlog: Depth of the OS accept queue
        table: The HashTable shared by every connection
        context: ServerContext handed to each ClientConnection
    """

    def __init__(
            self,
            host: str = None,
            port: int = None,
            table: HashTable = None,
            backlog: int = None,
    ):
        """
        Initialize the server.

        Args:
            host: Bind address (default from settings)
            port: Port number (default from settings)
            table: HashTable instance (creates new one if not provided)
            backlog: Listen backlog (default from settings)
        """
        self.host = host if host is not None else settings.HOST
        self.port = port if port is not None else settings.PORT
        self.backlog = backlog if backlog is not None else settings.LISTEN_BACKLOG
        self.table = table if table is not None else HashTable()
        self.context = ServerContext(
            table=self.table,
            read_buffer_size=settings.READ_BUFFER_SIZE,
        )

        # Server state
        self._socket: Optional[socket.socket] = None
        self._stopped: Optional[asyncio.Event] = None
        self._running = False
        self._connection_count = 0
        self._total_requests = 0

    def _bind(self) -> socket.socket:
        """Create, bind and listen on the server socket."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, self.port))
            sock.listen(self.backlog)
            sock.setblocking(False)
        except OSError:
            sock.close()
            raise
        return sock

    def _close_socket(self) -> None:
        if self._socket is not None:
            self._socket.close()
            self._socket = None

    async def start(self) -> None:
        """
        Bind and run the accept loop until shutdown is requested.

        Each accepted connection is served to completion before the next
        accept. A shutdown request unblocks a pending accept, and the
        listening socket is closed on the way out.

        Raises:
            OSError: If the socket cannot be bound or put into listening mode
        """
        if self._running:
            return

        self._socket = self._bind()
        self.port = self._socket.getsockname()[1]
        self._stopped = asyncio.Event()
        self._running = True

        logger.info(f"Mini-Redis server started on {self.host}:{self.port}")
        logger.info("Listening for connections...")

        loop = asyncio.get_running_loop()
        try:
            while self.context.running:
                try:
                    client_sock, addr = await self.context.until_shutdown(
                        loop.sock_accept(self._socket),
                        discard=_close_accepted,
                    )
                except ShutdownRequested:
                    break
                except OSError as exc:
                    if not self.context.running:
                        break
                    logger.error(f"accept() failed: {exc}")
                    continue

                if not self.context.running:
                    # Accepted in the same turn shutdown was requested
                    client_sock.close()
                    break

                self._connection_count += 1
                connection = ClientConnection(self.context, client_sock, addr)
                self._total_requests += await connection.run()
        except asyncio.CancelledError:
            # Expected during shutdown/fixture cleanup
            logger.debug("Server start cancelled")
        finally:
            self._close_socket()
            self._running = False
            self._stopped.set()

    def request_shutdown(self) -> None:
        """Ask the accept loop and any active connection to stop."""
        self.context.request_shutdown()

    async def stop(self) -> None:
        """
        Stop the server gracefully.

        Requests shutdown and waits for the accept loop to exit.
        """
        self.request_shutdown()
        if self._running and self._stopped is not None:
            await self._stopped.wait()

    def is_running(self) -> bool:
        """Check if the server is currently running."""
        return self._running

    def get_stats(self) -> dict:
        """
        Get server statistics.

        Returns:
            Dictionary with server stats including connection counts,
            request counts, and table statistics.
        """
        return {
            "running": self._running,
            "host": self.host,
            "port": self.port,
            "total_connections": self._connection_count,
            "total_requests": self._total_requests,
            "table_stats": self.table.get_stats(),
        }
