"""
Server Context

Holds the state shared by the Listener and the Connection Loop for the
lifetime of the process, plus the helper that races a blocking socket
operation against the shutdown token.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, TypeVar

from ..protocol.processor import CommandProcessor
from ..storage.table import HashTable

T = TypeVar("T")


class ShutdownRequested(Exception):
    """Raised when shutdown wins the race against a blocking operation."""


@dataclass
class ServerContext:
    """
    Process-wide engine state.

    Attributes:
        table: The single HashTable, mutated only by the active connection
        processor: CommandProcessor bound to table
        shutdown: Cancellation token observed at every blocking boundary
        read_buffer_size: Bytes requested per read (one command per read)
    """
    table: HashTable
    processor: Optional[CommandProcessor] = None
    shutdown: asyncio.Event = field(default_factory=asyncio.Event)
    read_buffer_size: int = 8192

    def __post_init__(self):
        if self.processor is None:
            self.processor = CommandProcessor(self.table)

    @property
    def running(self) -> bool:
        return not self.shutdown.is_set()

    def request_shutdown(self) -> None:
        self.shutdown.set()

    async def until_shutdown(
        self,
        operation: Awaitable[T],
        discard: Optional[Callable[[T], None]] = None,
    ) -> T:
        """
        Await operation unless shutdown is requested first.

        Args:
            operation: The blocking socket operation to race
            discard: Called with the operation's result if it completes
                anyway after shutdown won, e.g. to close an accepted socket

        Returns:
            The operation's result

        Raises:
            ShutdownRequested: If the shutdown token fired first; the
                operation is cancelled
        """
        task = asyncio.ensure_future(operation)
        waiter = asyncio.ensure_future(self.shutdown.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()

        if task in done:
            return task.result()

        # A cancelled operation may still have finished; release what it produced
        await asyncio.wait({task})
        if not task.cancelled() and task.exception() is None and discard is not None:
            discard(task.result())
        raise ShutdownRequested()
