"""Protocol module for Mini-Redis."""

from .commands import Command, CommandType, Response
from .processor import CommandProcessor, process_command

__all__ = [
    "Command",
    "CommandType",
    "Response",
    "CommandProcessor",
    "process_command",
]
