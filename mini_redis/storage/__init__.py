"""Storage module for Mini-Redis."""

from .table import Entry, HashTable, djb2_hash, entry_memory, to_bytes

__all__ = ["Entry", "HashTable", "djb2_hash", "entry_memory", "to_bytes"]
