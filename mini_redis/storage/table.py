"""
Storage Table Module

This module implements the core key-value storage of the engine: a
resizable hash table with chained collision resolution and analytic
memory accounting.

The table knows nothing about sockets or protocol text. Keys and values
are Python strings; every length limit and every accounted byte is
measured on their UTF-8 encoding. Strings decoded from the wire with
``surrogateescape`` map back to the exact bytes the client sent.
"""

import logging
from collections import deque
from typing import Deque, Dict, Iterator, List, Optional, Tuple, Any

from ..config.settings import settings

logger = logging.getLogger(__name__)

# Accounting model of a 64-bit layout
TABLE_HEADER_SIZE = 32  # bucket pointer + three size counters
POINTER_SIZE = 8  # one bucket slot
ENTRY_HEADER_SIZE = 40  # key/value pointers, two lengths, chain link

_HASH_SEED = 5381
_HASH_MASK = 0xFFFFFFFFFFFFFFFF


def djb2_hash(data: bytes) -> int:
    """
    64-bit DJB2 string hash (hash * 33 + byte), wrapping on overflow.

    Args:
        data: Encoded key bytes

    Returns:
        Unsigned 64-bit hash value
    """
    value = _HASH_SEED
    for byte in data:
        value = ((value << 5) + value + byte) & _HASH_MASK
    return value


def to_bytes(text: str) -> bytes:
    """Byte form of a key or value, restoring surrogate-escaped raw bytes."""
    return text.encode("utf-8", errors="surrogateescape")


def entry_memory(key_len: int, value_len: int) -> int:
    """Accounted bytes for one entry: header plus both strings and their terminators."""
    return ENTRY_HEADER_SIZE + key_len + 1 + value_len + 1


class Entry:
    """
    One stored key/value pair.

    Entries are owned by exactly one bucket chain. The key hash is kept
    so a resize can relink the entry without re-encoding its key.
    """

    __slots__ = ("key", "value", "key_len", "value_len", "hash")

    def __init__(self, key: str, value: str, key_len: int, value_len: int, key_hash: int):
        self.key = key
        self.value = value
        self.key_len = key_len
        self.value_len = value_len
        self.hash = key_hash

    @property
    def memory(self) -> int:
        return entry_memory(self.key_len, self.value_len)

    def __repr__(self) -> str:
        return f"Entry(key={self.key!r}, value_len={self.value_len})"


class HashTable:
    """
    Chained hash table with load-factor driven growth.

    Each bucket holds a chain (a deque whose left end is the chain head).
    New entries are pushed at the head, so within a bucket the most
    recently inserted key comes first. Key enumeration walks buckets
    0..N-1 and each chain head to tail.

    Growth doubles the bucket count once the load factor (entries divided
    by buckets) exceeds the threshold before an insert. Entries are
    relinked into the new array, head-first, which reverses the relative
    order of entries that land in the same new bucket.

    Memory accounting is only ever changed by the table's own mutation
    methods and always equals:
        TABLE_HEADER_SIZE
        + num_buckets * POINTER_SIZE
        + sum(entry_memory(key_len, value_len) for each live entry)

    Attributes:
        max_key_length: Longest accepted key, in bytes
        max_value_length: Longest accepted value, in bytes
        load_factor_threshold: Load factor above which the table grows
    """

    def __init__(self, initial_buckets: int = 0):
        """
        Create an empty table.

        Args:
            initial_buckets: Starting bucket count (0 selects settings.INITIAL_BUCKETS)

        Raises:
            MemoryError: If the bucket array cannot be allocated
        """
        self.max_key_length = settings.MAX_KEY_LENGTH
        self.max_value_length = settings.MAX_VALUE_LENGTH
        self.load_factor_threshold = settings.LOAD_FACTOR_THRESHOLD

        self._num_buckets = initial_buckets if initial_buckets > 0 else settings.INITIAL_BUCKETS
        self._buckets: List[Deque[Entry]] = [deque() for _ in range(self._num_buckets)]
        self._num_entries = 0
        self._memory_used = TABLE_HEADER_SIZE + self._num_buckets * POINTER_SIZE

    @property
    def num_buckets(self) -> int:
        return self._num_buckets

    @property
    def num_entries(self) -> int:
        return self._num_entries

    @property
    def memory_used(self) -> int:
        return self._memory_used

    @property
    def load_factor(self) -> float:
        return self._num_entries / self._num_buckets

    def _bucket_for(self, key_hash: int) -> Deque[Entry]:
        return self._buckets[key_hash % self._num_buckets]

    def _resize(self) -> bool:
        """
        Double the bucket count and relink every entry.

        Old buckets are walked in index order, each chain head to tail,
        and every entry is pushed onto the head of its new chain.

        Returns:
            True if the table grew, False if the new array could not be allocated
        """
        new_num_buckets = self._num_buckets * 2
        try:
            new_buckets: List[Deque[Entry]] = [deque() for _ in range(new_num_buckets)]
        except MemoryError:
            return False

        for chain in self._buckets:
            for entry in chain:
                new_buckets[entry.hash % new_num_buckets].appendleft(entry)

        self._memory_used += (new_num_buckets - self._num_buckets) * POINTER_SIZE
        self._buckets = new_buckets
        self._num_buckets = new_num_buckets
        logger.debug(f"Hash table resized to {new_num_buckets} buckets")
        return True

    def set(self, key: str, value: str) -> bool:
        """
        Insert or update a key-value pair.

        Args:
            key: The key to store (at most max_key_length bytes)
            value: The value to associate with the key (at most max_value_length bytes)

        Returns:
            True on success, False if a length limit is exceeded or memory
            could not be allocated. State is unchanged on failure.

        Time Complexity: O(1) average, O(n) when the insert triggers a resize
        """
        try:
            key_bytes = to_bytes(key)
            value_len = len(to_bytes(value))
        except MemoryError:
            return False

        if len(key_bytes) > self.max_key_length or value_len > self.max_value_length:
            return False

        if self.load_factor > self.load_factor_threshold:
            if not self._resize():
                # Keep serving on the current array
                logger.warning("Failed to resize hash table")

        key_hash = djb2_hash(key_bytes)
        chain = self._bucket_for(key_hash)

        for entry in chain:
            if entry.key == key:
                old_memory = entry.memory
                entry.value = value
                entry.value_len = value_len
                self._memory_used += entry.memory - old_memory
                return True

        try:
            entry = Entry(key, value, len(key_bytes), value_len, key_hash)
        except MemoryError:
            return False

        chain.appendleft(entry)
        self._num_entries += 1
        self._memory_used += entry.memory
        return True

    def get(self, key: str) -> Optional[str]:
        """
        Retrieve the value for a given key.

        Args:
            key: The key to look up

        Returns:
            The stored value, or None if the key is absent

        Time Complexity: O(1) average
        """
        chain = self._bucket_for(djb2_hash(to_bytes(key)))
        for entry in chain:
            if entry.key == key:
                return entry.value
        return None

    def delete(self, key: str) -> bool:
        """
        Remove a key-value pair.

        Args:
            key: The key to delete

        Returns:
            True if the key was removed, False if it was not present

        Time Complexity: O(1) average
        """
        chain = self._bucket_for(djb2_hash(to_bytes(key)))
        for index, entry in enumerate(chain):
            if entry.key == key:
                del chain[index]
                self._num_entries -= 1
                self._memory_used -= entry.memory
                return True
        return False

    def stats(self) -> Tuple[int, int]:
        """Return (entry count, accounted memory bytes)."""
        return self._num_entries, self._memory_used

    def keys(self) -> List[str]:
        """
        List every key in enumeration order.

        Buckets are visited 0..N-1; within a bucket keys appear most
        recently inserted first.
        """
        return [entry.key for chain in self._buckets for entry in chain]

    def clear(self) -> None:
        """Release every chain, leaving an empty table with the same bucket count."""
        for chain in self._buckets:
            chain.clear()
        self._num_entries = 0
        self._memory_used = TABLE_HEADER_SIZE + self._num_buckets * POINTER_SIZE

    def get_stats(self) -> Dict[str, Any]:
        """
        Get detailed statistics about the table.

        Returns:
            Dictionary containing:
            - keys: Number of live entries
            - memory_bytes: Accounted memory
            - buckets: Current bucket count
            - load_factor: Entries per bucket
            - longest_chain: Length of the longest collision chain
        """
        return {
            "keys": self._num_entries,
            "memory_bytes": self._memory_used,
            "buckets": self._num_buckets,
            "load_factor": self.load_factor,
            "longest_chain": max((len(chain) for chain in self._buckets), default=0),
        }

    def __len__(self) -> int:
        return self._num_entries

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())
