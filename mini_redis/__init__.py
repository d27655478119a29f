"""
Mini-Redis: In-Memory Key-Value Engine

A small in-process key-value store built on a chained hash table,
served one client at a time over a line-oriented TCP protocol.
"""

__version__ = "1.0.0"
