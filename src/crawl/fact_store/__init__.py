"""Fact store and persistent-fact backends."""

from crawl.fact_store.backends import FactBackend, FactFile, JsonFactBackend, MemoryFactBackend
from crawl.fact_store.store import FactStore

__all__ = [
    "FactBackend",
    "FactFile",
    "JsonFactBackend",
    "MemoryFactBackend",
    "FactStore",
]
