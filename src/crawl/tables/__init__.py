"""Table registry and table sources."""

from crawl.tables.registry import Table, TableEntry, TableRegistry, TableRollResult
from crawl.tables.sources import CsvTableSource, MemoryTableSource, TableSource

__all__ = [
    "Table",
    "TableEntry",
    "TableRegistry",
    "TableRollResult",
    "CsvTableSource",
    "MemoryTableSource",
    "TableSource",
]
