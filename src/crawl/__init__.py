"""Crawl: a small scripting language for dice-driven tabletop procedures."""

from crawl.config import InterpreterConfig
from crawl.dice import DiceEngine, DiceRollResult, RollSpecifier, SequenceSource
from crawl.errors import (
    CollaboratorError,
    CrawlError,
    CrawlSyntaxError,
    DefinitionError,
    ResolutionError,
)
from crawl.fact_store import FactStore, JsonFactBackend, MemoryFactBackend
from crawl.interpreter import Interpreter, RunResult, RunState, StatementRecord, run_program
from crawl.lang import Crawl
from crawl.output import ConsoleSink, ListSink, OutputEvent, RunReport
from crawl.parser import parse, tokenize
from crawl.tables import CsvTableSource, MemoryTableSource, TableRegistry

__all__ = [
    "InterpreterConfig",
    "DiceEngine",
    "DiceRollResult",
    "RollSpecifier",
    "SequenceSource",
    "CollaboratorError",
    "CrawlError",
    "CrawlSyntaxError",
    "DefinitionError",
    "ResolutionError",
    "FactStore",
    "JsonFactBackend",
    "MemoryFactBackend",
    "Interpreter",
    "RunResult",
    "RunState",
    "StatementRecord",
    "run_program",
    "Crawl",
    "ConsoleSink",
    "ListSink",
    "OutputEvent",
    "RunReport",
    "parse",
    "tokenize",
    "CsvTableSource",
    "MemoryTableSource",
    "TableRegistry",
]
