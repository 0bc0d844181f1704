"""High-level entry point: parse and run Crawl scripts."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from crawl.config import InterpreterConfig
from crawl.dice import DiceEngine
from crawl.errors import CollaboratorError
from crawl.fact_store.backends import FactBackend
from crawl.interpreter import Interpreter, RunResult
from crawl.ir.statements import Program
from crawl.output import ListSink, OutputSink
from crawl.parser.parser import parse
from crawl.tables.sources import CsvTableSource, TableSource


class Crawl:
    """Wires the parser and interpreter to a set of collaborators.

    Without an explicit table source, tables are read as CSV files relative
    to the script's directory (``execute_file``) or the working directory.
    """

    def __init__(
        self,
        *,
        table_source: Optional[TableSource] = None,
        fact_backend: Optional[FactBackend] = None,
        sink: Optional[OutputSink] = None,
        dice: Optional[DiceEngine] = None,
        config: Optional[InterpreterConfig] = None,
    ) -> None:
        self.table_source = table_source
        self.fact_backend = fact_backend
        self.sink = sink if sink is not None else ListSink()
        self.config = config or InterpreterConfig()
        self.dice = dice or DiceEngine(seed=self.config.seed)

    def parse(self, source: str, source_name: str = "<script>") -> Program:
        return parse(source, source_name=source_name)

    def interpreter(self, base_path: Optional[Path] = None) -> Interpreter:
        table_source = self.table_source
        if table_source is None:
            table_source = CsvTableSource(base_path=base_path or Path.cwd())
        return Interpreter(
            dice=self.dice,
            fact_backend=self.fact_backend,
            table_source=table_source,
            sink=self.sink,
            config=self.config,
        )

    def execute(
        self,
        source: str,
        *,
        source_name: str = "<script>",
        base_path: Optional[Path] = None,
        raise_on_error: bool = True,
    ) -> RunResult:
        program = self.parse(source, source_name=source_name)
        return self.interpreter(base_path).run(program, raise_on_error=raise_on_error)

    def execute_file(self, path: Path | str, *, raise_on_error: bool = True) -> RunResult:
        path = Path(path)
        try:
            source = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise CollaboratorError(f"Cannot read script: {exc}", resource=str(path)) from exc
        return self.execute(
            source,
            source_name=str(path),
            base_path=path.parent,
            raise_on_error=raise_on_error,
        )
