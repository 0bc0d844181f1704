"""Statement execution against the fact store, dice engine, and tables."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Any, Optional

from crawl.config import InterpreterConfig
from crawl.dice import DiceEngine
from crawl.errors import CollaboratorError, CrawlError, DefinitionError, ResolutionError
from crawl.fact_store.backends import FactBackend
from crawl.fact_store.store import FactStore
from crawl.ir.statements import (
    Antecedent,
    ClearFactLike,
    Consequent,
    DiceRoll,
    DiceRollCheck,
    FactCheck,
    FormatString,
    IfThen,
    LoadTable,
    MatchingRoll,
    ProcedureCall,
    ProcedureDecl,
    Program,
    Reminder,
    SetFactLike,
    Statement,
    SwapFactLike,
    TableRoll,
)
from crawl.ir.targets import first_match
from crawl.output import ListSink, OutputEvent, OutputSink, RunReport
from crawl.tables.registry import TableRegistry
from crawl.tables.sources import TableSource

logger = logging.getLogger(__name__)


class RunState(str, Enum):
    START = "start"
    EXECUTING = "executing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class StatementRecord:
    """Trace entry for one executed statement."""

    kind: str
    line: int
    value: Any = None
    children: tuple["StatementRecord", ...] = ()

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"kind": self.kind, "line": self.line, "value": self.value}
        if self.children:
            out["children"] = [child.to_dict() for child in self.children]
        return out


@dataclass
class RunResult:
    state: RunState
    events: list[OutputEvent] = field(default_factory=list)
    records: list[StatementRecord] = field(default_factory=list)
    ephemeral_facts: frozenset[str] = frozenset()
    persistent_facts: frozenset[str] = frozenset()
    error: Optional[CrawlError] = None

    @property
    def ok(self) -> bool:
        return self.state is RunState.DONE

    def to_report(self, *, include_records: bool = False) -> RunReport:
        return RunReport(
            state=self.state.value,
            events=[event.to_dict() for event in self.events],
            ephemeral_facts=sorted(self.ephemeral_facts),
            persistent_facts=sorted(self.persistent_facts),
            error=str(self.error) if self.error is not None else None,
            error_type=type(self.error).__name__ if self.error is not None else None,
            records=[r.to_dict() for r in self.records] if include_records else [],
        )


class Interpreter:
    """Runs one program at a time, start to finish.

    Procedures share a single global fact namespace. Each ``run`` builds a
    fresh ``FactStore`` (persistent facts loaded from the backend) and a
    fresh table registry; the dice engine is reused across runs.
    """

    def __init__(
        self,
        *,
        dice: Optional[DiceEngine] = None,
        fact_backend: Optional[FactBackend] = None,
        table_source: Optional[TableSource] = None,
        sink: Optional[OutputSink] = None,
        config: Optional[InterpreterConfig] = None,
    ) -> None:
        self.config = config or InterpreterConfig()
        self.dice = dice or DiceEngine(seed=self.config.seed)
        self.fact_backend = fact_backend
        self.table_source = table_source
        self.sink = sink
        self.state = RunState.START
        self.facts = FactStore()
        self.tables = TableRegistry(self.dice)
        self.procedures: dict[str, ProcedureDecl] = {}
        self.events: list[OutputEvent] = []
        self.records: list[StatementRecord] = []
        self._steps = 0

    def run(self, program: Program, *, raise_on_error: bool = True) -> RunResult:
        self.state = RunState.START
        self.events = []
        self.records = []
        self._steps = 0
        self.tables = TableRegistry(self.dice)
        self.facts = FactStore()
        error: Optional[CrawlError] = None
        try:
            self.procedures = program.procedures()
            self.facts = FactStore(self.fact_backend)
            self.state = RunState.EXECUTING
            logger.info("running %s", program.source_name)
            for stmt in program.executable():
                self.records.append(self._execute(stmt, depth=0))
            self.state = RunState.DONE
            logger.info("finished %s after %d statement(s)", program.source_name, self._steps)
        except CrawlError as exc:
            self.state = RunState.FAILED
            error = exc
            logger.info("run of %s failed: %s", program.source_name, exc)
            if raise_on_error:
                raise
        except Exception:
            self.state = RunState.FAILED
            raise
        return self.result(error)

    def result(self, error: Optional[CrawlError] = None) -> RunResult:
        return RunResult(
            state=self.state,
            events=list(self.events),
            records=list(self.records),
            ephemeral_facts=self.facts.ephemeral,
            persistent_facts=self.facts.persistent,
            error=error,
        )

    # -- dispatch -----------------------------------------------------------

    def _execute(self, stmt: Statement, depth: int) -> StatementRecord:
        self._steps += 1
        limit = self.config.max_steps
        if limit is not None and self._steps > limit:
            raise ResolutionError(f"Step budget of {limit} statement(s) exhausted.", line=stmt.line or None)
        try:
            if isinstance(stmt, IfThen):
                return self._if_then(stmt, depth)
            if isinstance(stmt, MatchingRoll):
                return self._matching_roll(stmt, depth)
            if isinstance(stmt, LoadTable):
                return self._load_table(stmt)
            if isinstance(stmt, DiceRoll):
                return self._dice_roll(stmt)
            if isinstance(stmt, Consequent):
                return self._consequent(stmt, depth)
            if isinstance(stmt, ProcedureDecl):
                raise DefinitionError(f"Procedure {stmt.name!r} must be declared at top level.")
            raise DefinitionError(f"Unsupported statement: {type(stmt).__name__}")
        except CrawlError as exc:
            raise exc.attach(line=stmt.line)

    def _consequent(self, stmt: Consequent, depth: int) -> StatementRecord:
        if isinstance(stmt, SetFactLike):
            name = self._resolve(stmt.text)
            self.facts.insert(name, stmt.persistence)
            return StatementRecord(type(stmt).__name__, stmt.line, name)
        if isinstance(stmt, ClearFactLike):
            self.facts.remove(stmt.name, stmt.persistence)
            return StatementRecord(type(stmt).__name__, stmt.line, stmt.name)
        if isinstance(stmt, SwapFactLike):
            present = self.facts.toggle(stmt.name, stmt.persistence)
            return StatementRecord(type(stmt).__name__, stmt.line, {"name": stmt.name, "present": present})
        if isinstance(stmt, TableRoll):
            return self._table_roll(stmt)
        if isinstance(stmt, Reminder):
            self._emit(OutputEvent(kind="reminder", text=stmt.text, line=stmt.line))
            return StatementRecord("Reminder", stmt.line, stmt.text)
        if isinstance(stmt, ProcedureCall):
            return self._call(stmt, depth)
        raise DefinitionError(f"Unsupported consequent: {type(stmt).__name__}")

    # -- statements ---------------------------------------------------------

    def _if_then(self, stmt: IfThen, depth: int) -> StatementRecord:
        holds, detail = self._antecedent(stmt.antecedent)
        children: tuple[StatementRecord, ...] = ()
        if holds:
            children = (self._execute(stmt.consequent, depth),)
        return StatementRecord("IfThen", stmt.line, {"antecedent": holds, **detail}, children)

    def _antecedent(self, antecedent: Antecedent) -> tuple[bool, dict[str, Any]]:
        if isinstance(antecedent, DiceRollCheck):
            total = self.dice.roll_total(antecedent.specifier)
            return antecedent.target.contains(total), {"total": total}
        if isinstance(antecedent, FactCheck):
            return self.facts.contains(antecedent.name, antecedent.persistence), {}
        raise DefinitionError(f"Unsupported antecedent: {type(antecedent).__name__}")

    def _matching_roll(self, stmt: MatchingRoll, depth: int) -> StatementRecord:
        total = self.dice.roll_total(stmt.specifier)
        idx = first_match([arm.target for arm in stmt.arms], total)
        if idx is None:
            logger.debug("matching roll %s -> %d matched no arm", stmt.specifier, total)
            return StatementRecord("MatchingRoll", stmt.line, {"total": total, "arm": None})
        arm = stmt.arms[idx]
        child = self._execute(arm.consequent, depth)
        return StatementRecord(
            "MatchingRoll", stmt.line, {"total": total, "arm": str(arm.target)}, (child,)
        )

    def _dice_roll(self, stmt: DiceRoll) -> StatementRecord:
        result = self.dice.roll(stmt.specifier)
        self._emit(
            OutputEvent(kind="roll", text=str(result.total), line=stmt.line, source=str(stmt.specifier))
        )
        return StatementRecord("DiceRoll", stmt.line, {"total": result.total, "faces": list(result.faces)})

    def _table_roll(self, stmt: TableRoll) -> StatementRecord:
        result = self.tables.roll(stmt.table, stmt.specifier)
        if result.text is not None:
            self._emit(OutputEvent(kind="table", text=result.text, line=stmt.line, source=stmt.table))
        return StatementRecord("TableRoll", stmt.line, {"total": result.roll.total, "text": result.text})

    def _load_table(self, stmt: LoadTable) -> StatementRecord:
        if self.table_source is None:
            raise CollaboratorError("No table source configured.", resource=stmt.table)
        try:
            rows = self.table_source.rows(stmt.table)
        except CrawlError:
            raise
        except Exception as exc:
            raise CollaboratorError(f"Table source failed: {exc}", resource=stmt.table) from exc
        table = self.tables.load(stmt.table, rows)
        return StatementRecord("LoadTable", stmt.line, {"table": stmt.table, "entries": len(table.entries)})

    def _call(self, stmt: ProcedureCall, depth: int) -> StatementRecord:
        proc = self.procedures.get(stmt.name)
        if proc is None:
            raise ResolutionError(f"Procedure {stmt.name!r} is not declared.")
        if depth + 1 > self.config.max_call_depth:
            raise ResolutionError(
                f"Call depth limit of {self.config.max_call_depth} exceeded calling {stmt.name!r}; "
                "check for recursive procedures."
            )
        logger.debug("entering procedure %r at depth %d", stmt.name, depth + 1)
        try:
            children = tuple(self._execute(inner, depth + 1) for inner in proc.body)
        except RecursionError:
            raise ResolutionError(f"Procedure nesting too deep calling {stmt.name!r}.") from None
        return StatementRecord("ProcedureCall", stmt.line, stmt.name, children)

    # -- helpers ------------------------------------------------------------

    def _resolve(self, text: FormatString) -> str:
        values: list[str] = []
        for clause in text.clauses:
            if isinstance(clause, DiceRoll):
                values.append(str(self.dice.roll_total(clause.specifier)))
            else:
                values.append(self.tables.sample(clause.table, clause.specifier) or "")
        return text.render(values)

    def _emit(self, event: OutputEvent) -> None:
        self.events.append(event)
        if self.sink is not None:
            self.sink.emit(event)


def run_program(program: Program, **kwargs: Any) -> RunResult:
    """Run ``program`` with a fresh interpreter collecting events in a list."""

    kwargs.setdefault("sink", ListSink())
    return Interpreter(**kwargs).run(program)
