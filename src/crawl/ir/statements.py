"""Statement IR produced by the parser and walked by the interpreter."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Literal, Optional, Union

from crawl.dice import RollSpecifier
from crawl.errors import DefinitionError
from crawl.ir.targets import RollTarget

Persistence = Literal["ephemeral", "persistent"]

PLACEHOLDER = "{}"


class Statement:
    """Base class for statement IR."""

    line: int

    def to_dict(self) -> dict[str, Any]:  # pragma: no cover - interface
        raise NotImplementedError


class Consequent(Statement):
    """Statements that may follow ``=>`` in an if-then or a matching-roll arm."""


class Antecedent:
    """Base class for if-then conditions."""

    def to_dict(self) -> dict[str, Any]:  # pragma: no cover - interface
        raise NotImplementedError


# ---------------------------------------------------------------------------
# Roll expressions (usable as statements and as format-string clauses)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DiceRoll(Statement):
    """An untargeted roll; as a statement it reports its total."""

    specifier: RollSpecifier
    line: int = field(default=0, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "dice_roll", "specifier": self.specifier.to_dict()}


@dataclass(frozen=True)
class TableRoll(Consequent):
    """Sample a loaded table, optionally with an explicit specifier."""

    table: str
    specifier: Optional[RollSpecifier] = None
    line: int = field(default=0, compare=False)

    def __post_init__(self) -> None:
        if not self.table:
            raise DefinitionError("Table name must be non-empty.")

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": "table_roll",
            "table": self.table,
            "specifier": self.specifier.to_dict() if self.specifier else None,
        }


Clause = Union[DiceRoll, TableRoll]


@dataclass(frozen=True)
class FormatString:
    """A literal with ``{}`` placeholders filled, left to right, by clauses."""

    literal: str
    clauses: tuple[Clause, ...] = ()

    def __post_init__(self) -> None:
        placeholders = self.literal.count(PLACEHOLDER)
        if placeholders != len(self.clauses):
            raise DefinitionError(
                f"Format string {self.literal!r} has {placeholders} placeholder(s) "
                f"but {len(self.clauses)} clause(s)."
            )
        for clause in self.clauses:
            if not isinstance(clause, (DiceRoll, TableRoll)):
                raise DefinitionError("Format clauses must be dice rolls or table rolls.")

    def render(self, values: list[str]) -> str:
        """Substitute already-resolved clause values into the literal."""
        if len(values) != len(self.clauses):
            raise DefinitionError("Resolved value count does not match clause count.")
        parts = self.literal.split(PLACEHOLDER)
        out = [parts[0]]
        for value, tail in zip(values, parts[1:]):
            out.append(value)
            out.append(tail)
        return "".join(out)

    def to_dict(self) -> dict[str, Any]:
        return {"literal": self.literal, "clauses": [c.to_dict() for c in self.clauses]}


# ---------------------------------------------------------------------------
# Consequents
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SetFact(Consequent):
    text: FormatString
    line: int = field(default=0, compare=False)

    persistence: ClassVar[Persistence] = "ephemeral"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "set_fact", "text": self.text.to_dict()}


@dataclass(frozen=True)
class SetPersistentFact(Consequent):
    text: FormatString
    line: int = field(default=0, compare=False)

    persistence: ClassVar[Persistence] = "persistent"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "set_persistent_fact", "text": self.text.to_dict()}


@dataclass(frozen=True)
class ClearFact(Consequent):
    name: str
    line: int = field(default=0, compare=False)

    persistence: ClassVar[Persistence] = "ephemeral"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "clear_fact", "name": self.name}


@dataclass(frozen=True)
class ClearPersistentFact(Consequent):
    name: str
    line: int = field(default=0, compare=False)

    persistence: ClassVar[Persistence] = "persistent"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "clear_persistent_fact", "name": self.name}


@dataclass(frozen=True)
class SwapFact(Consequent):
    """Toggle an ephemeral fact: insert when absent, remove when present."""

    name: str
    line: int = field(default=0, compare=False)

    persistence: ClassVar[Persistence] = "ephemeral"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "swap_fact", "name": self.name}


@dataclass(frozen=True)
class SwapPersistentFact(Consequent):
    """Toggle a persistent fact."""

    name: str
    line: int = field(default=0, compare=False)

    persistence: ClassVar[Persistence] = "persistent"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "swap_persistent_fact", "name": self.name}


@dataclass(frozen=True)
class Reminder(Consequent):
    text: str
    line: int = field(default=0, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "reminder", "text": self.text}


@dataclass(frozen=True)
class ProcedureCall(Consequent):
    name: str
    line: int = field(default=0, compare=False)

    def __post_init__(self) -> None:
        if not self.name:
            raise DefinitionError("Procedure name must be non-empty.")

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "procedure_call", "name": self.name}


SetFactLike = (SetFact, SetPersistentFact)
ClearFactLike = (ClearFact, ClearPersistentFact)
SwapFactLike = (SwapFact, SwapPersistentFact)


# ---------------------------------------------------------------------------
# Antecedents
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DiceRollCheck(Antecedent):
    """True when a single roll of ``specifier`` lands on ``target``."""

    target: RollTarget
    specifier: RollSpecifier

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": "dice_roll_check",
            "target": self.target.to_dict(),
            "specifier": self.specifier.to_dict(),
        }


@dataclass(frozen=True)
class FactCheck(Antecedent):
    name: str
    persistence: Persistence = "ephemeral"

    def __post_init__(self) -> None:
        if self.persistence not in ("ephemeral", "persistent"):
            raise DefinitionError("FactCheck persistence must be 'ephemeral' or 'persistent'.")

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "fact_check", "name": self.name, "persistence": self.persistence}


# ---------------------------------------------------------------------------
# Compound statements
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class IfThen(Statement):
    antecedent: Antecedent
    consequent: Consequent
    line: int = field(default=0, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": "if_then",
            "antecedent": self.antecedent.to_dict(),
            "consequent": self.consequent.to_dict(),
        }


@dataclass(frozen=True)
class MatchingArm:
    target: RollTarget
    consequent: Consequent
    line: int = field(default=0, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {"target": self.target.to_dict(), "consequent": self.consequent.to_dict()}


@dataclass(frozen=True)
class MatchingRoll(Statement):
    """Roll once; run the consequent of the first arm containing the total."""

    specifier: RollSpecifier
    arms: tuple[MatchingArm, ...]
    line: int = field(default=0, compare=False)

    def __post_init__(self) -> None:
        if not self.arms:
            raise DefinitionError("Matching roll requires at least one arm.")

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": "matching_roll",
            "specifier": self.specifier.to_dict(),
            "arms": [arm.to_dict() for arm in self.arms],
        }


@dataclass(frozen=True)
class LoadTable(Statement):
    table: str
    line: int = field(default=0, compare=False)

    def __post_init__(self) -> None:
        if not self.table:
            raise DefinitionError("Table name must be non-empty.")

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "load_table", "table": self.table}


@dataclass(frozen=True)
class ProcedureDecl(Statement):
    name: str
    body: tuple[Statement, ...]
    line: int = field(default=0, compare=False)

    def __post_init__(self) -> None:
        if not self.name:
            raise DefinitionError("Procedure name must be non-empty.")
        if not self.body:
            raise DefinitionError(f"Procedure {self.name!r} has an empty body.")

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": "procedure",
            "name": self.name,
            "body": [stmt.to_dict() for stmt in self.body],
        }


@dataclass(frozen=True)
class Program:
    """Ordered top-level statements of one script."""

    statements: tuple[Statement, ...]
    source_name: str = field(default="<script>", compare=False)

    def procedures(self) -> dict[str, ProcedureDecl]:
        """Map procedure names to declarations; duplicates are rejected."""
        out: dict[str, ProcedureDecl] = {}
        for stmt in self.statements:
            if not isinstance(stmt, ProcedureDecl):
                continue
            if stmt.name in out:
                raise DefinitionError(
                    f"Duplicate procedure {stmt.name!r} (first declared on line "
                    f"{out[stmt.name].line}).",
                    line=stmt.line or None,
                )
            out[stmt.name] = stmt
        return out

    def executable(self) -> list[Statement]:
        """Top-level statements other than procedure declarations."""
        return [stmt for stmt in self.statements if not isinstance(stmt, ProcedureDecl)]

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source_name,
            "statements": [stmt.to_dict() for stmt in self.statements],
        }
