"""Roll targets: a single value or an inclusive range."""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Any, Union

from crawl.errors import DefinitionError

_TARGET_RE = re.compile(r"^\s*(?P<lo>-?\d+)\s*(?:-\s*(?P<hi>-?\d+))?\s*$")


@dataclass(frozen=True)
class Value:
    """Matches exactly one rolled total."""

    value: int

    def contains(self, total: int) -> bool:
        return total == self.value

    @property
    def upper(self) -> int:
        return self.value

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "value", "value": self.value}

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Range:
    """Matches any total in ``[lo, hi]``."""

    lo: int
    hi: int

    def __post_init__(self) -> None:
        if self.lo > self.hi:
            raise DefinitionError(f"Range lower bound exceeds upper bound: {self.lo}-{self.hi}")

    def contains(self, total: int) -> bool:
        return self.lo <= total <= self.hi

    @property
    def upper(self) -> int:
        return self.hi

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "range", "lo": self.lo, "hi": self.hi}

    def __str__(self) -> str:
        return f"{self.lo}-{self.hi}"


RollTarget = Union[Value, Range]


def parse_target(text: str) -> RollTarget:
    """Parse ``"4"`` or ``"1-3"`` into a roll target."""

    m = _TARGET_RE.match(text)
    if not m:
        raise DefinitionError(f"Cannot convert {text!r} to a roll target.")
    lo = int(m.group("lo"))
    if m.group("hi") is None:
        return Value(lo)
    return Range(lo, int(m.group("hi")))


def first_match(targets: list[RollTarget], total: int) -> int | None:
    """Index of the first target containing ``total``, in declared order."""

    for idx, target in enumerate(targets):
        if target.contains(total):
            return idx
    return None
