"""Dice specifiers and the dice engine.

Supports ``NdM`` with an optional additive or subtractive modifier,
e.g. ``1d6``, ``2d6 + 3``, ``3d10-2``.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import random
import re
from typing import Iterable, Optional, Protocol

from crawl.errors import DefinitionError

logger = logging.getLogger(__name__)

_NOTATION_RE = re.compile(
    r"^(?P<count>\d+)d(?P<sides>\d+)\s*(?:(?P<sign>[+-])\s*(?P<mod>\d+))?$",
)


class RandomSource(Protocol):
    """Anything exposing ``randint(lo, hi)`` with inclusive bounds."""

    def randint(self, a: int, b: int) -> int:  # pragma: no cover - interface
        ...


@dataclass(frozen=True)
class RollSpecifier:
    """Roll ``count`` dice of ``sides`` sides, then add ``modifier``."""

    count: int
    sides: int
    modifier: int = 0

    def __post_init__(self) -> None:
        for label, value in (("count", self.count), ("sides", self.sides), ("modifier", self.modifier)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise DefinitionError(f"Dice {label} must be an integer: {value!r}")
        if self.count < 1:
            raise DefinitionError(f"Dice count must be at least 1: {self.count}d{self.sides}")
        if self.sides < 2:
            raise DefinitionError(f"Dice sides must be at least 2: {self.count}d{self.sides}")

    @classmethod
    def parse(cls, notation: str) -> "RollSpecifier":
        """Parse dice notation such as ``"2d6+3"`` into a specifier."""
        m = _NOTATION_RE.match(notation.strip().lower())
        if not m:
            raise DefinitionError(f"Invalid dice notation: {notation!r}")
        modifier = int(m.group("mod") or 0)
        if m.group("sign") == "-":
            modifier = -modifier
        return cls(count=int(m.group("count")), sides=int(m.group("sides")), modifier=modifier)

    @property
    def minimum(self) -> int:
        return self.count + self.modifier

    @property
    def maximum(self) -> int:
        return self.count * self.sides + self.modifier

    def to_dict(self) -> dict[str, int]:
        return {"count": self.count, "sides": self.sides, "modifier": self.modifier}

    def __str__(self) -> str:
        base = f"{self.count}d{self.sides}"
        if self.modifier > 0:
            return f"{base} + {self.modifier}"
        if self.modifier < 0:
            return f"{base} - {abs(self.modifier)}"
        return base


@dataclass(frozen=True)
class DiceRollResult:
    """Outcome of one roll: the individual faces and the modified total."""

    specifier: RollSpecifier
    faces: tuple[int, ...]
    total: int

    def __str__(self) -> str:
        return str(self.total)


class SequenceSource:
    """Deterministic source replaying a fixed sequence of die faces.

    Each face must fall within the bounds requested by the engine.
    """

    def __init__(self, faces: Iterable[int]) -> None:
        self._faces = list(faces)
        self._position = 0

    @property
    def remaining(self) -> int:
        return len(self._faces) - self._position

    def randint(self, a: int, b: int) -> int:
        if self._position >= len(self._faces):
            raise ValueError("Roll sequence exhausted.")
        face = self._faces[self._position]
        if not (a <= face <= b):
            raise ValueError(f"Scripted face {face} outside die range [{a}, {b}].")
        self._position += 1
        return face


class DiceEngine:
    """Rolls specifiers against a single engine-wide random stream."""

    def __init__(self, source: Optional[RandomSource] = None, *, seed: Optional[int] = None) -> None:
        if source is not None and seed is not None:
            raise DefinitionError("Pass either a random source or a seed, not both.")
        self.source: RandomSource = source if source is not None else random.Random(seed)

    def roll(self, specifier: RollSpecifier) -> DiceRollResult:
        faces = tuple(self.source.randint(1, specifier.sides) for _ in range(specifier.count))
        total = sum(faces) + specifier.modifier
        logger.debug("rolled %s: faces=%s total=%d", specifier, faces, total)
        return DiceRollResult(specifier=specifier, faces=faces, total=total)

    def roll_total(self, specifier: RollSpecifier) -> int:
        return self.roll(specifier).total
