"""Named random tables and first-match sampling."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Iterable, Optional, Union

from crawl.dice import DiceEngine, DiceRollResult, RollSpecifier
from crawl.errors import DefinitionError, ResolutionError
from crawl.ir.targets import RollTarget, first_match, parse_target

logger = logging.getLogger(__name__)

Row = tuple[Union[RollTarget, str], str]


@dataclass(frozen=True)
class TableEntry:
    target: RollTarget
    text: str


@dataclass(frozen=True)
class Table:
    """Ordered entries plus the specifier rolled when none is given.

    Attributes:
        name: Source identifier the table was loaded under.
        entries: Entries in declared order; ranges may overlap or leave gaps.
        specifier: Explicit default specifier. When ``None`` a single die
            sized to the largest declared value is used.
    """

    name: str
    entries: tuple[TableEntry, ...]
    specifier: Optional[RollSpecifier] = None

    def __post_init__(self) -> None:
        if not self.entries:
            raise DefinitionError(f"Table {self.name!r} has no entries.")

    def default_specifier(self) -> RollSpecifier:
        if self.specifier is not None:
            return self.specifier
        sides = max(entry.target.upper for entry in self.entries)
        if sides < 2:
            raise DefinitionError(
                f"Table {self.name!r} needs an explicit specifier: largest value is {sides}."
            )
        return RollSpecifier(count=1, sides=sides)

    def lookup(self, total: int) -> Optional[TableEntry]:
        idx = first_match([entry.target for entry in self.entries], total)
        return None if idx is None else self.entries[idx]


@dataclass(frozen=True)
class TableRollResult:
    table: str
    roll: DiceRollResult
    entry: Optional[TableEntry]

    @property
    def text(self) -> Optional[str]:
        return self.entry.text if self.entry is not None else None


class TableRegistry:
    """Tables keyed by source identifier; a reload replaces the old table."""

    def __init__(self, dice: DiceEngine) -> None:
        self.dice = dice
        self._tables: dict[str, Table] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._tables

    def names(self) -> list[str]:
        return list(self._tables)

    def load(
        self,
        name: str,
        rows: Iterable[Row],
        specifier: Optional[RollSpecifier] = None,
    ) -> Table:
        entries = tuple(
            TableEntry(target=parse_target(target) if isinstance(target, str) else target, text=text)
            for target, text in rows
        )
        table = Table(name=name, entries=entries, specifier=specifier)
        if name in self._tables:
            logger.debug("replacing table %r", name)
        self._tables[name] = table
        logger.debug("loaded table %r with %d entries", name, len(entries))
        return table

    def get(self, name: str) -> Table:
        try:
            return self._tables[name]
        except KeyError:
            raise ResolutionError(f"Table {name!r} has not been loaded.") from None

    def roll(self, name: str, specifier: Optional[RollSpecifier] = None) -> TableRollResult:
        table = self.get(name)
        result = self.dice.roll(specifier or table.default_specifier())
        entry = table.lookup(result.total)
        if entry is None:
            logger.debug("roll %d on table %r matched no entry", result.total, name)
        return TableRollResult(table=name, roll=result, entry=entry)

    def sample(self, name: str, specifier: Optional[RollSpecifier] = None) -> Optional[str]:
        """Entry text for one roll, or ``None`` when nothing matches."""
        return self.roll(name, specifier).text
