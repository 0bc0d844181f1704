"""Table source collaborators: turn a table identifier into rows."""

from __future__ import annotations

import csv
from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Mapping, Protocol, Sequence

from crawl.errors import CollaboratorError, CrawlError
from crawl.ir.targets import RollTarget, parse_target

logger = logging.getLogger(__name__)


class TableSource(Protocol):
    def rows(self, identifier: str) -> list[tuple[RollTarget, str]]:  # pragma: no cover - interface
        ...


class MemoryTableSource:
    """Rows held in memory, keyed by identifier."""

    def __init__(self, tables: Mapping[str, Sequence[tuple[RollTarget | str, str]]]) -> None:
        self.tables = {name: list(rows) for name, rows in tables.items()}

    def rows(self, identifier: str) -> list[tuple[RollTarget, str]]:
        if identifier not in self.tables:
            raise CollaboratorError(f"No table named {identifier!r}", resource=identifier)
        return [
            (parse_target(target) if isinstance(target, str) else target, text)
            for target, text in self.tables[identifier]
        ]


@dataclass(frozen=True)
class CsvTableSource:
    """Load table rows from CSV files relative to ``base_path``.

    Each file needs a header naming the roll column (``4`` or ``1-3``) and
    the entry text column.
    """

    base_path: Path
    roll_column: str = "roll"
    text_column: str = "entry"

    def rows(self, identifier: str) -> list[tuple[RollTarget, str]]:
        path = (Path(self.base_path) / identifier).resolve()
        if not path.exists():
            raise CollaboratorError(f"CSV file not found: {path}", resource=identifier)
        rows: list[tuple[RollTarget, str]] = []
        try:
            with path.open("r", encoding="utf-8", newline="") as handle:
                reader = csv.DictReader(handle)
                if reader.fieldnames is None:
                    raise CollaboratorError(f"CSV file has no header: {path}", resource=identifier)
                raw_fieldnames = list(reader.fieldnames)
                normalized_fieldnames = [name.strip() for name in raw_fieldnames]
                fieldname_map = dict(zip(raw_fieldnames, normalized_fieldnames))
                required = [self.roll_column, self.text_column]
                missing = [col for col in required if col not in normalized_fieldnames]
                if missing:
                    raise CollaboratorError(
                        f"CSV file {path} is missing columns: {missing}", resource=identifier
                    )
                for idx, row in enumerate(reader, start=2):
                    normalized_row = {
                        fieldname_map[key]: (value.strip() if isinstance(value, str) else value)
                        for key, value in row.items()
                        if key is not None
                    }
                    rows.append(self._row(normalized_row, path, idx, identifier))
        except CrawlError:
            raise
        except (OSError, csv.Error, UnicodeDecodeError) as exc:
            raise CollaboratorError(f"Failed to read {path}: {exc}", resource=identifier) from exc
        logger.debug("read %d row(s) from %s", len(rows), path)
        return rows

    def _row(
        self, row: dict[str, object], path: Path, idx: int, identifier: str
    ) -> tuple[RollTarget, str]:
        raw_target = row.get(self.roll_column)
        text = row.get(self.text_column)
        if not raw_target:
            raise CollaboratorError(
                f"Missing value in {path} row {idx} column {self.roll_column}", resource=identifier
            )
        if text is None or text == "":
            raise CollaboratorError(
                f"Empty value in {path} row {idx} column {self.text_column}", resource=identifier
            )
        try:
            target = parse_target(str(raw_target))
        except CrawlError as exc:
            raise CollaboratorError(
                f"Invalid roll target in {path} row {idx}: {exc.message}", resource=identifier
            ) from exc
        return target, str(text)
