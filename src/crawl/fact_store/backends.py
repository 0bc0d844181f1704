"""Durable storage collaborators for persistent facts."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
import tempfile
from typing import Iterable, Literal, Optional, Protocol

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, model_validator

from crawl.errors import CollaboratorError

logger = logging.getLogger(__name__)


class FactBackend(Protocol):
    """Key-set storage for persistent facts."""

    def load_all(self) -> set[str]:  # pragma: no cover - interface
        ...

    def persist(self, name: str, present: bool) -> None:  # pragma: no cover - interface
        ...


class MemoryFactBackend:
    """In-process backend; useful for tests and embedding."""

    def __init__(self, facts: Optional[Iterable[str]] = None) -> None:
        self.facts: set[str] = set(facts or ())
        self.writes: list[tuple[str, bool]] = []

    def load_all(self) -> set[str]:
        return set(self.facts)

    def persist(self, name: str, present: bool) -> None:
        self.writes.append((name, present))
        if present:
            self.facts.add(name)
        else:
            self.facts.discard(name)


class FactFile(BaseModel):
    """On-disk layout of a JSON fact file."""

    version: Literal[1] = 1
    facts: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _dedupe(self) -> "FactFile":
        seen: set[str] = set()
        unique: list[str] = []
        for fact in self.facts:
            if fact not in seen:
                seen.add(fact)
                unique.append(fact)
        self.facts = unique
        return self


class JsonFactBackend:
    """Persistent facts stored in a JSON file, rewritten on every mutation.

    A missing file is treated as an empty fact set; it is created on the
    first write.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._facts: Optional[set[str]] = None

    def load_all(self) -> set[str]:
        self._facts = self._read()
        return set(self._facts)

    def persist(self, name: str, present: bool) -> None:
        if self._facts is None:
            self._facts = self._read()
        updated = set(self._facts)
        if present:
            updated.add(name)
        else:
            updated.discard(name)
        if updated == self._facts and self.path.exists():
            return
        self._write(updated)
        self._facts = updated

    def _read(self) -> set[str]:
        if not self.path.exists():
            return set()
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
            model = FactFile.model_validate(payload)
        except (OSError, json.JSONDecodeError, PydanticValidationError) as exc:
            raise CollaboratorError(
                f"Failed to read fact file: {exc}", resource=str(self.path)
            ) from exc
        logger.debug("loaded %d persistent fact(s) from %s", len(model.facts), self.path)
        return set(model.facts)

    def _write(self, facts: set[str]) -> None:
        model = FactFile(facts=sorted(facts))
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(model.model_dump_json(indent=2))
                handle.write("\n")
            os.replace(tmp_name, self.path)
        except OSError as exc:
            raise CollaboratorError(
                f"Failed to write fact file: {exc}", resource=str(self.path)
            ) from exc
        logger.debug("wrote %d persistent fact(s) to %s", len(facts), self.path)
