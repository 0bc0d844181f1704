"""Output events, sinks, and the serializable run report."""

from __future__ import annotations

from dataclasses import dataclass
import sys
from typing import Any, Literal, Optional, Protocol, TextIO

from pydantic import BaseModel, Field

EventKind = Literal["reminder", "table", "roll"]


@dataclass(frozen=True)
class OutputEvent:
    """Informational output produced while a program runs.

    Attributes:
        kind: ``reminder`` text, a ``table`` pick, or a bare ``roll`` total.
        text: Text to show the facilitator.
        line: Source line of the statement that produced it.
        source: Table identifier for table picks, specifier for rolls.
    """

    kind: EventKind
    text: str
    line: Optional[int] = None
    source: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "text": self.text, "line": self.line, "source": self.source}


class OutputSink(Protocol):
    def emit(self, event: OutputEvent) -> None:  # pragma: no cover - interface
        ...


class ListSink:
    """Collects events in emission order."""

    def __init__(self) -> None:
        self.events: list[OutputEvent] = []

    def emit(self, event: OutputEvent) -> None:
        self.events.append(event)

    def texts(self) -> list[str]:
        return [event.text for event in self.events]


class ConsoleSink:
    """Writes one line per event to a text stream."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self.stream = stream

    def emit(self, event: OutputEvent) -> None:
        stream = self.stream or sys.stdout
        label = event.kind
        if event.source:
            label = f"{label} {event.source}"
        stream.write(f"[{label}] {event.text}\n")


class EventModel(BaseModel):
    kind: EventKind
    text: str
    line: Optional[int] = None
    source: Optional[str] = None


class RunReport(BaseModel):
    """JSON-friendly summary of one program run."""

    state: str
    events: list[EventModel] = Field(default_factory=list)
    ephemeral_facts: list[str] = Field(default_factory=list)
    persistent_facts: list[str] = Field(default_factory=list)
    error: Optional[str] = None
    error_type: Optional[str] = None
    records: list[dict[str, Any]] = Field(default_factory=list)
