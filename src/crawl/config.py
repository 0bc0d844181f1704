"""Interpreter configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from crawl.errors import DefinitionError


@dataclass(frozen=True)
class InterpreterConfig:
    """Run limits and randomness configuration.

    Attributes:
        max_call_depth: Deepest allowed procedure nesting before the call
            is reported as a ``ResolutionError``.
        max_steps: Optional bound on executed statements per run.
        seed: Seed for the default dice source; ``None`` draws from the OS.
    """

    max_call_depth: int = 64
    max_steps: Optional[int] = None
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if isinstance(self.max_call_depth, bool) or not isinstance(self.max_call_depth, int):
            raise DefinitionError("max_call_depth must be an integer.")
        if self.max_call_depth < 1:
            raise DefinitionError("max_call_depth must be at least 1.")
        if self.max_steps is not None:
            if isinstance(self.max_steps, bool) or not isinstance(self.max_steps, int):
                raise DefinitionError("max_steps must be an integer or None.")
            if self.max_steps < 1:
                raise DefinitionError("max_steps must be at least 1.")
