"""Custom exceptions for the Crawl language."""

from __future__ import annotations

from typing import Optional


class CrawlError(Exception):
    """Base exception for Crawl failures.

    Attributes:
        message: Human-readable description without location.
        line: 1-based source line, when known.
        column: 1-based source column, when known.
    """

    def __init__(
        self,
        message: str,
        *,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column

    def attach(self, *, line: Optional[int] = None) -> "CrawlError":
        """Record the statement line if the error does not carry one yet."""
        if self.line is None and line:
            self.line = line
        return self

    def __str__(self) -> str:
        if self.line is None:
            return self.message
        if self.column is None:
            return f"line {self.line}: {self.message}"
        return f"line {self.line}, column {self.column}: {self.message}"


class CrawlSyntaxError(CrawlError):
    """Raised for malformed tokens, bad indentation, or a missing ``end``."""


class DefinitionError(CrawlError):
    """Raised when a program definition is invalid before execution."""


class ResolutionError(CrawlError):
    """Raised when a procedure or table cannot be resolved at run time."""


class CollaboratorError(CrawlError):
    """Raised when a table source or fact backend fails."""

    def __init__(
        self,
        message: str,
        *,
        resource: Optional[str] = None,
        line: Optional[int] = None,
    ) -> None:
        super().__init__(message, line=line)
        self.resource = resource

    def __str__(self) -> str:
        text = super().__str__()
        if self.resource is None:
            return text
        return f"{text} (resource: {self.resource})"
