"""Diagnostics collection and the remote-call error taxonomy.

Operations never raise on remote failures. The client raises one of the
errors below, and the reconciler turns each into a titled Diagnostic so
that best-effort sequences can keep going and report everything at once.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum


class AppctlError(Exception):
    """Base class for remote-call failures."""

    pass


class TransportError(AppctlError):
    """Raised when the request never produced an HTTP response."""

    pass


class StatusError(AppctlError):
    """Raised for any response whose status is not exactly 200.

    The detail is the raw response body; error bodies are not parsed.
    """

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(body)
        self.status_code = status_code
        self.body = body


class DecodeError(AppctlError):
    """Raised when a response body cannot be decoded into the wire model."""

    pass


class Severity(str, Enum):
    """Diagnostic severities."""

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Diagnostic:
    """A single titled problem reported back to the caller."""

    severity: Severity
    summary: str
    detail: str = ""

    def __str__(self) -> str:
        if self.detail:
            return f"{self.summary}: {self.detail}"
        return self.summary


class Diagnostics:
    """Accumulating, ordered list of diagnostics."""

    def __init__(self) -> None:
        self._items: list[Diagnostic] = []

    def add_error(self, summary: str, detail: str = "") -> None:
        self._items.append(Diagnostic(Severity.ERROR, summary, detail))

    def add_warning(self, summary: str, detail: str = "") -> None:
        self._items.append(Diagnostic(Severity.WARNING, summary, detail))

    def has_error(self) -> bool:
        return any(d.severity is Severity.ERROR for d in self._items)

    def errors(self) -> list[Diagnostic]:
        return [d for d in self._items if d.severity is Severity.ERROR]

    def summaries(self) -> list[str]:
        return [d.summary for d in self._items]

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"Diagnostics({self._items!r})"
