"""
Build Reporter - Build status and build failure reporting.

Stands in for the build tool's status and failure utilities:

  show_status(title, summary)    Adds an entry to the deploy summary
  fail_build(message, **details) Records the failure and aborts the build
                                 by raising BuildFailure
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


class BuildFailure(Exception):
    """Raised by BuildReporter.fail_build() to abort the remaining build steps."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


@dataclass
class StatusEntry:
    title: str
    summary: str


@dataclass
class BuildReporter:
    statuses: List[StatusEntry] = field(default_factory=list)
    failure: Optional[BuildFailure] = None

    def show_status(self, title: str, summary: str = "") -> StatusEntry:
        entry = StatusEntry(title=title, summary=summary)
        self.statuses.append(entry)
        print(f"\n  [status] {title}")
        if summary:
            print(f"  {summary}")
        return entry

    def fail_build(self, message: str, **details) -> None:
        """Fail the build. Never returns."""
        failure = BuildFailure(message, details)
        self.failure = failure
        print(f"\n  BUILD FAILED: {message}")
        error = details.get("error")
        if error is not None:
            print(f"  Cause: {error}")
        raise failure

    @property
    def failed(self) -> bool:
        return self.failure is not None
