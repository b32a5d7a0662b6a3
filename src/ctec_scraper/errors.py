from __future__ import annotations


class CtecError(RuntimeError):
    """
    Base class for fatal run errors.

    `stage` names the pipeline step that raised, so the CLI can report where a run stopped.
    """

    stage: str = "pipeline"


class InputError(CtecError, ValueError):
    """Raised when the course identifier is malformed (before any browser work)."""

    stage = "input"


class NoMatchingOption(CtecError):
    """Raised when a dropdown has no option whose label satisfies the step's predicate."""

    stage = "form"

    def __init__(self, selector: str, options: list[str] | None = None) -> None:
        self.selector = selector
        self.options = list(options or [])
        shown = ", ".join(repr(o) for o in self.options[:10])
        more = f" (+{len(self.options) - 10} more)" if len(self.options) > 10 else ""
        super().__init__(f"No matching option found for selector {selector}. Options seen: [{shown}]{more}")


class CourseNotFound(CtecError):
    """Raised when the search results contain no row for the requested course number."""

    stage = "course_search"

    def __init__(self, number: str, rows_seen: int = 0) -> None:
        self.number = number
        self.rows_seen = rows_seen
        super().__init__(f"Could not find course {number} among {rows_seen} result rows")


class NoEvaluationRow(CtecError):
    """Raised when a course exists but none of its rows look like a real evaluation (YYYY Term)."""

    stage = "evaluation_rows"

    def __init__(self, rows_seen: int = 0) -> None:
        self.rows_seen = rows_seen
        super().__init__(f"Could not find a real evaluation row to open (checked {rows_seen} rows)")
