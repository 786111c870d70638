"""Error taxonomy for the component assignment engine.

Store-layer failures are wrapped with the operation and key that failed and
handed back to the caller; nothing here retries.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from motocat.models import AssignmentOutcome, UsageReport


class MotocatError(Exception):
    """Base class for engine errors."""

    pass


class NotFound(MotocatError):
    """Referenced component, model, model year or configuration is absent."""

    def __init__(self, entity: str, key: Any):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found: {key}")


class StoreError(MotocatError):
    """Database failure, annotated with the operation and key involved."""

    def __init__(self, operation: str, key: Any, detail: str | None = None):
        self.operation = operation
        self.key = key
        message = f"{operation} failed for {key}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ConflictError(StoreError):
    """Unexpected constraint violation while writing an assignment."""

    pass


class InvalidWindowError(MotocatError, ValueError):
    """Effective window whose first year is after its last year."""

    def __init__(self, effective_from_year: int, effective_to_year: int):
        self.effective_from_year = effective_from_year
        self.effective_to_year = effective_to_year
        super().__init__(
            f"effective_from_year ({effective_from_year}) must not be after "
            f"effective_to_year ({effective_to_year})"
        )


class UsageBlockedError(MotocatError):
    """Component deletion refused because models or trims still reference it.

    Carries the full usage report so a confirmation dialog can be rendered
    without another query.
    """

    def __init__(self, report: UsageReport):
        self.report = report
        super().__init__(report.message)


class PartialBulkFailure(MotocatError):
    """A bulk assignment finished with a mix of ok and error outcomes.

    The bulk coordinator never raises this; callers that prefer an exception
    build it from a result via ``BulkAssignmentResult.as_failure()``.
    """

    def __init__(self, results: list[AssignmentOutcome]):
        self.results = results
        failed = [r for r in results if r.status == "error"]
        super().__init__(
            f"{len(results) - len(failed)} of {len(results)} assignments succeeded"
        )

    @property
    def failed(self) -> list[AssignmentOutcome]:
        return [r for r in self.results if r.status == "error"]
