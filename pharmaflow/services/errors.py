"""
Pipeline errors.

Row-level problems in batch operations are reported as data (see
bulk_upsert.UpsertOutcome); these exceptions are for single-target
operations and abort only that operation.
"""


class PipelineError(Exception):
    """Base class for pipeline errors."""


class ValidationError(PipelineError):
    """Input rejected before any write."""


class NotFoundError(PipelineError):
    """The target entity of a single-row operation does not exist."""


class EmptyPipelineError(NotFoundError):
    """Archiving was requested while no process rows exist."""

    def __init__(self, message: str = "No process data to move.") -> None:
        super().__init__(message)
