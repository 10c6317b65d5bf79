"""Exception hierarchy for the agent pipeline.

Only three kinds of failure abort a run: the generation provider failing,
a stage producing output that breaks its schema, and a stage finding a
prior stage's output missing. Permission denials and dangerous patterns
are recorded as data on the stage outputs and never raised.
"""

from __future__ import annotations


class AgencyError(Exception):
    """Base class for every pipeline error.

    Attributes:
        message: Human-readable error description.
        cause: Original exception that caused this error (optional).
    """

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause


class ProviderError(AgencyError):
    """The generation provider failed or returned empty content."""


class SchemaViolation(AgencyError):
    """A stage output (or the run artifact) failed its schema.

    Attributes:
        stage: Name of the schema that rejected the value.
        errors: List of (field_path, message) pairs.
    """

    def __init__(
        self,
        stage: str,
        errors: list[tuple[str, str]],
        cause: Exception | None = None,
    ) -> None:
        self.stage = stage
        self.errors = errors
        detail = ", ".join(f"{path}: {msg}" for path, msg in errors)
        super().__init__(f"Schema validation failed for {stage}: {detail}", cause)


class MissingContextError(AgencyError):
    """A stage needed a prior stage's output that is not in the context."""

    def __init__(self, stage: str, missing: list[str]) -> None:
        self.stage = stage
        self.missing = missing
        super().__init__(f"{stage} requires {', '.join(missing)} output in context")


class ContextOrderError(AgencyError):
    """A context slot was written out of stage order, or written twice."""


class StageTimeoutError(AgencyError):
    """A stage did not finish within the configured deadline."""

    def __init__(self, stage: str, timeout_seconds: float) -> None:
        self.stage = stage
        self.timeout_seconds = timeout_seconds
        super().__init__(f"{stage} did not finish within {timeout_seconds}s")


class PipelineError(AgencyError):
    """A pipeline run failed. Nothing from the run was persisted.

    Attributes:
        run_id: Identifier of the failed run.
        stage: Stage that was executing when the run failed (None if the
            failure happened while finalizing).
    """

    def __init__(self, run_id: str, stage: str | None, cause: Exception) -> None:
        self.run_id = run_id
        self.stage = stage
        reason = cause.message if isinstance(cause, AgencyError) else str(cause)
        if stage:
            reason = f"[{stage}] {reason}"
        super().__init__(f"Pipeline run {run_id} failed: {reason}", cause)
