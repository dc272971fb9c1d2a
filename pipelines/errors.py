"""Error taxonomy shared by the readers, the reconciler and the batch job."""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for fatal pipeline failures tied to one input and field."""

    def __init__(self, message: str, *, source: str | None = None, field: str | None = None):
        self.source = source
        self.field = field
        location = ", ".join(
            part
            for part in (
                f"source={source}" if source else "",
                f"field={field}" if field else "",
            )
            if part
        )
        super().__init__(f"{message} ({location})" if location else message)


class ParseError(PipelineError):
    """A date or numeric field could not be parsed."""


class SchemaError(PipelineError):
    """An expected column is missing or a reshape matched no value columns."""


class IncompleteRowError(PipelineError):
    """Raised in strict mode when reconciled rows fail the completeness policy."""

    def __init__(self, message: str, *, missing: dict[str, int] | None = None):
        self.missing = dict(missing or {})
        super().__init__(message)


class JoinIntegrityWarning(UserWarning):
    """A source's post-join non-null rate is low enough to suggest a key mismatch."""


__all__ = [
    "PipelineError",
    "ParseError",
    "SchemaError",
    "IncompleteRowError",
    "JoinIntegrityWarning",
]
