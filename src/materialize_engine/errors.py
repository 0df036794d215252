"""
Error taxonomy for the Materialize engine.

- InvalidDescriptor: a descriptor breaks a builder invariant (caller bug, never recovered).
- ConfigurationConflict: mutually exclusive inputs were both given (raised before any SQL).
- ExecutionError: the store rejected a statement; carries the statement text.
- NotFound / AmbiguousIdentity: identity lookup returned zero / several rows.
- MalformedIdentity: a persisted identity or grant key could not be parsed.
- CompensationFailed: a creation failed and the compensating DROP failed too.
- OperationCancelled: the caller cancelled between two statements.
- UnknownRegion: no store is configured for the requested region.
"""

from __future__ import annotations


class MaterializeEngineError(Exception):
    """Base class for every error raised by the engine."""


class InvalidDescriptor(MaterializeEngineError, ValueError):
    pass


class ConfigurationConflict(MaterializeEngineError, ValueError):
    """Two or more mutually exclusive configuration inputs were populated."""

    def __init__(self, fields: tuple[str, ...], message: str) -> None:
        super().__init__(f"{message} (fields: {', '.join(fields)})")
        self.fields = fields


class ExecutionError(MaterializeEngineError):
    """The store rejected `statement`. The driver exception is chained as __cause__."""

    def __init__(self, statement: str, message: str) -> None:
        super().__init__(f"{message} [statement: {statement}]")
        self.statement = statement


class NotFound(MaterializeEngineError):
    pass


class AmbiguousIdentity(MaterializeEngineError):
    pass


class MalformedIdentity(MaterializeEngineError, ValueError):
    pass


class CompensationFailed(MaterializeEngineError):
    """Both a creation step and its compensating DROP failed."""

    def __init__(self, original_error: Exception, compensation_error: Exception) -> None:
        super().__init__(
            f"{type(original_error).__name__}: {original_error}; "
            f"compensating drop also failed: {type(compensation_error).__name__}: "
            f"{compensation_error}"
        )
        self.original_error = original_error
        self.compensation_error = compensation_error


class OperationCancelled(MaterializeEngineError):
    pass


class UnknownRegion(MaterializeEngineError, LookupError):
    pass
