from __future__ import annotations


class EngineError(RuntimeError):
    """Base class for every rejection raised by the rules engine."""

    code = "engine-error"


class InvalidArgument(EngineError):
    code = "invalid-argument"


class FailedPrecondition(EngineError):
    code = "failed-precondition"


class NotFound(EngineError):
    code = "not-found"


class EmptyDeckError(EngineError):
    code = "empty-deck"
