from __future__ import annotations


class BridgeError(Exception):
    """Base class for every failure raised by the geomeTRIC bridge."""


class MarshalError(BridgeError, ValueError):
    """Raised when an array crossing the engine boundary has the wrong shape or type."""


class ConfigSyntaxError(BridgeError, ValueError):
    """Raised when configuration text cannot be parsed."""


class ConfigTypeError(BridgeError, TypeError):
    """Raised when a configuration value has no optimizer-side counterpart."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path
        self.message = message


class AlreadyConfiguredError(BridgeError, RuntimeError):
    """Raised when a second evaluator is attached to a proxy engine."""


class PreconditionError(BridgeError, RuntimeError):
    """Raised when an engine or job is used outside its allowed state."""


class EvalError(BridgeError):
    """Raised by (or on behalf of) an evaluator that failed to produce a gradient."""


class EngineAbortedError(BridgeError, RuntimeError):
    """Raised when an evaluation is requested after an earlier evaluation failed."""


class JobError(BridgeError):
    """Terminal failure of one optimization job.

    ``cause`` is the first failure observed during the run: the error recorded
    by the proxy engine when there is one, otherwise whatever the optimizer
    raised.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause
