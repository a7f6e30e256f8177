from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from geombridge.api import optimize
from geombridge.config import parse_text, to_foreign_dict
from geombridge.engine import EngineState, get_engine_class, init_molecule, make_engine_class
from geombridge.errors import (
    AlreadyConfiguredError,
    BridgeError,
    ConfigSyntaxError,
    ConfigTypeError,
    EngineAbortedError,
    EvalError,
    JobError,
    MarshalError,
    PreconditionError,
)
from geombridge.models import Evaluator, GradOutput
from geombridge.runner import JobResult, run_job


try:
    __version__ = version("geometric-bridge")
except PackageNotFoundError:
    __version__ = "0+unknown"

__all__ = [
    "optimize",
    "run_job",
    "JobResult",
    "Evaluator",
    "GradOutput",
    "EngineState",
    "make_engine_class",
    "get_engine_class",
    "init_molecule",
    "parse_text",
    "to_foreign_dict",
    "BridgeError",
    "MarshalError",
    "ConfigSyntaxError",
    "ConfigTypeError",
    "AlreadyConfiguredError",
    "PreconditionError",
    "EvalError",
    "EngineAbortedError",
    "JobError",
    "__version__",
]
