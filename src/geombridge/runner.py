from __future__ import annotations

import copy
import logging
import tempfile
import uuid
from contextlib import ExitStack
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping

from geombridge.arrays import from_foreign
from geombridge.engine import EngineMixin, EngineState
from geombridge.errors import ConfigTypeError, JobError, PreconditionError

logger = logging.getLogger(__name__)

# Keys the runner fills in itself; user values for them are dropped.
RESERVED_KEYS = ("customengine", "input")

OptimizerFn = Callable[..., Any]


@dataclass(frozen=True)
class JobResult:
    """Result of one optimization job.

    ``molecule`` is the object returned by the optimizer, passed through
    untouched. The remaining properties are read-only views of its
    ``xyzs`` (Angstrom frames) and ``qm_energies`` (Hartree).
    """

    job_id: str
    molecule: Any
    n_evaluations: int
    log_path: Path | None = None

    @property
    def trajectory(self) -> list[list[float]]:
        return [from_foreign(xyz) for xyz in self.molecule.xyzs]

    @property
    def energies(self) -> list[float]:
        return [float(e) for e in self.molecule.qm_energies]

    @property
    def final_coords(self) -> list[float]:
        return from_foreign(self.molecule.xyzs[-1])

    @property
    def final_energy(self) -> float:
        return float(self.molecule.qm_energies[-1])


def _default_optimizer() -> OptimizerFn:
    from geometric.optimize import run_optimizer

    return run_optimizer


def run_job(
    engine: EngineMixin,
    config: Mapping[str, Any] | None = None,
    log_path: Path | None = None,
    *,
    optimizer: OptimizerFn | None = None,
) -> JobResult:
    """Run one optimization job with a configured proxy engine.

    ``config`` is passed to the optimizer as keyword arguments. With
    ``log_path`` the optimizer log is kept at ``<log_path without suffix>.log``;
    without it, the log and every other optimizer output live in a temporary
    directory that is deleted when the job ends.
    """
    if not isinstance(engine, EngineMixin):
        raise PreconditionError(f"expected a proxy engine, got {type(engine).__name__}")
    if engine.state is not EngineState.CONFIGURED:
        raise PreconditionError(
            f"engine must be in state 'configured' to run, not {engine.state.value!r}"
        )
    if config is None:
        config = {}
    if not isinstance(config, Mapping):
        raise ConfigTypeError("root", f"expected a mapping, got {type(config).__name__}")

    kwargs = copy.deepcopy(dict(config))
    for key in RESERVED_KEYS:
        if key in kwargs:
            logger.warning("Ignoring optimizer option %r; it is set by the job runner", key)
            del kwargs[key]

    run_optimizer = optimizer if optimizer is not None else _default_optimizer()
    job_id = uuid.uuid4().hex[:12]

    with ExitStack() as stack:
        if log_path is None:
            scratch = Path(stack.enter_context(tempfile.TemporaryDirectory(prefix="geombridge-")))
            input_path = scratch / "job"
            kept_log = None
        else:
            input_path = Path(log_path)
            input_path.parent.mkdir(parents=True, exist_ok=True)
            kept_log = input_path.with_suffix(".log")

        kwargs["input"] = str(input_path)
        kwargs["customengine"] = engine
        logger.info("Starting optimization job %s (log: %s)", job_id, kept_log or "<ephemeral>")

        try:
            molecule = run_optimizer(**kwargs)
        except Exception as e:
            cause = engine.failure if engine.failure is not None else e
            raise JobError(f"optimization job {job_id} failed: {cause}", cause=cause) from cause
        finally:
            engine.release()

        if engine.failure is not None:
            cause = engine.failure
            raise JobError(f"optimization job {job_id} failed: {cause}", cause=cause) from cause

    logger.info(
        "Finished optimization job %s after %d evaluation(s)", job_id, engine.n_evaluations
    )
    return JobResult(
        job_id=job_id,
        molecule=molecule,
        n_evaluations=engine.n_evaluations,
        log_path=kept_log,
    )
