from __future__ import annotations

import enum
import logging
import shutil
import tempfile
from functools import lru_cache
from pathlib import Path
from typing import Any, Sequence

from geombridge.arrays import from_foreign, to_foreign, to_xyz_frames
from geombridge.errors import (
    AlreadyConfiguredError,
    BridgeError,
    EngineAbortedError,
    EvalError,
    PreconditionError,
)
from geombridge.models.base import Evaluator, GradOutput

logger = logging.getLogger(__name__)


class EngineState(enum.Enum):
    CONSTRUCTED = "constructed"
    CONFIGURED = "configured"
    RUNNING = "running"
    DONE = "done"


class DriverLoan:
    """Scoped reference to an evaluator lent to a proxy engine for one job.

    The engine only reaches the evaluator through ``get()``. Once the loan is
    released the reference is dropped and ``get()`` fails, so nothing on the
    optimizer side can call back into the evaluator after the job.
    """

    def __init__(self, driver: Evaluator) -> None:
        self._driver: Evaluator | None = driver

    @property
    def active(self) -> bool:
        return self._driver is not None

    def get(self) -> Evaluator:
        if self._driver is None:
            raise PreconditionError("the evaluator loan has already been returned")
        return self._driver

    def release(self) -> None:
        self._driver = None


class EngineMixin:
    """Mixin to be combined with ``geometric.engine.Engine``.

    Holds the evaluator loan and the per-job state machine
    (constructed -> configured -> running -> done), and implements
    ``calc_new``, the hook geomeTRIC calls for every new geometry.
    The evaluator is attached afterwards with ``set_driver``.
    """

    def __init__(self, molecule: Any, *args: Any, **kwargs: Any) -> None:
        self._natom = len(molecule.elem)
        self._state = EngineState.CONSTRUCTED
        self._loan: DriverLoan | None = None
        self._failure: BaseException | None = None
        self._n_evaluations = 0
        self._current_coords: list[float] | None = None
        self._scratch_root: Path | None = None
        super().__init__(molecule, *args, **kwargs)

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def failure(self) -> BaseException | None:
        return self._failure

    @property
    def n_evaluations(self) -> int:
        return self._n_evaluations

    @property
    def current_coords(self) -> list[float] | None:
        return None if self._current_coords is None else list(self._current_coords)

    @property
    def driver(self) -> Evaluator | None:
        if self._loan is None or not self._loan.active:
            return None
        return self._loan.get()

    def set_driver(self, driver: Evaluator) -> None:
        """Attach the evaluator. Allowed exactly once, before the job starts."""
        if self._loan is not None:
            raise AlreadyConfiguredError("an evaluator is already attached to this engine")
        if self._state is not EngineState.CONSTRUCTED:
            raise PreconditionError(f"cannot attach an evaluator in state {self._state.value!r}")
        if not callable(getattr(driver, "evaluate", None)):
            raise PreconditionError(f"{type(driver).__name__} does not provide evaluate(coords, scratch_dir)")
        self._loan = DriverLoan(driver)
        self._state = EngineState.CONFIGURED
        logger.debug("Attached evaluator %s", type(driver).__name__)

    def release(self) -> None:
        """Finish the job: enter ``done``, return the evaluator loan and drop private scratch space."""
        if self._loan is not None:
            self._loan.release()
        if self._scratch_root is not None:
            shutil.rmtree(self._scratch_root, ignore_errors=True)
            self._scratch_root = None
        self._state = EngineState.DONE

    def _abort(self, error: BaseException) -> None:
        self._failure = error
        self.release()

    def _scratch_dir(self, dirname: str | None) -> Path:
        # Always a fresh directory, even when a previous job used the same dirname.
        if dirname:
            parent = Path(dirname)
            parent.mkdir(parents=True, exist_ok=True)
        else:
            if self._scratch_root is None:
                self._scratch_root = Path(tempfile.mkdtemp(prefix="geombridge-scratch-"))
            parent = self._scratch_root
        return Path(tempfile.mkdtemp(prefix=f"eval.{self._n_evaluations:04d}-", dir=parent))

    def calc_new(self, coords: Any, dirname: str | None) -> dict[str, Any]:
        if self._state is EngineState.DONE:
            if self._failure is not None:
                raise EngineAbortedError(
                    "evaluation requested after an earlier evaluation failed"
                ) from self._failure
            raise PreconditionError("evaluation requested after the job finished")
        if self._state is EngineState.CONSTRUCTED or self._loan is None:
            raise PreconditionError("no evaluator attached; call set_driver() first")

        self._state = EngineState.RUNNING
        try:
            buffer = from_foreign(coords, expected_len=3 * self._natom)
            driver = self._loan.get()
            self._n_evaluations += 1
            scratch_dir = self._scratch_dir(dirname)
            output = GradOutput.coerce(driver.evaluate(buffer, scratch_dir))
            energy = float(output.energy)
            gradient = to_foreign(output.gradient, expected_len=len(buffer))
        except BridgeError as e:
            self._abort(e)
            raise
        except Exception as e:
            error = EvalError(f"evaluation {self._n_evaluations} failed: {e}")
            self._abort(error)
            raise error from e

        self._current_coords = buffer
        logger.debug("Evaluation %d: energy=%.12f", self._n_evaluations, energy)
        # geomeTRIC needs the gradient as a flat (natom * 3) ndarray; lists or
        # (natom, 3) blocks break its internal-coordinate transforms.
        return {"energy": energy, "gradient": gradient}


def make_engine_class(base: type | None = None, name: str = "BridgeEngine") -> type:
    """Build ``type(name, (EngineMixin, base), {})``.

    ``base`` defaults to ``geometric.engine.Engine``.
    """
    if base is None:
        from geometric.engine import Engine

        base = Engine
    return type(name, (EngineMixin, base), {})


@lru_cache(maxsize=None)
def get_engine_class() -> type:
    """The shared proxy engine class bound to ``geometric.engine.Engine``."""
    return make_engine_class()


def init_molecule(elem: Sequence[str], xyzs: Sequence[Sequence[float]]) -> Any:
    """Build a ``geometric.molecule.Molecule`` from element labels and Angstrom buffers.

    Each entry of ``xyzs`` is one structure flattened as ``[x1, y1, z1, x2, ...]``.
    """
    from geometric.molecule import Molecule

    frames = to_xyz_frames(xyzs, natom=len(elem))
    molecule = Molecule()
    molecule.elem = list(elem)
    molecule.xyzs = frames
    return molecule
