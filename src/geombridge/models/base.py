from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, Sequence, runtime_checkable

from geombridge.errors import MarshalError


@dataclass(frozen=True)
class GradOutput:
    """Energy and flattened ``(natom * 3)`` gradient for one geometry.

    Units follow geomeTRIC: Hartree for the energy, Hartree/Bohr for the
    gradient.
    """

    energy: float
    gradient: Sequence[float]

    @classmethod
    def coerce(cls, value: Any) -> "GradOutput":
        """Accept either a ``GradOutput`` or a plain ``(energy, gradient)`` pair."""
        if isinstance(value, cls):
            return value
        try:
            energy, gradient = value
        except (TypeError, ValueError) as e:
            raise MarshalError(
                f"evaluator must return GradOutput or (energy, gradient), got {type(value).__name__}"
            ) from e
        return cls(energy=energy, gradient=gradient)


@runtime_checkable
class Evaluator(Protocol):
    """Interface for energy/gradient evaluators driven by the optimizer."""

    def evaluate(self, coords: list[float], scratch_dir: Path) -> GradOutput:
        """Return energy and gradient for the flattened Bohr ``coords``.

        ``scratch_dir`` is a writable directory private to this call. Raise
        (preferably ``EvalError``) to abort the whole job.
        """
