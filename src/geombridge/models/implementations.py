from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from geombridge.errors import EvalError
from geombridge.models.base import Evaluator, GradOutput

DEFAULT_EQUILIBRIUM = (
    (0.0, 1.8, 1.8),
    (1.8, 0.0, 2.8),
    (1.8, 2.8, 0.0),
)
DEFAULT_WEIGHTS = (
    (0.0, 1.0, 1.0),
    (1.0, 0.0, 0.5),
    (1.0, 0.5, 0.0),
)


@dataclass(frozen=True)
class ConstantModel(Evaluator):
    """Flat surface: constant energy, zero gradient everywhere."""

    energy: float = 0.0

    def evaluate(self, coords: list[float], scratch_dir: Path) -> GradOutput:
        return GradOutput(energy=self.energy, gradient=[0.0] * len(coords))


@dataclass
class HarmonicPairModel(Evaluator):
    """Weighted harmonic pair potential ``sum_ij w_ij (|r_i - r_j| - b_ij)**2``.

    Every geometry handed to ``evaluate`` is appended to ``history`` so the
    caller can inspect the visited path once the job has finished.
    """

    equilibrium: tuple[tuple[float, ...], ...] = DEFAULT_EQUILIBRIUM
    weights: tuple[tuple[float, ...], ...] = DEFAULT_WEIGHTS
    history: list[list[float]] = field(default_factory=list, repr=False)

    def evaluate(self, coords: list[float], scratch_dir: Path) -> GradOutput:
        b = np.asarray(self.equilibrium, dtype=np.float64)
        w = np.asarray(self.weights, dtype=np.float64)
        xyz = np.asarray(coords, dtype=np.float64).reshape(-1, 3)
        if xyz.shape[0] != b.shape[0]:
            raise EvalError(f"model is parameterized for {b.shape[0]} atoms, got {xyz.shape[0]}")
        self.history.append(list(coords))

        dr = xyz[:, None, :] - xyz
        dist = np.linalg.norm(dr, axis=2)
        energy = float((w * (dist - b) ** 2).sum())

        coef = 2.0 * w * (dist - b) / (dist + 1e-60)
        grad = np.einsum("ij,ijx->ix", coef, dr)
        grad -= np.einsum("ij,ijx->jx", coef, dr)
        return GradOutput(energy=energy, gradient=grad.ravel().tolist())

    @property
    def last_coords(self) -> list[float] | None:
        return self.history[-1] if self.history else None


MODEL_NAMES = ("constant", "harmonic")


def resolve_model(model_name: str, energy: float = 0.0) -> Evaluator:
    if model_name == "constant":
        return ConstantModel(energy=energy)
    if model_name == "harmonic":
        return HarmonicPairModel()
    raise ValueError(f"unsupported model: {model_name}")
