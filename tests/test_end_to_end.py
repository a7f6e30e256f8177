from __future__ import annotations

from pathlib import Path

import pytest

from geombridge.api import optimize
from geombridge.errors import EvalError, JobError
from geombridge.models import ConstantModel, GradOutput, HarmonicPairModel

pytest.importorskip("geometric")

ELEM = ["O", "H", "H"]
WATER = [0.0, 0.3, 0.0, 0.9, 0.8, 0.0, -0.9, 0.5, 0.0]

TIGHT = {
    "transition": False,
    "convergence_energy": 1.0e-8,
    "convergence_grms": 1.0e-6,
    "convergence_gmax": 1.0e-6,
    "convergence_drms": 1.0e-4,
    "convergence_dmax": 1.0e-4,
}


class FailOnSecondCall(HarmonicPairModel):
    def evaluate(self, coords: list[float], scratch_dir: Path) -> GradOutput:
        if len(self.history) == 1:
            self.history.append(list(coords))
            raise EvalError("second evaluation failed")
        return super().evaluate(coords, scratch_dir)


def test_flat_surface_converges_in_place() -> None:
    result = optimize(ConstantModel(energy=-1.0), ELEM, WATER, config=TIGHT)

    assert result.final_energy == pytest.approx(-1.0)
    assert result.final_coords == pytest.approx(WATER, abs=1e-6)
    assert result.log_path is None


def test_harmonic_model_reaches_equilibrium_distances(tmp_path: Path) -> None:
    model = HarmonicPairModel()
    log_path = tmp_path / "water.log"

    result = optimize(model, ELEM, WATER, config=TIGHT, log_path=log_path)

    assert result.final_energy == pytest.approx(0.0, abs=1e-6)
    assert result.energies[0] > result.final_energy
    assert result.n_evaluations == len(model.history)
    assert log_path.exists()


def test_config_may_be_given_as_toml_text() -> None:
    toml_text = "\n".join(f"{key} = {str(value).lower()}" for key, value in TIGHT.items())

    result = optimize(ConstantModel(energy=-1.0), ELEM, WATER, config=toml_text)

    assert result.final_energy == pytest.approx(-1.0)


def test_failure_on_second_evaluation_fails_the_job() -> None:
    model = FailOnSecondCall()

    with pytest.raises(JobError) as exc:
        optimize(model, ELEM, WATER, config=TIGHT)

    assert isinstance(exc.value.cause, EvalError)
    assert "second evaluation failed" in str(exc.value.cause)
    assert len(model.history) == 2


class ScratchWriter:
    def __init__(self, seen: list[Path]) -> None:
        self.seen = seen

    def evaluate(self, coords: list[float], scratch_dir: Path) -> GradOutput:
        assert list(scratch_dir.iterdir()) == []
        assert scratch_dir not in self.seen
        self.seen.append(scratch_dir)
        (scratch_dir / "artifact.dat").write_text("x", encoding="utf-8")
        return GradOutput(energy=-1.0, gradient=[0.0] * len(coords))


def test_jobs_sharing_a_log_path_get_fresh_scratch_dirs(tmp_path: Path) -> None:
    seen: list[Path] = []
    log_path = tmp_path / "job.log"

    for _ in range(2):
        optimize(ScratchWriter(seen), ELEM, WATER, config=TIGHT, log_path=log_path)

    assert len(seen) >= 2
