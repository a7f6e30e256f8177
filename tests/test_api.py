from __future__ import annotations

import csv
from pathlib import Path

import numpy as np
import pytest

from geombridge.api import _as_buffers
from geombridge.artifacts import write_json, write_trajectory_csv, write_xyz


def test_public_package_exports_api_symbols() -> None:
    from geombridge import __all__

    for name in (
        "optimize",
        "run_job",
        "JobResult",
        "Evaluator",
        "GradOutput",
        "make_engine_class",
        "init_molecule",
        "to_foreign_dict",
        "JobError",
        "EvalError",
    ):
        assert name in __all__


def test_single_buffer_is_wrapped_as_one_structure() -> None:
    flat = [0.0, 0.3, 0.0, 0.9, 0.8, 0.0]

    assert _as_buffers(flat) == [flat]
    assert len(_as_buffers(np.asarray(flat))) == 1
    assert _as_buffers([flat, flat]) == [flat, flat]


def test_write_xyz(tmp_path: Path) -> None:
    out = tmp_path / "nested" / "water.xyz"

    write_xyz(out, ["O", "H", "H"], [0.0, 0.3, 0.0, 0.9, 0.8, 0.0, -0.9, 0.5, 0.0], comment="water")

    lines = out.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "3"
    assert lines[1] == "water"
    assert lines[2].split() == ["O", "0.0000000000", "0.3000000000", "0.0000000000"]
    assert len(lines) == 5

    with pytest.raises(ValueError):
        write_xyz(out, ["O"], [0.0, 0.0])


def test_write_trajectory_csv_and_json(tmp_path: Path) -> None:
    csv_path = tmp_path / "trajectory.csv"
    write_trajectory_csv([-1.0, -1.5, -1.75], csv_path)

    with csv_path.open("r", encoding="utf-8", newline="") as handle:
        rows = list(csv.DictReader(handle))
    assert [int(row["step"]) for row in rows] == [0, 1, 2]
    assert [float(row["energy_hartree"]) for row in rows] == [-1.0, -1.5, -1.75]

    json_path = tmp_path / "out" / "job.json"
    write_json(json_path, {"b": 1, "a": 2})
    assert json_path.read_text(encoding="utf-8") == '{\n  "a": 2,\n  "b": 1\n}\n'


@pytest.mark.parametrize("dtype", [np.float32, np.float64, np.int64])
def test_flat_numpy_buffer_of_any_numeric_dtype_is_one_structure(dtype: type) -> None:
    flat = np.asarray([0, 1, 0, 1, 1, 0, -1, 1, 0], dtype=dtype)

    buffers = _as_buffers(flat)

    assert len(buffers) == 1
    assert buffers[0] is flat


def test_optimize_accepts_float32_coordinates() -> None:
    pytest.importorskip("geometric")
    from geombridge.api import optimize
    from geombridge.models import ConstantModel

    water = np.asarray([0.0, 0.3, 0.0, 0.9, 0.8, 0.0, -0.9, 0.5, 0.0], dtype=np.float32)

    result = optimize(ConstantModel(energy=-1.0), ["O", "H", "H"], water)

    assert result.final_energy == pytest.approx(-1.0)
    assert result.final_coords == pytest.approx(water.tolist(), abs=1e-5)
