from __future__ import annotations

import logging
import platform
from pathlib import Path
from typing import Any, Mapping

from geombridge import __version__
from geombridge.api import optimize
from geombridge.arrays import from_foreign
from geombridge.artifacts import write_json, write_trajectory_csv, write_xyz
from geombridge.config import load_config
from geombridge.models import MODEL_NAMES, resolve_model
from geombridge.runner import JobResult

SCHEMA_VERSION = 1

logger = logging.getLogger(__name__)


def read_xyz(path: Path) -> tuple[list[str], list[float]]:
    """Element labels and the first frame (flat, Angstrom) of a molecule file."""
    from geometric.molecule import Molecule

    molecule = Molecule(str(path))
    return list(molecule.elem), from_foreign(molecule.xyzs[0])


def _resolve(base: Path, raw: Any) -> Path:
    path = Path(str(raw))
    if not path.is_absolute():
        path = (base / path).resolve()
    return path


def write_job_outputs(
    result: JobResult,
    elem: list[str],
    output_root: Path,
    model_name: str,
) -> Path:
    """Write optimized.xyz, trajectory.csv and job.json; return the summary path."""
    output_root = Path(output_root)
    xyz_path = output_root / "optimized.xyz"
    trajectory_path = output_root / "trajectory.csv"
    summary_path = output_root / "job.json"

    energies = result.energies
    write_xyz(
        xyz_path,
        elem,
        result.final_coords,
        comment=f"job {result.job_id} E={result.final_energy:.12f}",
    )
    write_trajectory_csv(energies, trajectory_path)
    write_json(
        summary_path,
        {
            "job_id": result.job_id,
            "model": model_name,
            "n_evaluations": result.n_evaluations,
            "energies_hartree": energies,
            "final_energy_hartree": result.final_energy,
            "log_path": None if result.log_path is None else str(result.log_path),
            "outputs": sorted([str(xyz_path), str(trajectory_path)]),
            "package_version": __version__,
            "platform": platform.platform(),
            "python_version": platform.python_version(),
        },
    )
    logger.info("Wrote: %s", summary_path)
    return summary_path


def run_job_from_files(
    xyz_path: Path,
    model_name: str,
    optimizer_options: Mapping[str, Any],
    output_root: Path,
    *,
    energy: float = 0.0,
    keep_log: bool = False,
) -> Path:
    if model_name not in MODEL_NAMES:
        raise ValueError(f"Unknown model {model_name!r}; expected one of {', '.join(MODEL_NAMES)}.")
    if not Path(xyz_path).exists():
        raise ValueError(f"Molecule file not found: {xyz_path}")

    elem, coords = read_xyz(xyz_path)
    logger.info("Input: %s, atoms=%d, model=%s", Path(xyz_path).name, len(elem), model_name)
    evaluator = resolve_model(model_name, energy=energy)
    log_path = Path(output_root) / "optimize.log" if keep_log else None

    result = optimize(evaluator, elem, coords, config=optimizer_options, log_path=log_path)
    logger.info(
        "Final energy: %.10f Eh after %d evaluation(s)", result.final_energy, result.n_evaluations
    )
    return write_job_outputs(result, elem, output_root, model_name)


def run_from_config(config_path: Path) -> Path:
    config_path = Path(config_path)
    config = load_config(config_path)

    version = int(config.get("schema_version", -1))
    if version != SCHEMA_VERSION:
        raise ValueError(f"Unsupported config schema_version={version}; expected {SCHEMA_VERSION}.")

    job = config.get("job")
    if not isinstance(job, dict):
        raise ValueError("Config must contain a [job] table.")
    optimizer_options = config.get("optimizer", {})
    if not isinstance(optimizer_options, dict):
        raise ValueError("[optimizer] must be a table.")

    if "xyz" not in job:
        raise ValueError("[job] must name an input molecule with xyz = \"...\".")
    base = config_path.parent
    xyz_path = _resolve(base, job["xyz"])
    output_root = _resolve(base, job.get("output_root", "."))

    return run_job_from_files(
        xyz_path,
        str(job.get("model", "harmonic")),
        optimizer_options,
        output_root,
        energy=float(job.get("energy", 0.0)),
        keep_log=bool(job.get("keep_log", False)),
    )
