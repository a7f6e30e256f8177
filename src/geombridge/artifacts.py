from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any, Mapping, Sequence

TRAJECTORY_FIELDNAMES = ["step", "energy_hartree"]


def ensure_parent_dir(path: Path) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)


def write_json(path: Path, obj: Mapping[str, Any]) -> None:
    path = Path(path)
    ensure_parent_dir(path)
    path.write_text(json.dumps(obj, indent=2, sort_keys=True) + "\n", encoding="utf-8")


def write_trajectory_csv(energies: Sequence[float], out_csv: Path) -> None:
    out_csv = Path(out_csv)
    ensure_parent_dir(out_csv)

    with out_csv.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=TRAJECTORY_FIELDNAMES)
        writer.writeheader()
        for step, energy in enumerate(energies):
            writer.writerow({"step": step, "energy_hartree": float(energy)})


def write_xyz(path: Path, elem: Sequence[str], coords: Sequence[float], comment: str = "") -> None:
    """Write one structure (flat Angstrom buffer) as an XYZ file."""
    if len(coords) != 3 * len(elem):
        raise ValueError(f"expected {3 * len(elem)} coordinates, got {len(coords)}")
    path = Path(path)
    ensure_parent_dir(path)
    lines = [str(len(elem)), comment]
    for index, symbol in enumerate(elem):
        x, y, z = coords[3 * index : 3 * index + 3]
        lines.append(f"{symbol:<2s} {x:16.10f} {y:16.10f} {z:16.10f}")
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
