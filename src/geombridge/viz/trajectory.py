from __future__ import annotations

from pathlib import Path
from typing import Sequence


def plot_energy_trajectory(energies: Sequence[float], out_png: Path) -> None:
    """Plot energy (relative to the first step) against optimization step."""
    if not energies:
        raise ValueError("cannot plot an empty energy trajectory")

    import matplotlib

    matplotlib.use("Agg")  # headless backend (CI-safe)
    import matplotlib.pyplot as plt

    steps = list(range(len(energies)))
    relative = [float(e) - float(energies[0]) for e in energies]

    plt.figure()
    plt.plot(steps, relative, marker="o", label="E - E(0)")
    plt.xlabel("Optimization step")
    plt.ylabel("Relative energy (Hartree)")
    plt.legend()

    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(out_png, dpi=200, bbox_inches="tight")
    plt.close()
