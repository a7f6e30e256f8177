from __future__ import annotations

import logging
import numbers
from pathlib import Path
from typing import Any, Mapping, Sequence

from geombridge.config import parse_text, to_foreign_dict
from geombridge.engine import get_engine_class, init_molecule
from geombridge.models.base import Evaluator
from geombridge.runner import JobResult, run_job

logger = logging.getLogger(__name__)


def _as_buffers(coords: Sequence[float] | Sequence[Sequence[float]]) -> list[Sequence[float]]:
    if len(coords) > 0 and isinstance(coords[0], numbers.Real):
        return [coords]  # type: ignore[list-item]
    return list(coords)  # type: ignore[arg-type]


def optimize(
    evaluator: Evaluator,
    elem: Sequence[str],
    coords: Sequence[float] | Sequence[Sequence[float]],
    config: Mapping[str, Any] | str | None = None,
    log_path: Path | None = None,
) -> JobResult:
    """Optimize a geometry with geomeTRIC using ``evaluator`` for energies and gradients.

    ``coords`` is one flat Angstrom buffer or a list of them; ``config`` is a
    mapping of ``run_optimizer`` options or the equivalent TOML text.
    """
    if isinstance(config, str):
        config = parse_text(config)
    params = to_foreign_dict(config or {})

    molecule = init_molecule(elem, _as_buffers(coords))
    engine = get_engine_class()(molecule)
    engine.set_driver(evaluator)
    logger.debug("Optimizing %d atom(s) with %s", len(elem), type(evaluator).__name__)
    return run_job(engine, params, log_path)
