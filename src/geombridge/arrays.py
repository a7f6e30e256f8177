from __future__ import annotations

import logging
import math
from typing import Any, Sequence

import numpy as np
from numpy.typing import NDArray

from geombridge.errors import MarshalError

logger = logging.getLogger(__name__)


def _declared_size(array: Any) -> int | None:
    shape = getattr(array, "shape", None)
    if shape is None:
        return None
    try:
        return int(math.prod(int(dim) for dim in shape))
    except (TypeError, ValueError) as e:
        raise MarshalError(f"array declares an unusable shape: {shape!r}") from e


def to_foreign(buffer: Sequence[float], expected_len: int | None = None) -> NDArray[np.float64]:
    """Copy a flat coordinate/gradient buffer into a 1-D float64 array.

    Non-finite values are carried over unchanged.
    """
    try:
        arr = np.array(buffer, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise MarshalError(f"buffer is not a numeric sequence: {e}") from e

    if arr.ndim != 1:
        raise MarshalError(f"expected a flat buffer, got an array of shape {arr.shape}")
    if expected_len is not None and arr.size != expected_len:
        raise MarshalError(f"expected {expected_len} values, got {arr.size}")
    return np.ascontiguousarray(arr)


def from_foreign(array: Any, expected_len: int | None = None) -> list[float]:
    """Read an optimizer-side array back into a flat list of floats.

    Both flat buffers and ``(natom, 3)`` blocks are accepted; blocks are
    flattened row by row. The declared shape is checked against
    ``expected_len`` before any element is read.
    """
    declared = _declared_size(array)
    if expected_len is not None and declared is not None and declared != expected_len:
        raise MarshalError(
            f"expected {expected_len} values, array declares shape {tuple(array.shape)}"
        )

    try:
        arr = np.asarray(array, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise MarshalError(f"array is not numeric: {e}") from e

    if expected_len is not None and arr.size != expected_len:
        raise MarshalError(f"expected {expected_len} values, got {arr.size}")
    return arr.ravel(order="C").tolist()


def to_xyz_frames(xyzs: Sequence[Sequence[float]], natom: int) -> list[NDArray[np.float64]]:
    """Reshape flat per-structure buffers into ``(natom, 3)`` frames."""
    if natom <= 0:
        raise MarshalError("a molecule needs at least one atom")
    if len(xyzs) == 0:
        raise MarshalError("at least one coordinate buffer is required")

    frames: list[NDArray[np.float64]] = []
    for index, xyz in enumerate(xyzs):
        try:
            flat = to_foreign(xyz, expected_len=3 * natom)
        except MarshalError as e:
            raise MarshalError(f"structure {index}: {e}") from e
        frames.append(flat.reshape(natom, 3))

    logger.debug("Marshalled %d structure(s) with %d atoms each", len(frames), natom)
    return frames
