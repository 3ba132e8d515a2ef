"""
Matrix Initializers
Fill an allocated matrix in place with a constant, the identity pattern or random values.
"""
from __future__ import annotations

import logging
from typing import Optional, TYPE_CHECKING

import numpy as np

from intmatrix.config import ELEMENT_DTYPE, ELEMENT_MAX, ELEMENT_MIN, wrap
from intmatrix.errors import RangeError, ShapeError
from intmatrix.store import allocate

if TYPE_CHECKING:
    from intmatrix.store import Allocator, Matrix

logger = logging.getLogger(__name__)


def fill(m: Matrix, value: int) -> None:
    """Overwrite every element of `m` with `value` (wrapped to the element range)."""
    m.data.fill(wrap(value))


def fill_zeros(m: Matrix) -> None:
    fill(m, 0)


def init_identity(m: Matrix) -> None:
    """
    Turn a square matrix into the identity matrix.

    Raises:
        ShapeError: If `m` is not square.
    """
    if m.rows != m.columns:
        raise ShapeError(f"Identity matrix must be square, got {m.rows}x{m.columns}.")
    fill_zeros(m)
    np.fill_diagonal(m.data, 1)


def init_random(m: Matrix, val_min: int, val_max: int, rng: Optional[np.random.Generator] = None) -> None:
    """
    Fill `m` with integers drawn uniformly from the inclusive range [val_min, val_max].

    Args:
        m: Matrix to fill in place.
        val_min: Lower bound (inclusive).
        val_max: Upper bound (inclusive).
        rng: Random source. Pass a seeded generator for reproducible values;
            by default a new generator seeded from OS entropy is used per call.

    Raises:
        RangeError: If `val_min > val_max` or a bound lies outside the element range.
    """
    if val_min > val_max:
        raise RangeError(f"Invalid range: min ({val_min}) is greater than max ({val_max}).")
    if val_min < ELEMENT_MIN or val_max > ELEMENT_MAX:
        raise RangeError(f"Range [{val_min}, {val_max}] exceeds element range [{ELEMENT_MIN}, {ELEMENT_MAX}].")

    if rng is None:
        rng = np.random.default_rng()
    m.data[...] = rng.integers(val_min, val_max, size=m.shape, dtype=ELEMENT_DTYPE, endpoint=True)
    logger.debug(f"Filled {m.rows}x{m.columns} matrix with random values in [{val_min}, {val_max}].")


def identity(n: int, allocator: Optional[Allocator] = None) -> Matrix:
    """Allocate an `n x n` identity matrix."""
    m = allocate(n, n, allocator=allocator)
    init_identity(m)
    return m
