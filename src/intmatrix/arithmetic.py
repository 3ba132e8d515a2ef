"""
Arithmetic Engine
=================
Equality, sum, scalar product, transpose and product of integer matrices.

Every operation allocates its result through `intmatrix.store.allocate` and
never mutates its operands. The result is only returned once it is fully
computed, so a failure never hands back a partially initialized matrix.

Overflow policy:
    Elements are 32-bit signed integers with wrapping (two's complement)
    arithmetic. Each result element equals the exact integer result reduced
    modulo 2**32 into [ELEMENT_MIN, ELEMENT_MAX]. Scalars of any magnitude
    are reduced the same way before multiplying.
"""
from __future__ import annotations

import logging
from typing import Optional, TYPE_CHECKING

import numpy as np

from intmatrix.config import ELEMENT_DTYPE, wrap
from intmatrix.errors import ShapeError
from intmatrix.store import allocate

if TYPE_CHECKING:
    from intmatrix.store import Allocator, Matrix

logger = logging.getLogger(__name__)


def equal(a: Matrix, b: Matrix) -> bool:
    """True if both matrices have the same shape and the same elements."""
    if a.shape != b.shape:
        return False
    return bool(np.array_equal(a.data, b.data))


def add(a: Matrix, b: Matrix, allocator: Optional[Allocator] = None) -> Matrix:
    """
    Elementwise sum of two matrices of the same shape.

    Raises:
        ShapeError: If the shapes differ.
        AllocationError: If the result could not be allocated.
    """
    if a.shape != b.shape:
        raise ShapeError(f"Cannot add {a.rows}x{a.columns} and {b.rows}x{b.columns} matrices.")
    result = allocate(a.rows, a.columns, allocator=allocator)
    np.add(a.data, b.data, out=result.data)
    return result


def scalar_product(a: Matrix, scalar: int, allocator: Optional[Allocator] = None) -> Matrix:
    """
    Multiply every element of `a` by `scalar`, wrapping on overflow.

    Raises:
        AllocationError: If the result could not be allocated.
    """
    result = allocate(a.rows, a.columns, allocator=allocator)
    np.multiply(a.data, ELEMENT_DTYPE.type(wrap(scalar)), out=result.data)
    return result


def transpose(a: Matrix, allocator: Optional[Allocator] = None) -> Matrix:
    """
    Return the transpose of `a`, shape (a.columns, a.rows).

    Raises:
        AllocationError: If the result could not be allocated.
    """
    result = allocate(a.columns, a.rows, allocator=allocator)
    result.data[...] = a.data.T
    return result


def product(a: Matrix, b: Matrix, allocator: Optional[Allocator] = None) -> Matrix:
    """
    Matrix product `a @ b`, wrapping on overflow.

    result[i][j] = sum_k a[i][k] * b[k][j], accumulated in the element type.

    Raises:
        ShapeError: If `a.columns != b.rows`.
        AllocationError: If the result could not be allocated.
    """
    if a.columns != b.rows:
        raise ShapeError(
            f"Cannot multiply {a.rows}x{a.columns} by {b.rows}x{b.columns}: "
            f"inner dimensions {a.columns} and {b.rows} differ."
        )
    result = allocate(a.rows, b.columns, allocator=allocator)
    if a.columns == 0:
        # Empty inner dimension: every dot product is 0
        result.data.fill(0)
    else:
        np.matmul(a.data, b.data, out=result.data)
    logger.debug(f"Computed {a.rows}x{a.columns} @ {b.rows}x{b.columns} product.")
    return result
