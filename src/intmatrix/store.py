"""
Matrix Store
============
Owns the integer buffer of a matrix and its lifecycle.

Why is this file needed?
------------------------
1. Ownership: A `Matrix` exclusively owns one contiguous row-major buffer.
   Results of arithmetic are always freshly allocated here.
2. Atomic allocation: The whole `rows x columns` buffer is a single numpy
   allocation. It either succeeds or fails as a unit, so a failed allocation
   never leaves partially allocated rows behind.
3. Testability: The allocator is injectable, which lets tests simulate
   allocation failures and count outstanding buffers.

Classes:
    Matrix: Shape plus buffer, with operator sugar over the arithmetic engine.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Callable, Optional, Sequence, TYPE_CHECKING

import numpy as np

from intmatrix.config import ELEMENT_DTYPE, wrap
from intmatrix.errors import AllocationError, ShapeError

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

# (shape, dtype) -> buffer
Allocator = Callable[[tuple[int, int], np.dtype], "npt.NDArray[np.int32]"]


def default_allocator(shape: tuple[int, int], dtype: np.dtype) -> npt.NDArray[np.int32]:
    return np.zeros(shape, dtype=dtype)


@dataclass(eq=False)
class Matrix:
    """
    Dense integer matrix.

    An allocated matrix holds a `(rows, columns)` buffer; a released one has
    `rows == columns == 0` and `buffer is None`.
    """
    rows: int = 0
    columns: int = 0
    buffer: Optional[npt.NDArray[np.int32]] = None

    def __post_init__(self) -> None:
        if self.buffer is None:
            if self.rows != 0 or self.columns != 0:
                raise ShapeError(f"A matrix without a buffer must be 0x0, got {self.rows}x{self.columns}.")
            return
        if self.buffer.shape != (self.rows, self.columns):
            raise ShapeError(f"Buffer shape {self.buffer.shape} does not match {self.rows}x{self.columns}.")
        if self.buffer.dtype != ELEMENT_DTYPE:
            raise ShapeError(f"Buffer dtype must be {ELEMENT_DTYPE}, got {self.buffer.dtype}.")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(rows={self.rows}, columns={self.columns})"

    @property
    def shape(self) -> tuple[int, int]:
        return self.rows, self.columns

    @property
    def is_allocated(self) -> bool:
        return self.buffer is not None

    @property
    def data(self) -> npt.NDArray[np.int32]:
        """The buffer, or an empty 0x0 array for a released matrix."""
        if self.buffer is None:
            return np.zeros((0, 0), dtype=ELEMENT_DTYPE)
        return self.buffer

    def __getitem__(self, key: tuple[int, int]) -> int:
        return int(self.data[key])

    def __setitem__(self, key: tuple[int, int], value: int) -> None:
        self.data[key] = wrap(value)

    def to_list(self) -> list[list[int]]:
        return self.data.tolist()

    def release(self) -> None:
        release(self)

    # --- Operator sugar (see intmatrix.arithmetic) ---

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        from intmatrix.arithmetic import equal
        return equal(self, other)

    def __add__(self, other: Any) -> Matrix:
        if not isinstance(other, Matrix):
            return NotImplemented
        from intmatrix.arithmetic import add
        return add(self, other)

    def __mul__(self, scalar: Any) -> Matrix:
        if isinstance(scalar, bool) or not isinstance(scalar, (int, np.integer)):
            return NotImplemented
        from intmatrix.arithmetic import scalar_product
        return scalar_product(self, int(scalar))

    __rmul__ = __mul__

    def __matmul__(self, other: Any) -> Matrix:
        if not isinstance(other, Matrix):
            return NotImplemented
        from intmatrix.arithmetic import product
        return product(self, other)

    @property
    def T(self) -> Matrix:
        from intmatrix.arithmetic import transpose
        return transpose(self)


def allocate(rows: int, columns: int, allocator: Optional[Allocator] = None) -> Matrix:
    """
    Allocate a zero-filled `rows x columns` matrix.

    Args:
        rows: Number of rows (>= 0).
        columns: Number of columns (>= 0).
        allocator: Callable `(shape, dtype) -> ndarray`, defaults to `numpy.zeros`.

    Raises:
        ShapeError: If `rows` or `columns` is negative.
        AllocationError: If the buffer could not be allocated.

    Returns:
        The newly allocated matrix, owned by the caller.
    """
    if rows < 0 or columns < 0:
        raise ShapeError(f"Matrix dimensions must be non-negative, got {rows}x{columns}.")

    allocator = allocator or default_allocator
    shape = (int(rows), int(columns))
    try:
        buffer = allocator(shape, ELEMENT_DTYPE)
    except (MemoryError, ValueError) as e:
        # numpy reports sizes it cannot represent as ValueError
        raise AllocationError(f"Could not allocate a {rows}x{columns} matrix: {e}") from e

    if not isinstance(buffer, np.ndarray) or buffer.shape != shape or buffer.dtype != ELEMENT_DTYPE:
        raise AllocationError(f"Allocator returned an unusable buffer for a {rows}x{columns} matrix.")

    logger.debug(f"Allocated {rows}x{columns} matrix ({buffer.nbytes} bytes).")
    return Matrix(rows=shape[0], columns=shape[1], buffer=buffer)


def release(m: Matrix) -> None:
    """Free the buffer and reset `m` to the empty 0x0 state. Safe to repeat."""
    if m.buffer is None:
        return
    logger.debug(f"Releasing {m.rows}x{m.columns} matrix.")
    m.buffer = None
    m.rows = 0
    m.columns = 0


def from_rows(rows: Sequence[Sequence[int]], allocator: Optional[Allocator] = None) -> Matrix:
    """
    Build a matrix from a nested sequence of integers.

    Values outside the element range are wrapped.

    Raises:
        ShapeError: If the rows have different lengths.
    """
    n_rows = len(rows)
    n_columns = len(rows[0]) if n_rows else 0
    for i, row in enumerate(rows):
        if len(row) != n_columns:
            raise ShapeError(f"Row {i} has {len(row)} elements, expected {n_columns}.")

    m = allocate(n_rows, n_columns, allocator=allocator)
    for i, row in enumerate(rows):
        m.buffer[i, :] = [wrap(value) for value in row]
    return m
