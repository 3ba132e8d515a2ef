"""
Error kinds raised by the matrix library.

Each error also derives from the closest builtin exception, so callers may
catch either `MatrixError` or e.g. `ValueError`.
"""
from __future__ import annotations

from typing import Optional


class MatrixError(Exception):
    """Base class for all matrix library errors."""


class AllocationError(MatrixError, MemoryError):
    """Storage for a matrix could not be allocated."""


class ShapeError(MatrixError, ValueError):
    """Operand dimensions are invalid or incompatible with the operation."""


class RangeError(MatrixError, ValueError):
    """A parameter range is invalid (e.g. `min > max`)."""


class IoError(MatrixError, OSError):
    """A persisted source or sink could not be opened, read or written."""


class ParseError(MatrixError, ValueError):
    """A token of persisted text is not a base-10 integer (strict mode only)."""

    def __init__(self, message: str, line_number: Optional[int] = None, token: Optional[str] = None) -> None:
        super().__init__(message)
        self.line_number = line_number
        self.token = token
