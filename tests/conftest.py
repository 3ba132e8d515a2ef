from __future__ import annotations

import weakref

import numpy as np
import pytest

from intmatrix.store import Matrix, from_rows


class CountingAllocator:
    """
    Allocator test double: counts calls and live buffers, and can fail on a given call.
    """

    def __init__(self, fail_on_call: int | None = None) -> None:
        self.fail_on_call = fail_on_call
        self.calls = 0
        self.live = 0

    def _on_free(self) -> None:
        self.live -= 1

    def __call__(self, shape: tuple[int, int], dtype: np.dtype) -> np.ndarray:
        self.calls += 1
        if self.calls == self.fail_on_call:
            raise MemoryError("simulated allocation failure")
        buffer = np.zeros(shape, dtype=dtype)
        self.live += 1
        weakref.finalize(buffer, self._on_free)
        return buffer


@pytest.fixture
def a() -> Matrix:
    return from_rows([[1, 2], [3, 4]])


@pytest.fixture
def b() -> Matrix:
    return from_rows([[5, 6], [7, 8]])


@pytest.fixture
def counting_allocator() -> CountingAllocator:
    return CountingAllocator()
