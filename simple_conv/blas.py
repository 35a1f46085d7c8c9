"""Dense float32 matrix helpers used by the network code."""

from __future__ import annotations

import enum
from dataclasses import dataclass

import numpy as np

DTYPE = np.float32


class TransposeFlags(enum.IntFlag):
    """Which operands of :func:`gemm` are used transposed."""

    NO = 0
    T1 = 1
    T2 = 2


@dataclass(frozen=True)
class Roi:
    """Rectangular region: upper-left corner inclusive, lower-right exclusive."""

    xul: int
    yul: int
    xlr: int
    ylr: int

    @classmethod
    def from_corners(cls, x1: int, y1: int, x2: int, y2: int) -> "Roi":
        """Build a region from two opposite corners given in any order."""
        return cls(min(x1, x2), min(y1, y2), max(x1, x2), max(y1, y2))

    @property
    def width(self) -> int:
        return self.xlr - self.xul

    @property
    def height(self) -> int:
        return self.ylr - self.yul


def _as_matrix(m, name: str) -> np.ndarray:
    arr = np.asarray(m, dtype=DTYPE)
    if arr.ndim != 2 or arr.size == 0:
        raise ValueError(f"{name} must be a non-empty two-dimensional matrix")
    return arr


def submatrix(m, roi: Roi) -> np.ndarray:
    """Return a copy of the part of ``m`` covered by ``roi`` (x is the column)."""
    arr = _as_matrix(m, "m")
    rows, cols = arr.shape
    if roi.xul < 0 or roi.yul < 0 or roi.xlr > cols or roi.ylr > rows:
        raise ValueError("region lies outside the matrix")
    return arr[roi.yul:roi.ylr, roi.xul:roi.xlr].copy()


def mul_possible(a, b, flags=TransposeFlags.NO) -> bool:
    """Tell whether ``op(a) @ op(b)`` is defined for the given transpose flags."""
    if a is None or b is None:
        return False
    a_shape = np.shape(a)
    b_shape = np.shape(b)
    if len(a_shape) != 2 or len(b_shape) != 2:
        return False
    flags = TransposeFlags(flags)
    inner_a = a_shape[0] if TransposeFlags.T1 in flags else a_shape[1]
    inner_b = b_shape[1] if TransposeFlags.T2 in flags else b_shape[0]
    return inner_a == inner_b


def add_possible(a, b, flags=TransposeFlags.NO) -> bool:
    """Tell whether ``b`` (transposed when any flag is set) can be added to ``a``."""
    if a is None or b is None:
        return False
    a_shape = tuple(np.shape(a))
    b_shape = tuple(np.shape(b))
    if TransposeFlags(flags):
        return b_shape == a_shape[::-1]
    return b_shape == a_shape


def gemm(src1, src2, alpha=1.0, src3=None, beta=0.0, flags=TransposeFlags.NO) -> np.ndarray:
    """Return ``alpha * op(src1) @ op(src2) + beta * src3``.

    ``src3`` only takes part when it is given, non-empty and ``beta`` is not zero.
    """
    flags = TransposeFlags(flags)
    a = _as_matrix(src1, "src1")
    b = _as_matrix(src2, "src2")
    if not mul_possible(a, b, flags):
        raise ValueError(
            f"cannot multiply matrices of shapes {a.shape} and {b.shape} with flags {flags!r}"
        )
    op_a = a.T if TransposeFlags.T1 in flags else a
    op_b = b.T if TransposeFlags.T2 in flags else b
    result = DTYPE(alpha) * (op_a @ op_b)
    if src3 is not None and np.size(src3) and beta != 0:
        c = np.asarray(src3, dtype=DTYPE)
        if c.shape != result.shape:
            raise ValueError(f"src3 has shape {c.shape}, expected {result.shape}")
        result = result + DTYPE(beta) * c
    return result.astype(DTYPE, copy=False)


def _check_same_shape(a: np.ndarray, b: np.ndarray) -> None:
    if a.shape != b.shape:
        raise ValueError(f"shape mismatch: {a.shape} and {b.shape}")


def add(src1, src2, alpha=1.0) -> np.ndarray:
    """Return ``src1 + alpha * src2`` as a new matrix."""
    a = np.asarray(src1, dtype=DTYPE)
    b = np.asarray(src2, dtype=DTYPE)
    _check_same_shape(a, b)
    return (a + DTYPE(alpha) * b).astype(DTYPE, copy=False)


def add_in_place(src1: np.ndarray, src2, alpha=1.0) -> None:
    """Add ``alpha * src2`` to ``src1`` in place."""
    b = np.asarray(src2, dtype=DTYPE)
    _check_same_shape(src1, b)
    src1 += DTYPE(alpha) * b


def broadcast_column_vector(src: np.ndarray, addition) -> None:
    """Add the column vector ``addition`` to every column of ``src`` in place."""
    column = np.asarray(addition, dtype=DTYPE).reshape(-1, 1)
    if src.ndim != 2 or column.shape[0] != src.shape[0]:
        raise ValueError(
            f"column vector of {column.shape[0]} rows does not fit matrix of shape {src.shape}"
        )
    src += column


def threshold(src) -> np.ndarray:
    """Return the rectified matrix: negative entries become zero."""
    arr = np.asarray(src, dtype=DTYPE)
    return np.where(arr > 0, arr, DTYPE(0)).astype(DTYPE, copy=False)


def apply_relu_der(dz: np.ndarray, z) -> None:
    """Zero the entries of ``dz`` where ``z`` is not positive, in place."""
    z_arr = np.asarray(z, dtype=DTYPE)
    _check_same_shape(dz, z_arr)
    dz[z_arr <= 0] = 0


def reduce_columns(src) -> np.ndarray:
    """Return the column vector of row sums of ``src``."""
    arr = _as_matrix(src, "src")
    return gemm(arr, np.ones((arr.shape[1], 1), dtype=DTYPE))


def mul_scalar(m: np.ndarray, s) -> None:
    """Scale ``m`` by ``s`` in place."""
    m *= DTYPE(s)