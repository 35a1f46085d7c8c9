"""Activation functions and a tiny wall-clock profiler."""

from __future__ import annotations

import sys
import time

import numpy as np

MAX_EXP_ARG = 87.0
MIN_EXP_ARG = -100.0
_FLOAT_MAX = float(np.finfo(np.float32).max)


def safe_exp(x):
    """Exponential with its argument clamped to a range that cannot overflow float32."""
    clipped = np.clip(np.asarray(x, dtype=np.float32), MIN_EXP_ARG, MAX_EXP_ARG)
    return np.exp(clipped)


def softmax(src) -> np.ndarray:
    """Column-wise softmax.

    A column whose exponential sum is tiny or NaN is scaled by ``1 / rows`` instead.
    """
    arr = np.asarray(src, dtype=np.float32)
    if arr.ndim != 2 or arr.size == 0:
        raise ValueError("softmax needs a non-empty two-dimensional matrix")
    rows = arr.shape[0]
    # NaN entries never win the maximum, as with a plain comparison loop.
    max_vals = np.fmax.reduce(arr, axis=0, initial=-_FLOAT_MAX, keepdims=True)
    with np.errstate(invalid="ignore", over="ignore", divide="ignore"):
        exps = safe_exp(arr - max_vals)
        sums = exps.sum(axis=0, dtype=np.float32, keepdims=True)
        degenerate = (sums <= 1e-6) | np.isnan(sums)
        normal = exps / sums
        uniform = np.float32(1.0 / rows) * arr
    return np.where(degenerate, uniform, normal).astype(np.float32, copy=False)


class Profiler:
    """Measures wall-clock time between labelled start and stop calls."""

    def __init__(self, stream=None):
        self._measures: dict[str, int] = {}
        self._stream = stream

    def start_measure(self, label: str) -> None:
        """Remember the current time under ``label``."""
        self._measures[label] = time.time_ns()

    def stop_measure(self, label: str) -> int:
        """Print and return the microseconds elapsed since ``label`` was started.

        An unknown label is reported and measured from the clock's epoch.
        """
        out = self._stream if self._stream is not None else sys.stdout
        start = self._measures.pop(label, None)
        if start is None:
            print(f"Unregistered label: {label}", file=out)
            start = 0
        elapsed = (time.time_ns() - start) // 1000
        print(f"{label}: {elapsed}", file=out)
        return elapsed