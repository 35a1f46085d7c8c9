"""Searching for an input that a trained network maps to a chosen output."""

from __future__ import annotations

import numpy as np

from .blas import DTYPE, TransposeFlags, add_in_place, add_possible, gemm
from .learning import backward_propagation, forward_propagation
from .network import Net


def mean_squared_error(target, result) -> float:
    """Mean of the squared differences between ``target`` and ``result``.

    A term that would make the running sum overflow to infinity is dropped.
    """
    t = np.asarray(target, dtype=DTYPE)
    r = np.asarray(result, dtype=DTYPE)
    if not add_possible(t, r):
        raise ValueError(f"shapes {t.shape} and {r.shape} cannot be compared")
    if t.size == 0:
        raise ValueError("nothing to compare")
    total = DTYPE(0)
    last_finite = DTYPE(0)
    with np.errstate(over="ignore", invalid="ignore"):
        for expected, actual in zip(t.ravel(), r.ravel()):
            diff = expected - actual
            total = DTYPE(total + diff * diff)
            if np.isinf(total):
                total = last_finite
            else:
                last_finite = total
    return float(total / DTYPE(t.size))


def increase_contrast(img, alpha) -> np.ndarray:
    """Return ``img`` centred on its mean and scaled by ``alpha``."""
    arr = np.asarray(img, dtype=DTYPE)
    if arr.size == 0:
        raise ValueError("image is empty")
    mean = DTYPE(arr.mean(dtype=np.float64))
    return ((arr - mean) * DTYPE(alpha)).astype(DTYPE, copy=False)


def invert_network(
    net: Net,
    target,
    grad_weight=0.05,
    threshold=1e-6,
    max_iterations=None,
    rng=None,
) -> np.ndarray:
    """Find an input column whose output under ``net`` is close to ``target``.

    Starts from a random input uniform in [-0.5, 0.5) and descends the loss
    gradient with respect to the input until the mean squared error of the
    output is at most ``threshold``. Raises RuntimeError when
    ``max_iterations`` steps are taken without getting there.
    """
    if not net or len(net) % 2:
        raise ValueError("a network must hold weight and bias matrices in pairs")
    goal = np.asarray(target, dtype=DTYPE).reshape(-1, 1)
    if goal.shape[0] != net[-1].shape[0]:
        raise ValueError(
            f"target has {goal.shape[0]} entries, the network outputs {net[-1].shape[0]}"
        )
    generator = np.random.default_rng(rng)
    inputs = generator.uniform(-0.5, 0.5, size=(net[0].shape[1], 1)).astype(DTYPE)

    error = float("inf")
    iterations = 0
    while error > threshold:
        if max_iterations is not None and iterations >= max_iterations:
            raise RuntimeError(
                f"no input reached an error of {threshold} within {max_iterations} steps"
            )
        hidden = forward_propagation(inputs, net)
        _, delta = backward_propagation(hidden, goal, inputs, net)
        input_grad = gemm(net[0], delta, flags=TransposeFlags.T1)
        add_in_place(inputs, input_grad, -grad_weight)
        error = mean_squared_error(goal, hidden[-1])
        iterations += 1
    return inputs