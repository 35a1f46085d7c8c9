"""Training a network by full-batch gradient descent."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass

import numpy as np

from .activations import softmax
from .blas import (
    DTYPE,
    TransposeFlags,
    add,
    add_in_place,
    apply_relu_der,
    broadcast_column_vector,
    gemm,
    mul_scalar,
    reduce_columns,
    threshold,
)
from .io import load_dataset
from .network import Net

_PIXEL_SCALE = DTYPE(255)


def _check_pairs(net: Net) -> None:
    if not net or len(net) % 2:
        raise ValueError("a network must hold weight and bias matrices in pairs")


def one_hot(labels, classes: int) -> np.ndarray:
    """Return a ``classes x n`` matrix with a single 1 per column at the label's row."""
    flat = np.asarray(labels, dtype=DTYPE).ravel()
    indices = flat.astype(np.int64)
    if indices.size and (indices.min() < 0 or indices.max() >= classes):
        raise ValueError(f"labels must lie in 0..{classes - 1}")
    matrix = np.zeros((classes, flat.size), dtype=DTYPE)
    matrix[indices, np.arange(flat.size)] = 1
    return matrix


def forward_propagation(input_layer, net: Net) -> list[np.ndarray]:
    """Run ``input_layer`` through ``net`` and return every intermediate layer.

    Even positions hold the pre-activations, odd positions the activations;
    the last one is the softmax output.
    """
    _check_pairs(net)
    layer = np.asarray(input_layer, dtype=DTYPE)
    if layer.ndim == 1:
        layer = layer.reshape(-1, 1)
    hidden: list[np.ndarray] = []
    last = len(net) // 2 - 1
    for index, (weights, bias) in enumerate(zip(net[::2], net[1::2])):
        z = gemm(weights, layer)
        broadcast_column_vector(z, bias)
        layer = softmax(z) if index == last else threshold(z)
        hidden.extend((z, layer))
    return hidden


def backward_propagation(hidden_layers, one_hot_matrix, train_inputs, net: Net):
    """Return the gradient of the mean cross-entropy loss and the first layer's delta.

    The gradient has one matrix per matrix of ``net``; the delta is the error
    signal at the first layer's pre-activation.
    """
    _check_pairs(net)
    if len(hidden_layers) != len(net):
        raise ValueError("hidden layers do not match the network")
    inputs = np.asarray(train_inputs, dtype=DTYPE)
    if inputs.ndim != 2 or inputs.shape[1] == 0:
        raise ValueError("training inputs must hold at least one sample column")
    norm = 1.0 / inputs.shape[1]
    gradient: Net = [np.empty(0, dtype=DTYPE)] * len(net)

    delta = add(hidden_layers[-1], one_hot_matrix, -1.0)
    for i in range(len(hidden_layers) - 1, 1, -2):
        gradient[i - 1] = gemm(delta, hidden_layers[i - 2], norm, flags=TransposeFlags.T2)
        bias_grad = reduce_columns(delta)
        mul_scalar(bias_grad, norm)
        gradient[i] = bias_grad
        delta = gemm(net[i - 1], delta, flags=TransposeFlags.T1)
        apply_relu_der(delta, hidden_layers[i - 3])

    gradient[0] = gemm(delta, inputs, norm, flags=TransposeFlags.T2)
    bias_grad = reduce_columns(delta)
    mul_scalar(bias_grad, norm)
    gradient[1] = bias_grad
    return gradient, delta


def update_params(net: Net, gradient: Net, grad_weight: float) -> None:
    """Step every parameter of ``net`` against its gradient, in place."""
    if len(net) != len(gradient):
        raise ValueError("gradient does not match the network")
    for params, grad in zip(net, gradient):
        add_in_place(params, grad, -grad_weight)


def get_predictions(last_layer) -> np.ndarray:
    """Return a ``1 x n`` row with the index of the largest entry of each column."""
    arr = np.asarray(last_layer, dtype=DTYPE)
    if arr.ndim != 2 or arr.shape[0] == 0:
        raise ValueError("last layer must be a two-dimensional matrix with rows")
    return np.argmax(arr, axis=0).astype(DTYPE).reshape(1, -1)


def get_accuracy(labels, predictions) -> float:
    """Percentage of columns where the prediction equals the label."""
    lab = np.asarray(labels, dtype=DTYPE).ravel()
    pred = np.asarray(predictions, dtype=DTYPE).ravel()
    if lab.size == 0:
        raise ValueError("no labels to compare")
    if pred.size < lab.size:
        raise ValueError("fewer predictions than labels")
    matches = int(np.count_nonzero(np.abs(lab - pred[: lab.size]) < 1e-6))
    return matches / lab.size * 100.0


def get_cross_entropy(labels, predictions) -> float:
    """Cross-entropy of ``predictions`` against ``labels``, with predictions clipped away from 0 and 1."""
    pred = np.asarray(predictions, dtype=DTYPE).ravel()
    lab = np.asarray(labels, dtype=DTYPE).ravel()
    if lab.size < pred.size:
        raise ValueError("fewer labels than predictions")
    clipped = np.clip(pred, DTYPE(1e-7), DTYPE(1 - 1e-7))
    return float(-np.sum(lab[: pred.size] * np.log(clipped), dtype=DTYPE))


@dataclass
class LearningResources:
    """Training and development sets split off a dataset, ready for training."""

    net: Net
    train_labels: np.ndarray
    train_inputs: np.ndarray
    one_hot: np.ndarray
    dev_labels: np.ndarray
    dev_inputs: np.ndarray

    @classmethod
    def from_dataset(cls, net: Net, dataset, dev_size: int) -> "LearningResources":
        """Split a dataset with one sample per column (label in row 0, pixels 0..255 below).

        The first ``dev_size`` columns form the development set; inputs are scaled to [0, 1].
        """
        _check_pairs(net)
        data = np.asarray(dataset, dtype=DTYPE)
        if data.ndim != 2 or data.shape[0] < 2:
            raise ValueError("dataset needs a label row and input rows")
        samples = data.shape[1]
        if dev_size < 0 or dev_size > samples:
            raise ValueError(f"dev_size must lie in 0..{samples}")
        if dev_size == samples:
            raise ValueError("no samples are left for training")
        dev, train = data[:, :dev_size], data[:, dev_size:]
        train_labels = train[:1].copy()
        return cls(
            net=net,
            train_labels=train_labels,
            train_inputs=train[1:] / _PIXEL_SCALE,
            one_hot=one_hot(train_labels, net[-1].shape[0]),
            dev_labels=dev[:1].copy(),
            dev_inputs=dev[1:] / _PIXEL_SCALE,
        )


def apply_gradient_descend(
    net: Net,
    dataset_path,
    show_progress=False,
    grad_weight=0.1,
    epochs=1000,
    dev_size=1000,
    check_period=10,
) -> list[tuple[int, float]]:
    """Train ``net`` in place on the dataset file at ``dataset_path``.

    Every ``check_period`` epochs (from the first multiple after zero) the
    development set is evaluated; the list of ``(epoch, accuracy)`` pairs is returned.
    """
    if check_period <= 0:
        raise ValueError("check_period must be positive")
    resources = LearningResources.from_dataset(net, load_dataset(dataset_path, True), dev_size)
    history: list[tuple[int, float]] = []
    start = time.perf_counter()

    for epoch in range(epochs):
        hidden = forward_propagation(resources.train_inputs, net)
        gradient, _ = backward_propagation(
            hidden, resources.one_hot, resources.train_inputs, net
        )
        update_params(net, gradient, grad_weight)
        if epoch % check_period == 0 and dev_size > 0 and epoch > 0:
            dev_hidden = forward_propagation(resources.dev_inputs, net)
            accuracy = get_accuracy(resources.dev_labels, get_predictions(dev_hidden[-1]))
            history.append((epoch, accuracy))
            if show_progress:
                elapsed = time.perf_counter() - start
                left = (epochs - epoch) / check_period * elapsed
                print("-----------------------")
                print(f"EPOCH: {epoch}")
                print(f"ACCURACY: {accuracy:g}%")
                print(f"LEARNING RATE: {grad_weight:g}")
                print(f"EPOCH ELAPSED TIME: {elapsed:g} seconds")
                print(f"APPROXIMATE TIME LEFT: {left:g} seconds")
                start = time.perf_counter()
    return history


__all__ = [
    "LearningResources",
    "apply_gradient_descend",
    "backward_propagation",
    "forward_propagation",
    "get_accuracy",
    "get_cross_entropy",
    "get_predictions",
    "one_hot",
    "update_params",
]

# math is used for documentation-level constants elsewhere; keep the namespace tidy.
del math