"""Fully connected network: construction and inference."""

from __future__ import annotations

import numpy as np

from .activations import softmax
from .blas import DTYPE, broadcast_column_vector, gemm, threshold

Net = list[np.ndarray]
"""Alternating weight matrices (fan_out x fan_in) and bias columns (fan_out x 1)."""


def forward(input_layer, net: Net) -> np.ndarray:
    """Run inputs (one sample per column) through ``net``.

    Hidden layers use ReLU, the last layer softmax.
    """
    if len(net) % 2:
        raise ValueError("a network must hold weight and bias matrices in pairs")
    layer = np.array(input_layer, dtype=DTYPE)
    if layer.ndim == 1:
        layer = layer.reshape(-1, 1)
    last = len(net) // 2 - 1
    for index, (weights, bias) in enumerate(zip(net[::2], net[1::2])):
        layer = gemm(weights, layer)
        broadcast_column_vector(layer, bias)
        layer = softmax(layer) if index == last else threshold(layer)
    return layer


def generate_empty_net(shapes, rng=None) -> Net:
    """Create a network with layer sizes ``shapes``, parameters uniform in [-0.5, 0.5)."""
    shapes = list(shapes)
    if len(shapes) < 2:
        raise ValueError("a network needs at least an input and an output size")
    generator = np.random.default_rng(rng)
    layers: Net = []
    for fan_in, fan_out in zip(shapes, shapes[1:]):
        layers.append(generator.uniform(-0.5, 0.5, size=(fan_out, fan_in)).astype(DTYPE))
        layers.append(generator.uniform(-0.5, 0.5, size=(fan_out, 1)).astype(DTYPE))
    return layers