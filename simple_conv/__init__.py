"""Fully connected neural networks for digit recognition: training, inference, preprocessing and storage."""

__version__ = "0.1.0"

__all__ = [
    "activations",
    "blas",
    "cli",
    "inverse",
    "io",
    "learning",
    "network",
    "preprocessing",
]