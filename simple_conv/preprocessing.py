"""Centring and rescaling of hand-drawn digit images."""

from __future__ import annotations

import math
from pathlib import Path

import numpy as np

from .blas import DTYPE
from .io import load_dataset, save_dataset

CROP_SIZE = 28
THRESHOLD = 120


def _bgr_to_gray(img: np.ndarray) -> np.ndarray:
    channels = img.astype(np.uint32)
    b, g, r = channels[..., 0], channels[..., 1], channels[..., 2]
    return ((b * 1868 + g * 9617 + r * 4899 + 8192) >> 14).astype(np.uint8)


def _float_to_uint8(img: np.ndarray) -> np.ndarray:
    scaled = np.rint(np.nan_to_num(img.astype(np.float64)) * 255.0)
    return np.clip(scaled, 0, 255).astype(np.uint8)


def _window_sums(arr: np.ndarray, size: int, axis: int) -> np.ndarray:
    sums = np.cumsum(arr, axis=axis)
    zeros_shape = list(arr.shape)
    zeros_shape[axis] = 1
    sums = np.concatenate([np.zeros(zeros_shape), sums], axis=axis)
    upper = np.take(sums, np.arange(size, sums.shape[axis]), axis=axis)
    lower = np.take(sums, np.arange(0, sums.shape[axis] - size), axis=axis)
    return upper - lower


def _box_blur(img: np.ndarray, size: int) -> np.ndarray:
    if size < 1:
        raise ValueError("blur size must be positive")
    before = size // 2
    after = size - 1 - before
    padded = np.pad(img.astype(np.float64), ((before, after), (before, after)), mode="reflect")
    total = _window_sums(_window_sums(padded, size, 0), size, 1)
    return np.clip(np.rint(total / (size * size)), 0, 255).astype(np.uint8)


def _resize_axis(src_size: int, dst_size: int):
    positions = (np.arange(dst_size) + 0.5) * (src_size / dst_size) - 0.5
    low = np.floor(positions).astype(np.int64)
    frac = positions - low
    below = low < 0
    low[below] = 0
    frac[below] = 0.0
    above = low >= src_size - 1
    low[above] = src_size - 1
    frac[above] = 0.0
    high = np.minimum(low + 1, src_size - 1)
    return low, high, frac


def _resize_linear(img: np.ndarray, height: int, width: int) -> np.ndarray:
    r0, r1, fr = _resize_axis(img.shape[0], height)
    c0, c1, fc = _resize_axis(img.shape[1], width)
    src = img.astype(np.float64)
    horizontal = src[:, c0] * (1 - fc) + src[:, c1] * fc
    out = horizontal[r0] * (1 - fr)[:, None] + horizontal[r1] * fr[:, None]
    return out.astype(DTYPE)


def _bounding_rect(mask: np.ndarray) -> tuple[int, int, int, int]:
    cols = np.flatnonzero(mask.any(axis=0))
    rows = np.flatnonzero(mask.any(axis=1))
    if cols.size == 0:
        return 0, 0, 0, 0
    x, y = int(cols[0]), int(rows[0])
    return x, y, int(cols[-1]) - x + 1, int(rows[-1]) - y + 1


def crop_image(img, blur=False, blur_size=5) -> np.ndarray:
    """Crop the drawn figure to a square around it and scale it to 28 x 28.

    Accepts a greyscale uint8 image, a greyscale float image in [0, 1] or a
    three-channel uint8 image in BGR order. The figure is made of pixels above
    120 after an optional box blur. The result is float32 in [0, 1]; when no
    figure is found the greyscale uint8 image is returned uncropped.
    """
    arr = np.asarray(img)
    if arr.ndim == 3 and arr.shape[2] == 3:
        if arr.dtype != np.uint8:
            raise ValueError("three-channel images must be uint8")
        arr = _bgr_to_gray(arr)
    elif arr.ndim == 3 and arr.shape[2] == 1:
        arr = arr[..., 0]
    if arr.ndim != 2 or arr.size == 0:
        raise ValueError("image must be a non-empty two-dimensional array")
    if np.issubdtype(arr.dtype, np.floating):
        arr = _float_to_uint8(arr)
    elif arr.dtype == np.uint8:
        arr = arr.copy()
    else:
        raise ValueError(f"unsupported image type {arr.dtype}")

    if blur:
        arr = _box_blur(arr, blur_size)

    height, width = arr.shape
    x, y, w, h = _bounding_rect(arr > THRESHOLD)
    diff = abs(w - h) // 2
    if w < h:
        x = max(x - diff, 0)
        w = min(width - x, h)
    else:
        y = max(y - diff, 0)
        h = min(height - y, w)
    if w == 0 or h == 0:
        return arr

    region = arr[y:y + h, x:x + w].astype(DTYPE) / DTYPE(255)
    return _resize_linear(region, CROP_SIZE, CROP_SIZE)


def preprocess_dataset(source, destination) -> None:
    """Crop every image of a labelled dataset file and write the result.

    Each row of ``source`` (which has a header line) is a label followed by
    the pixels of a square image; the output has no header.
    """
    source = Path(source)
    if not source.exists():
        raise FileNotFoundError(f"dataset doesn't exist: {source}")
    dataset = load_dataset(source, False, ",", True)
    if dataset.ndim != 2 or dataset.shape[1] < 2:
        raise ValueError("dataset needs a label column and pixel columns")
    pixels = dataset.shape[1] - 1
    size = int(math.sqrt(dataset.shape[1]))
    if size * size != pixels:
        raise ValueError(f"{pixels} pixels do not form a square image")

    for row in dataset:
        image = crop_image(row[1:].reshape(size, size), True, 2)
        if image.dtype == np.uint8:
            image = image.astype(DTYPE) / DTYPE(255)
        if image.size != pixels:
            raise ValueError(
                f"cropped image has {image.size} pixels, the dataset rows hold {pixels}"
            )
        row[1:] = image.ravel()

    save_dataset(destination, dataset, ",")