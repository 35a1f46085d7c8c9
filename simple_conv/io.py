"""Reading and writing datasets, images and networks."""

from __future__ import annotations

from pathlib import Path

import numpy as np
from PIL import Image

from .blas import DTYPE
from .network import Net

_INT = np.dtype("<i4")
_FLOAT = np.dtype("<f4")


def _existing(path, what: str) -> Path:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"{what} doesn't exist: {p}")
    return p


def _parse_value(token: str, line_number: int) -> float:
    try:
        return float(token)
    except ValueError:
        raise ValueError(f"line {line_number}: {token!r} is not a number") from None


def load_dataset(filename, transposed=False, delimiter=",", has_header=True) -> np.ndarray:
    """Load a delimited text file of numbers as a float32 matrix, one row per line.

    With ``transposed`` each line becomes a column instead.
    """
    path = _existing(filename, "dataset")
    text = path.read_bytes().decode("utf-8")
    if not text:
        raise ValueError(f"file is empty: {path}")
    first_line = 1
    if has_header:
        _, newline, text = text.partition("\n")
        if not newline:
            raise ValueError(f"no newline found in {path}")
        first_line = 2

    rows: list[list[float]] = []
    for line_number, line in enumerate(text.split("\n"), start=first_line):
        line = line.rstrip("\r")
        if not line.strip():
            continue
        values = [_parse_value(token, line_number) for token in line.split(delimiter)]
        if rows and len(values) != len(rows[0]):
            raise ValueError(
                f"line {line_number}: expected {len(rows[0])} values, found {len(values)}"
            )
        rows.append(values)

    matrix = np.array(rows, dtype=DTYPE) if rows else np.empty((0, 0), dtype=DTYPE)
    if transposed:
        return np.ascontiguousarray(matrix.T)
    return matrix


def save_dataset(filename, data, delimiter=",") -> None:
    """Write ``data`` as delimited integers.

    The first column is written as it is, the others are scaled by 255; every
    value is truncated to the range 0..255.
    """
    arr = np.array(data, dtype=DTYPE)
    if arr.ndim != 2:
        raise ValueError("dataset must be a two-dimensional matrix")
    arr[:, 1:] *= DTYPE(255)
    values = np.clip(np.trunc(np.nan_to_num(arr)), 0, 255).astype(np.uint8)
    with open(filename, "w", encoding="ascii", newline="\n") as out:
        for row in values:
            out.write(delimiter.join(str(int(v)) for v in row))
            out.write("\n")


def read_img_to_input_layer(path, invert=False, normalize=False) -> np.ndarray:
    """Read an image as greyscale and return its pixels as one column.

    ``invert`` maps each pixel p to 255 - p; ``normalize`` scales to float32 in [0, 1].
    """
    p = _existing(path, "image")
    with Image.open(p) as image:
        pixels = np.asarray(image.convert("L"), dtype=np.uint8)
    if invert:
        pixels = np.uint8(255) - pixels
    if normalize:
        pixels = pixels.astype(DTYPE) / DTYPE(255)
    return pixels.reshape(-1, 1).copy()


def save_net(net: Net, path) -> None:
    """Write ``net`` in the binary network format.

    Layout: layer count, then rows and columns of each layer (all int32),
    then each layer's float32 values in row-major order.
    """
    layers = [np.asarray(layer, dtype=_FLOAT) for layer in net]
    if any(layer.ndim != 2 for layer in layers):
        raise ValueError("every layer must be a two-dimensional matrix")
    header = [len(layers)]
    for layer in layers:
        header.extend(layer.shape)
    with open(path, "wb") as out:
        out.write(np.array(header, dtype=_INT).tobytes())
        for layer in layers:
            out.write(np.ascontiguousarray(layer, dtype=_FLOAT).tobytes())


def read_net(path) -> Net:
    """Read a network written by :func:`save_net`."""
    p = _existing(path, "network file")
    blob = p.read_bytes()
    if len(blob) < _INT.itemsize:
        raise ValueError(f"{p} is too short to hold a network")
    count = int(np.frombuffer(blob, dtype=_INT, count=1)[0])
    if count < 0:
        raise ValueError(f"{p} declares a negative layer count")
    offset = _INT.itemsize
    shapes_end = offset + 2 * count * _INT.itemsize
    if len(blob) < shapes_end:
        raise ValueError(f"{p} is truncated in its layer shapes")
    shapes = np.frombuffer(blob, dtype=_INT, count=2 * count, offset=offset).reshape(count, 2)
    offset = shapes_end

    net: Net = []
    for rows, cols in shapes.tolist():
        if rows < 0 or cols < 0:
            raise ValueError(f"{p} declares a negative layer size")
        n = rows * cols
        end = offset + n * _FLOAT.itemsize
        if len(blob) < end:
            raise ValueError(f"{p} is truncated in its layer data")
        layer = np.frombuffer(blob, dtype=_FLOAT, count=n, offset=offset)
        net.append(layer.reshape(rows, cols).astype(DTYPE))
        offset = end
    return net