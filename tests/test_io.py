import numpy as np
import pytest
from PIL import Image

from simple_conv.io import (
    load_dataset,
    read_img_to_input_layer,
    read_net,
    save_dataset,
    save_net,
)
from simple_conv.network import forward, generate_empty_net


def _filled_net():
    net = generate_empty_net([28 * 28, 10, 10], rng=0)
    for layer in net:
        layer[...] = np.arange(layer.size, dtype=np.float32).reshape(layer.shape)
    return net


def test_save_and_read_net_round_trip(tmp_path):
    layers = _filled_net()
    path = tmp_path / "net.conv"
    save_net(layers, path)
    read_layers = read_net(path)

    assert len(read_layers) == len(layers)
    for original, read in zip(layers, read_layers):
        assert read.shape == original.shape
        assert read.size == original.size
        np.testing.assert_array_equal(read, original)


def test_saved_net_layout(tmp_path):
    net = generate_empty_net([2, 3], rng=1)
    path = tmp_path / "small.conv"
    save_net(net, path)
    raw = path.read_bytes()
    assert np.frombuffer(raw[:20], dtype="<i4").tolist() == [2, 3, 2, 3, 1]
    assert len(raw) == 20 + (6 + 3) * 4
    np.testing.assert_array_equal(
        np.frombuffer(raw[20:44], dtype="<f4").reshape(3, 2), net[0]
    )


def test_bad_read_path(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_net(tmp_path / "im_not_exist.conv")


def test_truncated_net_raises(tmp_path):
    path = tmp_path / "net.conv"
    save_net(generate_empty_net([4, 3], rng=2), path)
    path.write_bytes(path.read_bytes()[:-4])
    with pytest.raises(ValueError):
        read_net(path)


def test_read_img_and_forward(tmp_path):
    pixels = np.zeros((28, 28), dtype=np.uint8)
    pixels[10:18, 12:16] = 255
    path = tmp_path / "test_img.png"
    Image.fromarray(pixels, mode="L").save(path)

    img = read_img_to_input_layer(path)
    assert img.shape == (784, 1)
    np.testing.assert_array_equal(img.ravel(), pixels.ravel())

    out = forward(img.astype(np.float32) / 255, generate_empty_net([28 * 28, 10, 10], rng=3))
    assert out.shape == (10, 1)
    assert out.sum() == pytest.approx(1.0, abs=1e-5)


def test_read_img_invert_and_normalize(tmp_path):
    pixels = np.array([[0, 255], [51, 204]], dtype=np.uint8)
    path = tmp_path / "img.png"
    Image.fromarray(pixels, mode="L").save(path)

    inverted = read_img_to_input_layer(path, invert=True)
    np.testing.assert_array_equal(inverted.ravel(), 255 - pixels.ravel())

    both = read_img_to_input_layer(path, invert=True, normalize=True)
    assert both.dtype == np.float32
    np.testing.assert_allclose(both.ravel(), (255 - pixels.ravel()) / 255, atol=1e-6)


def test_bad_img_read_path(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_img_to_input_layer(tmp_path / "im_not_exist.conv")


def test_load_dataset_with_header(tmp_path):
    path = tmp_path / "train.csv"
    path.write_text("label,a,b\n1,2,3\n4,5,6\n")
    data = load_dataset(path)
    assert data.shape == (2, 3)
    np.testing.assert_array_equal(data, [[1, 2, 3], [4, 5, 6]])


def test_load_dataset_transposed(tmp_path):
    path = tmp_path / "train.csv"
    path.write_text("label,a,b\n1,2,3\n4,5,6\n")
    data = load_dataset(path, transposed=True)
    assert data.shape == (3, 2)
    np.testing.assert_array_equal(data, [[1, 4], [2, 5], [3, 6]])


def test_load_dataset_without_header_and_delimiter(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text("1.5;2\n3;4.25\n")
    data = load_dataset(path, delimiter=";", has_header=False)
    np.testing.assert_array_equal(data, [[1.5, 2], [3, 4.25]])


def test_load_dataset_shape_like_train_set(tmp_path):
    rows = np.random.default_rng(4).integers(0, 256, size=(7, 785))
    path = tmp_path / "train.csv"
    header = ",".join(["label"] + [f"pixel{i}" for i in range(784)])
    body = "\n".join(",".join(str(v) for v in row) for row in rows)
    path.write_text(header + "\n" + body + "\n")
    data = load_dataset(path)
    assert data.shape == (7, 785)
    np.testing.assert_array_equal(data, rows)


def test_load_dataset_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_dataset(tmp_path / "missing.csv")

    empty = tmp_path / "empty.csv"
    empty.write_text("")
    with pytest.raises(ValueError):
        load_dataset(empty)

    header_only = tmp_path / "header.csv"
    header_only.write_text("label,a")
    with pytest.raises(ValueError):
        load_dataset(header_only)

    ragged = tmp_path / "ragged.csv"
    ragged.write_text("h\n1,2\n3\n")
    with pytest.raises(ValueError):
        load_dataset(ragged)


def test_save_dataset_scales_and_truncates(tmp_path):
    path = tmp_path / "out.csv"
    save_dataset(path, np.array([[3, 0.5, 1.0], [7, 0.0, 2.0]], dtype=np.float32))
    assert path.read_text() == "3,127,255\n7,0,255\n"


def test_save_then_load_dataset_round_trip(tmp_path):
    pixels = np.array([[10, 0, 200], [255, 31, 7]])
    data = np.column_stack([[2, 9], (pixels + 0.5) / 255]).astype(np.float32)
    path = tmp_path / "out.csv"
    save_dataset(path, data, delimiter=";")
    loaded = load_dataset(path, delimiter=";", has_header=False)
    np.testing.assert_array_equal(loaded[:, 0], [2, 9])
    np.testing.assert_array_equal(loaded[:, 1:], pixels)