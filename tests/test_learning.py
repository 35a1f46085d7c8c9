import math

import numpy as np
import pytest

from simple_conv.learning import (
    LearningResources,
    apply_gradient_descend,
    backward_propagation,
    forward_propagation,
    get_accuracy,
    get_cross_entropy,
    get_predictions,
    one_hot,
    update_params,
)
from simple_conv.network import forward, generate_empty_net


def _loss(net, inputs, targets):
    probs = forward_propagation(inputs, net)[-1]
    return get_cross_entropy(targets, probs) / inputs.shape[1]


def _write_dataset(path, samples):
    lines = ["label,a,b"]
    for i in range(samples):
        lines.append("0,255,0" if i % 2 == 0 else "1,0,255")
    path.write_text("\n".join(lines) + "\n")


def test_one_hot_places_ones_at_labels():
    result = one_hot(np.array([[0, 2, 1]], dtype=np.float32), 3)
    expected = np.array([[1, 0, 0], [0, 0, 1], [0, 1, 0]], dtype=np.float32)
    np.testing.assert_array_equal(result, expected)


def test_one_hot_rejects_out_of_range_label():
    with pytest.raises(ValueError):
        one_hot(np.array([[0, 3]]), 3)


def test_get_predictions_takes_first_maximum():
    last = np.array([[0.1, 0.5, 0.3], [0.7, 0.5, 0.3], [0.2, 0.0, 0.4]], dtype=np.float32)
    np.testing.assert_array_equal(get_predictions(last), np.array([[1, 0, 2]], dtype=np.float32))


def test_get_accuracy_percentage():
    labels = np.array([[1, 2, 3, 4]], dtype=np.float32)
    preds = np.array([[1, 2, 0, 4]], dtype=np.float32)
    assert get_accuracy(labels, preds) == pytest.approx(75.0)
    assert get_accuracy(labels, labels) == pytest.approx(100.0)


def test_cross_entropy_values():
    assert get_cross_entropy([[1, 0]], [[1, 0]]) == pytest.approx(0.0, abs=1e-6)
    assert get_cross_entropy([[1, 0]], [[0.5, 0.5]]) == pytest.approx(math.log(2), rel=1e-5)


def test_forward_propagation_layers_and_output():
    net = generate_empty_net([4, 5, 3], rng=1)
    inputs = np.random.default_rng(2).uniform(0, 1, size=(4, 6)).astype(np.float32)
    hidden = forward_propagation(inputs, net)
    assert len(hidden) == len(net)
    assert hidden[1].min() >= 0
    np.testing.assert_allclose(hidden[-1].sum(axis=0), np.ones(6), rtol=1e-5)
    np.testing.assert_allclose(hidden[-1], forward(inputs, net), rtol=1e-5)


def test_backward_propagation_matches_finite_differences():
    net = generate_empty_net([3, 4, 3], rng=5)
    inputs = np.random.default_rng(6).uniform(0, 1, size=(3, 5)).astype(np.float32)
    targets = one_hot(np.array([[0, 1, 2, 1, 0]]), 3)
    gradient, delta = backward_propagation(forward_propagation(inputs, net), targets, inputs, net)
    assert [g.shape for g in gradient] == [p.shape for p in net]
    assert delta.shape == (net[0].shape[0], inputs.shape[1])

    eps = 1e-2
    for layer in (2, 3):
        for index in np.ndindex(net[layer].shape):
            plus = [p.copy() for p in net]
            minus = [p.copy() for p in net]
            plus[layer][index] += eps
            minus[layer][index] -= eps
            numeric = (_loss(plus, inputs, targets) - _loss(minus, inputs, targets)) / (2 * eps)
            assert gradient[layer][index] == pytest.approx(numeric, abs=5e-3)


def test_update_params_steps_against_gradient():
    net = generate_empty_net([2, 3], rng=3)
    unchanged = [p.copy() for p in net]
    update_params(net, [np.zeros_like(p) for p in net], 0.5)
    for a, b in zip(net, unchanged):
        np.testing.assert_array_equal(a, b)
    update_params(net, [p.copy() for p in net], 1.0)
    for p in net:
        np.testing.assert_allclose(p, np.zeros_like(p), atol=1e-7)


def test_update_params_rejects_mismatch():
    net = generate_empty_net([2, 3], rng=3)
    with pytest.raises(ValueError):
        update_params(net, net[:1], 0.1)


def test_resources_split_and_scale():
    net = generate_empty_net([2, 3, 2], rng=0)
    dataset = np.array([[0, 1, 0, 1], [255, 0, 255, 0], [0, 255, 0, 255]], dtype=np.float32)
    res = LearningResources.from_dataset(net, dataset, 1)
    np.testing.assert_array_equal(res.dev_labels, dataset[:1, :1])
    np.testing.assert_array_equal(res.train_labels, dataset[:1, 1:])
    np.testing.assert_allclose(res.train_inputs, dataset[1:, 1:] / 255)
    assert res.train_inputs.max() == pytest.approx(1.0)
    np.testing.assert_array_equal(res.one_hot, one_hot(dataset[:1, 1:], 2))


def test_resources_reject_bad_dev_size():
    net = generate_empty_net([2, 2], rng=0)
    dataset = np.zeros((3, 4), dtype=np.float32)
    with pytest.raises(ValueError):
        LearningResources.from_dataset(net, dataset, 5)
    with pytest.raises(ValueError):
        LearningResources.from_dataset(net, dataset, 4)


def test_apply_gradient_descend_trains(tmp_path, capsys):
    path = tmp_path / "train.csv"
    _write_dataset(path, 20)
    net = generate_empty_net([2, 8, 2], rng=11)
    inputs = np.array([[1, 0], [0, 1]], dtype=np.float32)
    targets = one_hot([[0, 1]], 2)
    before = _loss(net, inputs, targets)

    history = apply_gradient_descend(
        net, path, show_progress=True, grad_weight=0.5, epochs=50, dev_size=4, check_period=10
    )

    assert [epoch for epoch, _ in history] == [10, 20, 30, 40]
    assert all(0 <= acc <= 100 for _, acc in history)
    assert _loss(net, inputs, targets) < before
    assert "EPOCH: 10" in capsys.readouterr().out


def test_apply_gradient_descend_without_dev_set(tmp_path):
    path = tmp_path / "train.csv"
    _write_dataset(path, 6)
    net = generate_empty_net([2, 2], rng=4)
    assert apply_gradient_descend(net, path, epochs=15, dev_size=0, check_period=5) == []


def test_apply_gradient_descend_rejects_bad_period(tmp_path):
    path = tmp_path / "train.csv"
    _write_dataset(path, 6)
    with pytest.raises(ValueError):
        apply_gradient_descend(generate_empty_net([2, 2], rng=4), path, check_period=0)