"""Command line: train a network, classify images, export weight images."""

from __future__ import annotations

import argparse
import math
import sys
from pathlib import Path

import numpy as np
from PIL import Image

from .io import read_img_to_input_layer, read_net, save_net
from .learning import apply_gradient_descend
from .network import Net, forward, generate_empty_net


def weight_images(net: Net, layers=(0, 2)) -> dict[str, np.ndarray]:
    """Render each neuron's weights of the given layers as a square uint8 image.

    Weights are scaled by 255, rounded and saturated to 0..255. The keys are
    the file names the images are saved under.
    """
    images: dict[str, np.ndarray] = {}
    for layer_index in layers:
        if not 0 <= layer_index < len(net):
            raise ValueError(f"the network has no layer {layer_index}")
        weights = np.asarray(net[layer_index], dtype=np.float32)
        if weights.ndim != 2:
            raise ValueError(f"layer {layer_index} is not a matrix")
        size = int(math.sqrt(weights.shape[1]))
        if size * size != weights.shape[1]:
            raise ValueError(
                f"layer {layer_index} has {weights.shape[1]} inputs, not a square number"
            )
        for neuron, row in enumerate(weights):
            pixels = np.clip(np.rint(row.astype(np.float64) * 255.0), 0, 255).astype(np.uint8)
            name = f"layer{layer_index}neuron_{neuron}weights.png"
            images[name] = pixels.reshape(size, size)
    return images


def _train(args) -> None:
    net = generate_empty_net(args.shapes)
    apply_gradient_descend(
        net,
        args.dataset,
        show_progress=not args.quiet,
        grad_weight=args.grad_weight,
        epochs=args.epochs,
        dev_size=args.dev_size,
        check_period=args.check_period,
    )
    save_net(net, args.output)


def _predict(args) -> None:
    net = read_net(args.net)
    for position, image_path in enumerate(args.images):
        if position:
            print()
        output = forward(read_img_to_input_layer(image_path, True, True), net)
        for value in output.ravel():
            print(f"{float(value):g}")


def _weights(args) -> None:
    net = read_net(args.net)
    out_dir = Path(args.output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    for name, pixels in weight_images(net, args.layers).items():
        Image.fromarray(pixels, mode="L").save(out_dir / name)


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="simple-conv", description=__doc__)
    commands = parser.add_subparsers(dest="command", required=True)

    train = commands.add_parser("train", help="train a new network on a dataset")
    train.add_argument("dataset", help="labelled dataset with a header line")
    train.add_argument("output", help="where to write the trained network")
    train.add_argument("--shapes", type=int, nargs="+", default=[28 * 28, 10, 10])
    train.add_argument("--grad-weight", type=float, default=0.1)
    train.add_argument("--epochs", type=int, default=1000)
    train.add_argument("--dev-size", type=int, default=1000)
    train.add_argument("--check-period", type=int, default=10)
    train.add_argument("--quiet", action="store_true", help="do not report progress")
    train.set_defaults(handler=_train)

    predict = commands.add_parser("predict", help="print the network's output for images")
    predict.add_argument("net")
    predict.add_argument("images", nargs="+")
    predict.set_defaults(handler=_predict)

    weights = commands.add_parser("weights", help="save neuron weights as images")
    weights.add_argument("net")
    weights.add_argument("output_dir")
    weights.add_argument("--layers", type=int, nargs="+", default=[0, 2])
    weights.set_defaults(handler=_weights)
    return parser


def main(argv=None) -> int:
    """Run the command line and return the exit status."""
    args = _parser().parse_args(argv)
    try:
        args.handler(args)
    except (OSError, ValueError) as error:
        print(f"error: {error}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())