# simple_conv

`simple_conv` is a compact library for fully connected neural networks of the
kind used to recognise hand-written digits. It covers the path from a CSV
dataset to a trained network on disk and back to predictions:

* build a network with random weights and biases,
* train it with full-batch gradient descent (ReLU hidden layers, softmax
  output, cross-entropy gradient),
* run inference on grey-scale images,
* save and load networks in a small binary format,
* crop and rescale digit images and whole datasets,
* search for an input that a trained network maps to a chosen output.

All matrices are NumPy `float32` arrays. A network is a plain list of arrays
laid out as `[W1, b1, W2, b2, ...]`, where each weight matrix has shape
`(fan_out, fan_in)` and each bias is a `(fan_out, 1)` column.

## Installation

```
pip install .
```

To run the test suite as well:

```
pip install ".[test]"
pytest
```

## Using the library

### Creating and running a network

```python
from simple_conv import network

net = network.generate_empty_net([28 * 28, 128, 10], rng=0)
```

`generate_empty_net(shapes, rng)` draws every parameter uniformly from
`[-0.5, 0.5)`; `rng` is anything `numpy.random.default_rng` accepts.
`network.forward(input_layer, net)` takes a column (or a matrix with one
sample per column) and returns the softmax output, one column per sample.
Hidden layers use ReLU.

### Images

`io.read_img_to_input_layer(path, invert, normalize)` reads an image as
grey-scale and returns its pixels as one column. `invert` maps each pixel `p`
to `255 - p`; `normalize` scales the values to `float32` in `[0, 1]`.
A missing file raises `FileNotFoundError`.

### Saving and loading networks

`io.save_net(net, path)` and `io.read_net(path)` write and read the binary
network format (little-endian):

1. an `int32` holding the number of matrices,
2. for each matrix, two `int32` values: rows and columns,
3. each matrix's `float32` values in row-major order, one after another.

Reading a missing file raises `FileNotFoundError`; a truncated or malformed
file raises `ValueError`.

### Datasets

`io.load_dataset(filename, transposed, delimiter, has_header)` reads a
delimited text file of numbers as a `float32` matrix, one row per line,
skipping a header line when `has_header` is set and ignoring blank lines.
With `transposed` each line becomes a column, which is the layout training
expects (label in row 0, pixel values below).

`io.save_dataset(filename, data, delimiter)` writes a matrix as delimited
integers: the first column as it is, the other columns multiplied by 255,
every value truncated and limited to `0..255`.

### Preprocessing

`preprocessing.crop_image(img, blur, blur_size)` accepts a grey-scale `uint8`
image, a grey-scale float image in `[0, 1]` or a three-channel `uint8` image
in BGR order. After an optional box blur it finds the pixels above 120, cuts
out a square around them and scales it to 28×28, returning `float32` values in
`[0, 1]`. When no such pixels exist the grey-scale `uint8` image is returned
uncropped.

`preprocessing.preprocess_dataset(source, destination)` reads a labelled CSV
dataset with a header line, crops every square image in it (with a 2×2 blur)
and writes the result without a header through `io.save_dataset`.

### Training

`learning.apply_gradient_descend(net, dataset_path, show_progress,
grad_weight, epochs, dev_size, check_period)` trains `net` in place on a
dataset file with a header line. Pixel values are scaled from `0..255` to
`[0, 1]`. The first `dev_size` samples are held out; every `check_period`
epochs (from the first multiple after epoch 0) the network is evaluated on
them. The function returns the list of `(epoch, accuracy)` pairs and, with
`show_progress` set, prints the accuracy, learning rate and timings.

The building blocks are available on their own:
`learning.forward_propagation`, `learning.backward_propagation` (returns the
gradient and the first layer's delta), `learning.one_hot`,
`learning.get_predictions`, `learning.get_accuracy`,
`learning.get_cross_entropy` and `learning.update_params`, together with
`learning.LearningResources.from_dataset` for splitting a column-per-sample
dataset into training and development sets.

### Inverting a network

`inverse.invert_network(net, target, grad_weight, threshold, max_iterations,
rng)` starts from a random input in `[-0.5, 0.5)` and follows the gradient of
the loss with respect to the input until the output's mean squared error
against `target` (see `inverse.mean_squared_error`) is at most `threshold`.
With `max_iterations` set, it raises `RuntimeError` if that many steps are not
enough. `inverse.increase_contrast(img, alpha)` centres an array on its mean
and scales it by `alpha`.

### Lower-level pieces

`blas` holds the matrix operations the network is built on: `gemm` with
`TransposeFlags`, `add`, `add_in_place`, `broadcast_column_vector`,
`threshold`, `apply_relu_der`, `reduce_columns`, `mul_scalar`,
`mul_possible`, `add_possible`, and the `Roi` region with `submatrix`.
`activations` holds `softmax` and the clamped `safe_exp`, along with a small
`Profiler` whose `stop_measure` prints and returns the microseconds since the
matching `start_measure`.

## Command line

The package installs a `simple-conv` command:

```
simple-conv train DATASET OUTPUT [--shapes N ...] [--grad-weight G] [--epochs E]
                  [--dev-size D] [--check-period P] [--quiet]
simple-conv predict NET IMAGE [IMAGE ...]
simple-conv weights NET OUTPUT_DIR [--layers L ...]
```

* `train` builds a new network (default shapes `784 10 10`), trains it on the
  dataset and saves it to `OUTPUT`.
* `predict` prints the network's output for each image, read inverted and
  normalised, with a blank line between images.
* `weights` saves each neuron's weights of the given layers (default `0 2`)
  as square PNG images named `layer<L>neuron_<N>weights.png`.

Errors reading or writing files, or malformed input, are reported on standard
error with exit status 1.

## What it does not do

The package has no interactive drawing window and never shows images on
screen; results are printed or written to files.