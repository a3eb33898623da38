# nanikanizer

A compact library for building computation graphs over flat numpy arrays,
evaluating them forward and back-propagating gradients through them. On top
of the graph it offers layers (linear, bidirectional linear, dropout) and
gradient-based optimizers (SGD, Adagrad, RMSProp, Adadelta, Adam).

Every tensor is a one-dimensional array. Operations that need a shape, such
as matrix products, convolutions, padding or pooling, take the dimensions as
arguments and treat a longer input as a batch of equally sized items.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Concepts

- `Variable` (in `nanikanizer.variable`) holds a value that can be trained.
  Its `value` can be read or replaced, its `grad` read, and
  `Variable.expr()` gives the `Expression` that refers to it.
- `Expression` (in `nanikanizer.expression`) objects combine with `+`, `-`,
  `*`, `/` and unary `-`. Plain numbers, lists and arrays are accepted on
  either side and become constants. When the two operands differ in size,
  the shorter one is repeated across the longer one; the longer size must be
  a multiple of the shorter, otherwise `ValueError` is raised.
- `Evaluator(expr)` (in `nanikanizer.evaluator`) orders the graph once;
  `forward()` computes every node and returns the output array, and
  `backward(initial_grad=None)` propagates gradients back. Without an
  argument it starts from `[1.0]`, so the output must then have one element;
  otherwise pass a gradient of the output's size. Gradients of intermediate
  nodes are reset on each call, while gradients of variables accumulate
  until they are zeroed.
- Optimizers (in `nanikanizer.optimizers`) collect parameters with
  `add_parameter`, which accepts a single `Variable` or a layer. A training
  step is `zero_grads()`, one or more forward/backward passes, then
  `update()`. Each parameter keeps its own optimizer state.

## Example: fitting a parabola

```python
from nanikanizer.expression import Expression
from nanikanizer.variable import Variable
from nanikanizer.evaluator import Evaluator
from nanikanizer.functions import norm_sq
from nanikanizer.optimizers import AdamOptimizer

x = Expression([0.0, 1.0, 2.0, 3.0, 4.0, 5.0])
y = Expression([1.0, -4.0, -5.0, -2.0, 5.0, 16.0])

a = Variable([0.0])
b = Variable([0.0])
c = Variable([0.0])

fx = a.expr() * x * x + b.expr() * x + c.expr()
loss = norm_sq(fx - y)

ev = Evaluator(loss)
optimizer = AdamOptimizer(0.1)
for param in (a, b, c):
    optimizer.add_parameter(param)

for _ in range(1500):
    optimizer.zero_grads()
    ev.forward()
    ev.backward()
    optimizer.update()

print(ev.forward())
```

The same fit is available as a generator,
`nanikanizer.curve_fitting.fit_quadratic(xs, ys, steps=1500, alpha=0.1)`,
which yields a `QuadraticFit(a, b, c, loss)` after every step, and as a
command that prints the coefficients after every step:

```
nanikanizer-curve-fit
nanikanizer-curve-fit --steps 500 --alpha 0.05
```

## Available operations

- Element-wise, in `nanikanizer.functions`: `absolute`, `square`, `sqrt`,
  `sigmoid`, `tanh`, `relu`, plus the arithmetic operators.
- Reductions: `reduce_sum`, `reduce_min`, `reduce_max` (in
  `nanikanizer.reduction`) and `norm_sq`, `norm` (in `nanikanizer.functions`)
  reduce the whole tensor or, given a `block_size` of at least 2, each block
  of that many consecutive elements. For minimum and maximum, every element
  equal to the result receives the gradient. `cross_entropy` sums
  `-log(1 - |x|)` over the elements, with `|x|` capped at 0.999.
- `softmax(base, block_size=None)` over the whole tensor or per block
  (`nanikanizer.softmax`).
- `depth_concat(expressions)` interleaves equally sized tensors element by
  element; `depth_mean(base, block_size)` averages consecutive blocks into
  one block (`nanikanizer.depth`).
- `matrix_product(lhs, rhs, lhs_rows, lhs_cols, rhs_rows, rhs_cols)` and
  `matrix_transpose(base, rows, cols)` on row-major matrices
  (`nanikanizer.matrix`); either operand of a product may be a batch.
- Images laid out as height × width × depth:
  - `convolution_2d` (`nanikanizer.convolution`) gathers every
    filter-sized patch, ready to be fed to a `LinearLayer`;
  - `padding_2d` and `padding_2d_sides` (`nanikanizer.padding`) add a
    constant border;
  - `max_pooling_2d` and `sum_pooling_2d` (`nanikanizer.pooling`) reduce
    non-overlapping windows, which must tile the image exactly;
  - `skipping_2d` keeps every n-th row and column, and `spacing_2d` inserts
    constant rows and columns between pixels (`nanikanizer.sampling`);
  - `dropout(base, ratio, train)` (`nanikanizer.dropout`) zeroes each
    element with probability `ratio` while the `TrainFlag` is set, and
    multiplies every element by `ratio` otherwise.

## Layers and persistence

`LinearLayer`, `BidirectionalLinearLayer` and `DropoutLayer` live in
`nanikanizer.layers`. Linear layers compute `W v + b`; the bidirectional
layer's `backward(v)` maps back with the same weights rearranged and a
separate bias. Initial weights are drawn from a normal distribution with a
fixed seed, so a newly built layer is always the same. `DropoutLayer.train`
switches every expression the layer has built between training and
evaluation.

Layers save to and load from a binary stream through `BinaryWriter` and
`BinaryReader` from `nanikanizer.binary_io`. Integers are stored as 8 bytes,
floats as 4, doubles as 8, all little-endian; arrays are prefixed with
their length.

```python
from nanikanizer.binary_io import BinaryWriter, BinaryReader
from nanikanizer.layers import LinearLayer

layer = LinearLayer(3, 2, 1.0)

with open("layer.bin", "wb") as stream:
    layer.save(BinaryWriter(stream))

with open("layer.bin", "rb") as stream:
    layer.load(BinaryReader(stream))
```

## CIFAR-10

`nanikanizer.datasets` provides `make_ids` for one-hot targets, and
`load_cifar10_images` and `iter_cifar10_images` for the binary CIFAR-10
batch files. Each image is a `TaggedImage(label, pixels)` with the pixels
interleaved as height × width × RGB. With `normalize` (the default) each
image is shifted to zero mean and divided by the mean of its squared
centred values.

`nanikanizer.cifar10.Cifar10Network` is a small convolutional network for
that data set, with `train_batch(images)`, `predict(image)` and
`accuracy(images)`. Its last dense layer is not registered with the
optimizer and keeps its initial weights. The command below trains it on
`data_batch_1.bin` to `data_batch_5.bin` and tests on `test_batch.bin`,
printing the loss and test accuracy after each epoch as CSV:

```
nanikanizer-cifar10
nanikanizer-cifar10 path/to/batches --epochs 10 --steps 100 --batch-size 128 --seed 5489
```

The batch files are read from the given directory, or from the current
directory when none is given.

## What it does not do

- All computation runs on the CPU through numpy, in a single thread.
- Shapes are never inferred: every shaped operation needs its dimensions
  passed explicitly.
- Only layers can be saved and loaded; there is no format for whole
  networks or optimizer state.