"""A small convolutional network trained on CIFAR-10 binary batches."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path

import numpy as np

from .convolution import convolution_2d
from .datasets import WHOLE_SIZE, TaggedImage, load_cifar10_images, make_ids
from .evaluator import Evaluator
from .functions import cross_entropy, relu
from .layers import DropoutLayer, LinearLayer
from .optimizers import AdamOptimizer
from .padding import padding_2d
from .pooling import max_pooling_2d
from .softmax import softmax
from .variable import Variable

ID_SIZE = 10
DATA_FILES = tuple(f"data_batch_{n}.bin" for n in range(1, 6))
TEST_FILE = "test_batch.bin"


class Cifar10Network:
    """Six 3x3 convolutions with pooling, then two dense layers and a softmax."""

    def __init__(self, batch_size: int = 128) -> None:
        if batch_size < 1:
            raise ValueError(f"batch size must be positive, got {batch_size}")
        self.batch_size = batch_size
        self._ids = make_ids(ID_SIZE, 0.0, 1.0)

        self._layers = [
            LinearLayer(27, 32),
            LinearLayer(288, 32),
            LinearLayer(288, 32),
            LinearLayer(288, 32),
            LinearLayer(288, 32),
            LinearLayer(288, 32),
            LinearLayer(512, 512),
            LinearLayer(512, ID_SIZE),
        ]
        l1, l2, l3, l4, l5, l6, l7, l8 = self._layers
        self._dropout = DropoutLayer()

        self._input = Variable(np.zeros(batch_size * WHOLE_SIZE, dtype=np.float32))
        self._target = Variable(np.zeros(batch_size * ID_SIZE))

        x = self._input.expr()
        x = padding_2d(x, 32, 32, 3, 1, 1)
        x = convolution_2d(x, 34, 34, 3, 3, 3)
        x = relu(l1.forward(x))
        x = padding_2d(x, 32, 32, 32, 1, 1)
        x = convolution_2d(x, 34, 34, 32, 3, 3)
        x = relu(l2.forward(x))
        x = max_pooling_2d(x, 32, 32, 32, 2, 2)
        x = padding_2d(x, 16, 16, 32, 1, 1)
        x = convolution_2d(x, 18, 18, 32, 3, 3)
        x = relu(l3.forward(x))
        x = padding_2d(x, 16, 16, 32, 1, 1)
        x = convolution_2d(x, 18, 18, 32, 3, 3)
        x = relu(l4.forward(x))
        x = max_pooling_2d(x, 16, 16, 32, 2, 2)
        x = padding_2d(x, 8, 8, 32, 1, 1)
        x = convolution_2d(x, 10, 10, 32, 3, 3)
        x = relu(l5.forward(x))
        x = padding_2d(x, 8, 8, 32, 1, 1)
        x = convolution_2d(x, 10, 10, 32, 3, 3)
        x = relu(l6.forward(x))
        x = max_pooling_2d(x, 8, 8, 32, 2, 2)
        x = self._dropout.forward(x)
        x = relu(l7.forward(x))
        self._output = softmax(l8.forward(x), ID_SIZE)

        self._evaluator = Evaluator(cross_entropy(self._output - self._target.expr()))

        # The final layer is deliberately left out of training.
        self._optimizer = AdamOptimizer()
        for layer in self._layers[:7]:
            self._optimizer.add_parameter(layer)

    def train_batch(self, images: Sequence[TaggedImage]) -> float:
        """Run one optimisation step on ``batch_size`` images and return the loss."""
        if len(images) != self.batch_size:
            raise ValueError(f"expected {self.batch_size} images, got {len(images)}")
        self._dropout.train = True
        self._input.value = np.concatenate([image.pixels for image in images]).astype(np.float32)
        self._target.value = np.concatenate([self._ids[image.label] for image in images])

        self._optimizer.zero_grads()
        loss = float(self._evaluator.forward()[0])
        self._evaluator.backward()
        self._optimizer.update()
        return loss

    def predict(self, image: TaggedImage) -> int:
        """The most probable class of ``image``."""
        self._dropout.train = False
        self._input.value = np.asarray(image.pixels, dtype=np.float32)
        self._evaluator.forward()
        return int(np.argmax(self._output.root.output[:ID_SIZE]))

    def accuracy(self, images: Sequence[TaggedImage]) -> float:
        """Fraction of ``images`` whose class is predicted correctly."""
        if not images:
            raise ValueError("accuracy of an empty set of images")
        correct = sum(self.predict(image) == image.label for image in images)
        return correct / len(images)


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Train a network on CIFAR-10 binary batches.")
    parser.add_argument("directory", nargs="?", default=".", type=Path)
    parser.add_argument("--epochs", type=int, default=100)
    parser.add_argument("--steps", type=int, default=100)
    parser.add_argument("--batch-size", type=int, default=128)
    parser.add_argument("--seed", type=int, default=5489)
    args = parser.parse_args(argv)

    try:
        data_images = [
            image
            for name in DATA_FILES
            for image in load_cifar10_images(args.directory / name, True)
        ]
        test_images = load_cifar10_images(args.directory / TEST_FILE, True)
        if not data_images:
            raise ValueError("no training images")

        network = Cifar10Network(args.batch_size)
        rng = np.random.default_rng(args.seed)

        print("Loss,Rate")
        for _ in range(args.epochs):
            last_loss = 0.0
            for _ in range(args.steps):
                picks = rng.integers(0, len(data_images), size=args.batch_size)
                last_loss = network.train_batch([data_images[i] for i in picks])
            rate = network.accuracy(test_images)
            print(f"{last_loss:.5f},{rate:.5f}", flush=True)
    except Exception as exc:  # report any failure the way the command line expects
        print(exc, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())