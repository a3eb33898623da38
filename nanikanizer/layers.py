"""Layers: groups of trainable variables with a forward computation."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod

import numpy as np

from .dropout import TrainFlag, dropout
from .expression import Expression
from .matrix import matrix_product, matrix_transpose
from .variable import Variable

_SEED = 5489


def _check_dimensions(input_dimension: int, output_dimension: int) -> None:
    if input_dimension < 1 or output_dimension < 1:
        raise ValueError(
            f"layer dimensions must be positive, got {input_dimension} -> {output_dimension}"
        )


def _initial_weights(input_dimension: int, output_dimension: int, weight_scale: float) -> np.ndarray:
    rng = np.random.default_rng(_SEED)
    deviation = weight_scale * math.sqrt(1.0 / input_dimension)
    return rng.normal(0.0, deviation, output_dimension * input_dimension)


class Layer(ABC):
    """A building block of a network that can be saved, loaded and trained."""

    @abstractmethod
    def save(self, writer) -> None:
        """Write the layer's state with a binary writer."""

    @abstractmethod
    def load(self, reader) -> None:
        """Read the layer's state with a binary reader."""

    @abstractmethod
    def enumerate_parameters(self, optimizer) -> None:
        """Register every trainable variable with ``optimizer``."""


class LinearLayer(Layer):
    """An affine map ``W v + b`` from ``input_dimension`` to ``output_dimension``."""

    def __init__(self, input_dimension: int, output_dimension: int, weight_scale: float = 1.0) -> None:
        _check_dimensions(input_dimension, output_dimension)
        self.input_dimension = input_dimension
        self.output_dimension = output_dimension
        self.weight = Variable(_initial_weights(input_dimension, output_dimension, weight_scale))
        self.bias = Variable(np.zeros(output_dimension))

    def forward(self, v) -> Expression:
        """Apply the layer to ``v``, which may be a batch of input vectors."""
        product = matrix_product(
            self.weight.expr(), v, self.output_dimension, self.input_dimension, self.input_dimension, 1
        )
        return product + self.bias.expr()

    def save(self, writer) -> None:
        writer.write_uint(self.input_dimension)
        writer.write_uint(self.output_dimension)
        self.weight.save(writer)
        self.bias.save(writer)

    def load(self, reader) -> None:
        self.input_dimension = reader.read_uint()
        self.output_dimension = reader.read_uint()
        self.weight.load(reader)
        self.bias.load(reader)

    def enumerate_parameters(self, optimizer) -> None:
        optimizer.add_parameter(self.weight)
        optimizer.add_parameter(self.bias)


class BidirectionalLinearLayer(Layer):
    """A linear layer that can also map back with its weights rearranged.

    ``forward`` maps ``input_dimension`` to ``output_dimension``;
    ``backward`` maps ``output_dimension`` back to ``input_dimension`` with
    the shared weights and a separate bias.
    """

    def __init__(self, input_dimension: int, output_dimension: int, weight_scale: float = 1.0) -> None:
        _check_dimensions(input_dimension, output_dimension)
        self.input_dimension = input_dimension
        self.output_dimension = output_dimension
        self.weight = Variable(_initial_weights(input_dimension, output_dimension, weight_scale))
        self.forward_bias = Variable(np.zeros(output_dimension))
        self.backward_bias = Variable(np.zeros(input_dimension))

    def forward(self, v) -> Expression:
        product = matrix_product(
            self.weight.expr(), v, self.output_dimension, self.input_dimension, self.input_dimension, 1
        )
        return product + self.forward_bias.expr()

    def backward(self, v) -> Expression:
        transposed = matrix_transpose(self.weight.expr(), self.input_dimension, self.output_dimension)
        product = matrix_product(
            transposed, v, self.input_dimension, self.output_dimension, self.output_dimension, 1
        )
        return product + self.backward_bias.expr()

    def save(self, writer) -> None:
        writer.write_uint(self.input_dimension)
        writer.write_uint(self.output_dimension)
        self.weight.save(writer)
        self.forward_bias.save(writer)
        self.backward_bias.save(writer)

    def load(self, reader) -> None:
        self.input_dimension = reader.read_uint()
        self.output_dimension = reader.read_uint()
        self.weight.load(reader)
        self.forward_bias.load(reader)
        self.backward_bias.load(reader)

    def enumerate_parameters(self, optimizer) -> None:
        optimizer.add_parameter(self.weight)
        optimizer.add_parameter(self.forward_bias)
        optimizer.add_parameter(self.backward_bias)


class DropoutLayer(Layer):
    """Dropout with drop probability ``ratio``; the ``train`` switch is shared
    by every expression the layer has built."""

    def __init__(self, ratio: float = 0.5) -> None:
        self.ratio = ratio
        self._train = TrainFlag(True)

    @property
    def train(self) -> bool:
        return bool(self._train)

    @train.setter
    def train(self, value: bool) -> None:
        self._train.value = bool(value)

    def forward(self, v) -> Expression:
        return dropout(v, self.ratio, self._train)

    def save(self, writer) -> None:
        writer.write_double(self.ratio)
        writer.write_bool(self.train)

    def load(self, reader) -> None:
        self.ratio = reader.read_double()
        self.train = reader.read_bool()

    def enumerate_parameters(self, optimizer) -> None:
        pass