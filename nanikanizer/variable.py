"""Trainable variables: leaves whose values and gradients are exposed."""

from __future__ import annotations

import numpy as np

from .expression import Expression
from .node import VariableNode, _to_tensor


class Variable:
    """A named leaf of the graph whose value can be set and whose gradient is read."""

    def __init__(self, value=None) -> None:
        self._node = VariableNode(value)

    @property
    def node(self) -> VariableNode:
        return self._node

    @property
    def value(self) -> np.ndarray:
        return self._node.output

    @value.setter
    def value(self, value) -> None:
        self._node.output = _to_tensor(value)

    @property
    def grad(self) -> np.ndarray:
        return self._node.output_grad

    def zero_grads(self) -> None:
        self._node.zero_grads()

    def expr(self) -> Expression:
        """An expression whose root is this variable's node."""
        return Expression(self._node)

    def save(self, writer) -> None:
        writer.write_array(self.value)

    def load(self, reader) -> None:
        self.value = reader.read_array(self.value.dtype)

    def __repr__(self) -> str:
        return f"Variable({self.value.tolist()!r})"