"""Nodes of the computation graph and their leaf kinds."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

import numpy as np


def _to_tensor(value) -> np.ndarray:
    """Copy ``value`` into a flat floating-point array."""
    if isinstance(value, np.ndarray):
        if np.issubdtype(value.dtype, np.floating):
            return value.ravel().copy()
        return value.ravel().astype(np.float64)
    return np.atleast_1d(np.asarray(value, dtype=np.float64)).ravel().copy()


def _ensure_tensor(value) -> np.ndarray:
    """Return ``value`` unchanged if it is already a flat float array, else convert it."""
    if (
        isinstance(value, np.ndarray)
        and value.ndim == 1
        and np.issubdtype(value.dtype, np.floating)
    ):
        return value
    return _to_tensor(value)


class ExpressionNode(ABC):
    """A graph node holding a flat output tensor and its gradient."""

    def __init__(self) -> None:
        self.output: np.ndarray = np.zeros(0, dtype=np.float64)
        self.output_grad: np.ndarray = np.zeros(0, dtype=np.float64)

    @abstractmethod
    def is_branch(self) -> bool:
        """Whether the node is computed from other nodes."""

    @abstractmethod
    def forward(self) -> None:
        """Compute ``output`` from the children's outputs."""

    @abstractmethod
    def backward(self) -> None:
        """Add this node's gradient contributions to its children."""

    def zero_grads(self) -> None:
        """Reset the gradient to zero, keeping its size."""
        self.output_grad.fill(0)

    def prepare_grads(self) -> None:
        """Make the gradient the same size as the output."""
        if self.output_grad.size != self.output.size:
            self.output_grad = np.zeros(self.output.size, dtype=self.output.dtype)

    @abstractmethod
    def children(self) -> Sequence[ExpressionNode]:
        """Nodes this node is computed from."""


class _LeafNode(ExpressionNode):
    def __init__(self, value=None) -> None:
        super().__init__()
        if value is not None:
            self.output = _to_tensor(value)

    def is_branch(self) -> bool:
        return False

    def forward(self) -> None:
        # A leaf's value may have been replaced from outside; keep it a flat float tensor.
        self.output = _ensure_tensor(self.output)

    def backward(self) -> None:
        # Leaves have no children to pass gradients to; only check consistency.
        if self.output_grad.size != self.output.size:
            raise ValueError(
                f"gradient of size {self.output_grad.size} does not match "
                f"output of size {self.output.size}"
            )

    def children(self) -> Sequence[ExpressionNode]:
        return ()


class ConstantNode(_LeafNode):
    """A leaf holding a fixed tensor."""

    def __init__(self, value) -> None:
        super().__init__(value)


class VariableNode(_LeafNode):
    """A leaf whose tensor is set from outside and whose gradient is kept."""

    def __init__(self, value=None) -> None:
        super().__init__(value)