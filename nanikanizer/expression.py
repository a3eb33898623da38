"""Expressions: handles on graph nodes, with arithmetic operators.

An operator passed to :func:`unary_operator` has ``forward(x)`` returning the
output array and ``backward(x, y, y_grad)`` returning the gradient for ``x``.
An operator passed to :func:`binary_operator` has ``forward(lhs, rhs)`` and
``backward(lhs, rhs, y, y_grad)`` returning ``(lhs_grad, rhs_grad)``.
When the operand sizes differ, the smaller one is repeated across the larger.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from .node import ConstantNode, ExpressionNode

_zero_node: ConstantNode | None = None


def _shared_zero() -> ConstantNode:
    global _zero_node
    if _zero_node is None:
        _zero_node = ConstantNode([0.0])
    return _zero_node


class Expression:
    """A handle on the root node of a computation graph."""

    __slots__ = ("_root",)

    def __init__(self, value=None) -> None:
        if value is None:
            self._root: ExpressionNode = _shared_zero()
        elif isinstance(value, ExpressionNode):
            self._root = value
        elif isinstance(value, Expression):
            self._root = value.root
        else:
            self._root = ConstantNode(value)

    @property
    def root(self) -> ExpressionNode:
        return self._root

    @property
    def output(self) -> np.ndarray:
        """The last computed output of the root node."""
        return self._root.output

    def __add__(self, other):
        return add(self, other)

    def __radd__(self, other):
        return add(other, self)

    def __sub__(self, other):
        return subtract(self, other)

    def __rsub__(self, other):
        return subtract(other, self)

    def __mul__(self, other):
        return multiply(self, other)

    def __rmul__(self, other):
        return multiply(other, self)

    def __truediv__(self, other):
        return divide(self, other)

    def __rtruediv__(self, other):
        return divide(other, self)

    def __neg__(self):
        return negate(self)

    def __pos__(self):
        return self

    def __eq__(self, other):
        if not isinstance(other, Expression):
            return NotImplemented
        return self._root is other._root

    def __hash__(self) -> int:
        return id(self._root)

    def __repr__(self) -> str:
        return f"Expression({type(self._root).__name__})"


def _as_expression(value) -> Expression:
    return value if isinstance(value, Expression) else Expression(value)


class UnaryOperatorNode(ExpressionNode):
    """Applies an element-wise operator to one child."""

    def __init__(self, base: ExpressionNode, op) -> None:
        super().__init__()
        self.base = base
        self.op = op

    def is_branch(self) -> bool:
        return True

    def forward(self) -> None:
        self.output = np.asarray(self.op.forward(self.base.output)).ravel()

    def backward(self) -> None:
        self.base.output_grad += self.op.backward(
            self.base.output, self.output, self.output_grad
        )

    def children(self) -> Sequence[ExpressionNode]:
        return (self.base,)


def _broadcast(lhs: np.ndarray, rhs: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    n, m = lhs.size, rhs.size
    if n == m:
        return lhs, rhs
    small, large = min(n, m), max(n, m)
    if small == 0 or large % small:
        raise ValueError(f"operand sizes {n} and {m} are not compatible")
    count = large // small
    if n < m:
        return np.tile(lhs, count), rhs
    return lhs, np.tile(rhs, count)


def _fold(grad, size: int) -> np.ndarray:
    grad = np.broadcast_to(grad, (max(np.size(grad), size),))
    if grad.size == size:
        return grad
    return grad.reshape(-1, size).sum(axis=0)


class BinaryOperatorNode(ExpressionNode):
    """Applies an element-wise operator to two children."""

    def __init__(self, lhs: ExpressionNode, rhs: ExpressionNode, op) -> None:
        super().__init__()
        self.lhs = lhs
        self.rhs = rhs
        self.op = op

    def is_branch(self) -> bool:
        return True

    def forward(self) -> None:
        lhs, rhs = _broadcast(self.lhs.output, self.rhs.output)
        self.output = np.asarray(self.op.forward(lhs, rhs)).ravel()

    def backward(self) -> None:
        lhs, rhs = _broadcast(self.lhs.output, self.rhs.output)
        lhs_grad, rhs_grad = self.op.backward(lhs, rhs, self.output, self.output_grad)
        self.lhs.output_grad += _fold(lhs_grad, self.lhs.output.size)
        self.rhs.output_grad += _fold(rhs_grad, self.rhs.output.size)

    def children(self) -> Sequence[ExpressionNode]:
        return (self.lhs, self.rhs)


def unary_operator(base, op) -> Expression:
    """Build an expression applying ``op`` to ``base``."""
    return Expression(UnaryOperatorNode(_as_expression(base).root, op))


def binary_operator(lhs, rhs, op) -> Expression:
    """Build an expression applying ``op`` to ``lhs`` and ``rhs``."""
    return Expression(
        BinaryOperatorNode(_as_expression(lhs).root, _as_expression(rhs).root, op)
    )


class _Negate:
    @staticmethod
    def forward(x):
        return -x

    @staticmethod
    def backward(x, y, y_grad):
        return -y_grad


class _Add:
    @staticmethod
    def forward(lhs, rhs):
        return lhs + rhs

    @staticmethod
    def backward(lhs, rhs, y, y_grad):
        return y_grad, y_grad


class _Subtract:
    @staticmethod
    def forward(lhs, rhs):
        return lhs - rhs

    @staticmethod
    def backward(lhs, rhs, y, y_grad):
        return y_grad, -y_grad


class _Multiply:
    @staticmethod
    def forward(lhs, rhs):
        return lhs * rhs

    @staticmethod
    def backward(lhs, rhs, y, y_grad):
        return rhs * y_grad, lhs * y_grad


class _Divide:
    @staticmethod
    def forward(lhs, rhs):
        return lhs / rhs

    @staticmethod
    def backward(lhs, rhs, y, y_grad):
        return y_grad / rhs, -y_grad * lhs / (rhs * rhs)


def negate(base) -> Expression:
    return unary_operator(base, _Negate)


def add(lhs, rhs) -> Expression:
    return binary_operator(lhs, rhs, _Add)


def subtract(lhs, rhs) -> Expression:
    return binary_operator(lhs, rhs, _Subtract)


def multiply(lhs, rhs) -> Expression:
    return binary_operator(lhs, rhs, _Multiply)


def divide(lhs, rhs) -> Expression:
    return binary_operator(lhs, rhs, _Divide)