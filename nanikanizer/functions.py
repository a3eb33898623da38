"""Element-wise functions and norms built on expressions."""

from __future__ import annotations

import numpy as np

from . import math_util as _mu
from .expression import Expression, unary_operator
from .reduction import reduce_sum

_CROSS_ENTROPY_LIMIT = 0.999


class _Abs:
    @staticmethod
    def forward(x):
        return np.abs(x)

    @staticmethod
    def backward(x, y, y_grad):
        return np.where(x < 0.0, -y_grad, y_grad)


class _Square:
    @staticmethod
    def forward(x):
        return _mu.square(x)

    @staticmethod
    def backward(x, y, y_grad):
        return 2.0 * x * y_grad


class _Sqrt:
    @staticmethod
    def forward(x):
        return np.sqrt(x)

    @staticmethod
    def backward(x, y, y_grad):
        return 0.5 * y_grad / np.sqrt(x)


class _Sigmoid:
    @staticmethod
    def forward(x):
        return _mu.sigmoid(x)

    @staticmethod
    def backward(x, y, y_grad):
        return y * (1.0 - y) * y_grad


class _Tanh:
    @staticmethod
    def forward(x):
        return np.tanh(x)

    @staticmethod
    def backward(x, y, y_grad):
        return (1.0 - y * y) * y_grad


class _Relu:
    @staticmethod
    def forward(x):
        return _mu.relu(x)

    @staticmethod
    def backward(x, y, y_grad):
        return np.where(x >= 0.0, y_grad, 0.0)


class _CrossEntropy:
    @staticmethod
    def forward(x):
        x = np.clip(x, -_CROSS_ENTROPY_LIMIT, _CROSS_ENTROPY_LIMIT)
        return np.where(x < 0.0, -np.log1p(x), -np.log1p(-x))

    @staticmethod
    def backward(x, y, y_grad):
        x = np.clip(x, -_CROSS_ENTROPY_LIMIT, _CROSS_ENTROPY_LIMIT)
        return np.where(x < 0.0, -y_grad / (1.0 + x), y_grad / (1.0 - x))


def absolute(base) -> Expression:
    """Element-wise absolute value."""
    return unary_operator(base, _Abs)


def square(base) -> Expression:
    """Element-wise square."""
    return unary_operator(base, _Square)


def sqrt(base) -> Expression:
    """Element-wise square root."""
    return unary_operator(base, _Sqrt)


def sigmoid(base) -> Expression:
    """Element-wise logistic function."""
    return unary_operator(base, _Sigmoid)


def tanh(base) -> Expression:
    """Element-wise hyperbolic tangent."""
    return unary_operator(base, _Tanh)


def relu(base) -> Expression:
    """Element-wise rectified linear unit."""
    return unary_operator(base, _Relu)


def cross_entropy(base) -> Expression:
    """Sum of ``-log(1 - |x|)`` over the elements, with ``|x|`` capped at 0.999."""
    return reduce_sum(unary_operator(base, _CrossEntropy))


def norm_sq(base, block_size: int | None = None) -> Expression:
    """Squared Euclidean norm of the whole tensor or of each block."""
    return reduce_sum(square(base), block_size)


def norm(base, block_size: int | None = None) -> Expression:
    """Euclidean norm of the whole tensor or of each block."""
    return sqrt(norm_sq(base, block_size))