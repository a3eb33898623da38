"""Pooling of non-overlapping windows in height x width x depth images.

An operator passed to :func:`pooling_2d` has ``forward(windows)``, taking a
2-D array with one flattened ``filter_height x filter_width`` window per row
and returning one value per row, and ``backward(windows, y, y_grad)``
returning the gradient for ``windows``.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from .expression import Expression, _as_expression
from .node import ExpressionNode


class Pooling2DNode(ExpressionNode):
    """Reduces every window of each image and channel to a single value."""

    def __init__(
        self,
        base: ExpressionNode,
        op,
        input_height: int,
        input_width: int,
        input_depth: int,
        filter_height: int,
        filter_width: int,
    ) -> None:
        super().__init__()
        if input_height < 2 or input_width < 2:
            raise ValueError(
                f"pooling input must be at least 2x2, got {input_height}x{input_width}"
            )
        if input_depth < 1:
            raise ValueError(f"input depth must be positive, got {input_depth}")
        if filter_height < 2 or filter_width < 2:
            raise ValueError(
                f"pooling filter must be at least 2x2, got {filter_height}x{filter_width}"
            )
        if input_height % filter_height or input_width % filter_width:
            raise ValueError(
                f"filter {filter_height}x{filter_width} does not tile input "
                f"{input_height}x{input_width}"
            )
        self.base = base
        self.op = op
        self.filter_shape = (filter_height, filter_width)
        self.input_depth = input_depth
        self.output_height = input_height // filter_height
        self.output_width = input_width // filter_width
        self.input_size = input_height * input_width * input_depth

    def is_branch(self) -> bool:
        return True

    def _count(self) -> int:
        size = self.base.output.size
        if size % self.input_size:
            raise ValueError(
                f"tensor of {size} elements is not a batch of images of {self.input_size}"
            )
        return size // self.input_size

    def _grid_shape(self, count: int) -> tuple[int, ...]:
        fh, fw = self.filter_shape
        return (count, self.output_height, fh, self.output_width, fw, self.input_depth)

    def _windows(self, count: int) -> np.ndarray:
        fh, fw = self.filter_shape
        grid = self.base.output.reshape(self._grid_shape(count))
        return grid.transpose(0, 1, 3, 5, 2, 4).reshape(-1, fh * fw)

    def forward(self) -> None:
        windows = self._windows(self._count())
        self.output = np.asarray(
            self.op.forward(windows), dtype=self.base.output.dtype
        ).ravel()

    def backward(self) -> None:
        count = self._count()
        fh, fw = self.filter_shape
        windows = self._windows(count)
        grad = np.asarray(self.op.backward(windows, self.output, self.output_grad))
        grad = grad.reshape(
            count, self.output_height, self.output_width, self.input_depth, fh, fw
        ).transpose(0, 1, 4, 2, 5, 3)
        self.base.output_grad += grad.ravel()

    def children(self) -> Sequence[ExpressionNode]:
        return (self.base,)


class _MaxPooling:
    @staticmethod
    def forward(windows):
        return windows.max(axis=1)

    @staticmethod
    def backward(windows, y, y_grad):
        return (windows == y[:, None]) * y_grad[:, None]


class _SumPooling:
    @staticmethod
    def forward(windows):
        return windows.sum(axis=1)

    @staticmethod
    def backward(windows, y, y_grad):
        # Every input of a window receives a unit gradient.
        return np.ones_like(windows)


def pooling_2d(
    base,
    op,
    input_height: int,
    input_width: int,
    input_depth: int,
    filter_height: int,
    filter_width: int,
) -> Expression:
    """Pool ``base`` with ``op`` over non-overlapping filter-sized windows."""
    return Expression(
        Pooling2DNode(
            _as_expression(base).root,
            op,
            input_height,
            input_width,
            input_depth,
            filter_height,
            filter_width,
        )
    )


def max_pooling_2d(
    base,
    input_height: int,
    input_width: int,
    input_depth: int,
    filter_height: int,
    filter_width: int,
) -> Expression:
    """Maximum of each window; ties all receive the gradient."""
    return pooling_2d(
        base, _MaxPooling, input_height, input_width, input_depth, filter_height, filter_width
    )


def sum_pooling_2d(
    base,
    input_height: int,
    input_width: int,
    input_depth: int,
    filter_height: int,
    filter_width: int,
) -> Expression:
    """Sum of each window."""
    return pooling_2d(
        base, _SumPooling, input_height, input_width, input_depth, filter_height, filter_width
    )