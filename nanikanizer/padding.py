"""Constant padding around the borders of height x width x depth images."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from .expression import Expression, _as_expression
from .node import ExpressionNode


class Padding2DNode(ExpressionNode):
    """Surrounds each image of the child's output with a constant border."""

    def __init__(
        self,
        base: ExpressionNode,
        input_height: int,
        input_width: int,
        input_depth: int,
        padding_top: int,
        padding_left: int,
        padding_bottom: int,
        padding_right: int,
        padding_value: float = 0.0,
    ) -> None:
        super().__init__()
        if min(input_height, input_width, input_depth) < 1:
            raise ValueError("image dimensions must be positive")
        if min(padding_top, padding_left, padding_bottom, padding_right) < 0:
            raise ValueError("padding must not be negative")
        self.base = base
        self.input_shape = (input_height, input_width, input_depth)
        self.padding = ((padding_top, padding_bottom), (padding_left, padding_right))
        self.padding_value = padding_value
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

    def forward(self) -> None:
        images = self.base.output.reshape((self._count(),) + self.input_shape)
        (top, bottom), (left, right) = self.padding
        padded = np.pad(
            images,
            ((0, 0), (top, bottom), (left, right), (0, 0)),
            mode="constant",
            constant_values=self.padding_value,
        )
        self.output = padded.ravel()

    def backward(self) -> None:
        count = self._count()
        height, width, depth = self.input_shape
        (top, bottom), (left, right) = self.padding
        grad = self.output_grad.reshape(
            count, height + top + bottom, width + left + right, depth
        )
        self.base.output_grad += grad[:, top:top + height, left:left + width, :].ravel()

    def children(self) -> Sequence[ExpressionNode]:
        return (self.base,)


def padding_2d_sides(
    base,
    input_height: int,
    input_width: int,
    input_depth: int,
    padding_top: int,
    padding_left: int,
    padding_bottom: int,
    padding_right: int,
    padding_value: float = 0.0,
) -> Expression:
    """Pad each image with separate amounts on each side."""
    return Expression(
        Padding2DNode(
            _as_expression(base).root,
            input_height,
            input_width,
            input_depth,
            padding_top,
            padding_left,
            padding_bottom,
            padding_right,
            padding_value,
        )
    )


def padding_2d(
    base,
    input_height: int,
    input_width: int,
    input_depth: int,
    padding_height: int,
    padding_width: int,
    padding_value: float = 0.0,
) -> Expression:
    """Pad each image by ``padding_height`` rows and ``padding_width`` columns on both sides."""
    return padding_2d_sides(
        base,
        input_height,
        input_width,
        input_depth,
        padding_height,
        padding_width,
        padding_height,
        padding_width,
        padding_value,
    )