"""Strided sub-sampling and zero-stuffed up-sampling of height x width x depth images."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from .expression import Expression, _as_expression
from .node import ExpressionNode


def _check_image(input_height: int, input_width: int, input_depth: int) -> None:
    if min(input_height, input_width, input_depth) < 1:
        raise ValueError(
            f"image dimensions must be positive, got "
            f"{input_height}x{input_width}x{input_depth}"
        )


class _ImageNode(ExpressionNode):
    def __init__(self, base: ExpressionNode, input_height: int, input_width: int, input_depth: int) -> None:
        super().__init__()
        _check_image(input_height, input_width, input_depth)
        self.base = base
        self.input_shape = (input_height, input_width, input_depth)
        self.input_size = input_height * input_width * input_depth

    def is_branch(self) -> bool:
        return True

    def _images(self) -> np.ndarray:
        size = self.base.output.size
        if size % self.input_size:
            raise ValueError(
                f"tensor of {size} elements is not a batch of images of {self.input_size}"
            )
        return self.base.output.reshape((size // self.input_size,) + self.input_shape)

    def children(self) -> Sequence[ExpressionNode]:
        return (self.base,)


class Skipping2DNode(_ImageNode):
    """Keeps every ``skipping + 1``-th row and column of each image."""

    def __init__(
        self,
        base: ExpressionNode,
        input_height: int,
        input_width: int,
        input_depth: int,
        skipping_height: int,
        skipping_width: int,
    ) -> None:
        super().__init__(base, input_height, input_width, input_depth)
        if skipping_height < 0 or skipping_width < 0:
            raise ValueError("skipping must not be negative")
        output_height = (input_height + 1) // (skipping_height + 1)
        output_width = (input_width + 1) // (skipping_width + 1)
        self._rows = np.arange(output_height) * (skipping_height + 1)
        self._cols = np.arange(output_width) * (skipping_width + 1)
        if (self._rows.size and self._rows[-1] >= input_height) or (
            self._cols.size and self._cols[-1] >= input_width
        ):
            raise ValueError(
                f"skipping {skipping_height}x{skipping_width} reads past an "
                f"{input_height}x{input_width} image"
            )

    def forward(self) -> None:
        images = self._images()
        self.output = images[:, self._rows[:, None], self._cols, :].ravel()

    def backward(self) -> None:
        images = self._images()
        grad = np.zeros_like(images)
        count, _, _, depth = images.shape
        grad[:, self._rows[:, None], self._cols, :] = self.output_grad.reshape(
            count, self._rows.size, self._cols.size, depth
        )
        self.base.output_grad += grad.ravel()


class Spacing2DNode(_ImageNode):
    """Inserts ``spacing`` rows and columns of a constant between image pixels."""

    def __init__(
        self,
        base: ExpressionNode,
        input_height: int,
        input_width: int,
        input_depth: int,
        spacing_height: int,
        spacing_width: int,
        spacing_value: float = 0.0,
    ) -> None:
        super().__init__(base, input_height, input_width, input_depth)
        if spacing_height < 0 or spacing_width < 0:
            raise ValueError("spacing must not be negative")
        self.steps = (spacing_height + 1, spacing_width + 1)
        self.spacing_value = spacing_value
        self.output_height = (input_height - 1) * (spacing_height + 1) + 1
        self.output_width = (input_width - 1) * (spacing_width + 1) + 1

    def forward(self) -> None:
        images = self._images()
        count, _, _, depth = images.shape
        out = np.full(
            (count, self.output_height, self.output_width, depth),
            self.spacing_value,
            dtype=images.dtype,
        )
        row_step, col_step = self.steps
        out[:, ::row_step, ::col_step, :] = images
        self.output = out.ravel()

    def backward(self) -> None:
        images = self._images()
        count, _, _, depth = images.shape
        row_step, col_step = self.steps
        grad = self.output_grad.reshape(count, self.output_height, self.output_width, depth)
        self.base.output_grad += grad[:, ::row_step, ::col_step, :].ravel()


def skipping_2d(
    base,
    input_height: int,
    input_width: int,
    input_depth: int,
    skipping_height: int,
    skipping_width: int,
) -> Expression:
    """Sub-sample each image, skipping the given number of rows and columns."""
    return Expression(
        Skipping2DNode(
            _as_expression(base).root,
            input_height,
            input_width,
            input_depth,
            skipping_height,
            skipping_width,
        )
    )


def spacing_2d(
    base,
    input_height: int,
    input_width: int,
    input_depth: int,
    spacing_height: int,
    spacing_width: int,
    spacing_value: float = 0.0,
) -> Expression:
    """Spread out each image, filling the gaps with ``spacing_value``."""
    return Expression(
        Spacing2DNode(
            _as_expression(base).root,
            input_height,
            input_width,
            input_depth,
            spacing_height,
            spacing_width,
            spacing_value,
        )
    )