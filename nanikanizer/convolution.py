"""Patch extraction for 2-D convolutions over height x width x depth tensors."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from .expression import Expression, _as_expression
from .node import ExpressionNode


class Convolution2DNode(ExpressionNode):
    """Gathers every ``filter_height x filter_width`` patch of each input image.

    The output for one image is ``output_height x output_width`` positions,
    each holding the flattened patch of ``filter_height * filter_width *
    input_depth`` values.
    """

    def __init__(
        self,
        base: ExpressionNode,
        input_height: int,
        input_width: int,
        input_depth: int,
        filter_height: int,
        filter_width: int,
    ) -> None:
        super().__init__()
        if min(input_height, input_width, input_depth, filter_height, filter_width) < 1:
            raise ValueError("convolution dimensions must be positive")
        if filter_height > input_height or filter_width > input_width:
            raise ValueError(
                f"filter {filter_height}x{filter_width} is larger than input "
                f"{input_height}x{input_width}"
            )
        self.base = base
        self.input_size = input_height * input_width * input_depth
        output_height = input_height - filter_height + 1
        output_width = input_width - filter_width + 1
        stride = input_width * input_depth
        h = np.arange(output_height)[:, None, None, None] * stride
        w = np.arange(output_width)[None, :, None, None] * input_depth
        k = np.arange(filter_height)[None, None, :, None] * stride
        l = np.arange(filter_width * input_depth)[None, None, None, :]
        self._indices = (h + w + k + l).ravel()

    @property
    def output_size(self) -> int:
        """Number of output values per input image."""
        return self._indices.size

    def is_branch(self) -> bool:
        return True

    def _count(self) -> int:
        size = self.base.output.size
        if size % self.input_size:
            raise ValueError(
                f"tensor of {size} elements is not a batch of images of {self.input_size}"
            )
        return size // self.input_size

    def _all_indices(self, count: int) -> np.ndarray:
        offsets = np.arange(count)[:, None] * self.input_size
        return (offsets + self._indices[None, :]).ravel()

    def forward(self) -> None:
        count = self._count()
        self.output = self.base.output[self._all_indices(count)]

    def backward(self) -> None:
        count = self._count()
        contributions = np.bincount(
            self._all_indices(count),
            weights=self.output_grad,
            minlength=self.base.output.size,
        )
        self.base.output_grad += contributions.astype(self.base.output_grad.dtype)

    def children(self) -> Sequence[ExpressionNode]:
        return (self.base,)


def convolution_2d(
    base,
    input_height: int,
    input_width: int,
    input_depth: int,
    filter_height: int,
    filter_width: int,
) -> Expression:
    """Every filter-sized patch of each image in ``base``, ready for a linear layer."""
    return Expression(
        Convolution2DNode(
            _as_expression(base).root,
            input_height,
            input_width,
            input_depth,
            filter_height,
            filter_width,
        )
    )