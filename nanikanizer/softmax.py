"""Softmax over the whole tensor or over consecutive blocks."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from .expression import Expression, _as_expression
from .node import ExpressionNode


class SoftmaxNode(ExpressionNode):
    """Normalises each block of the child's output to a probability distribution."""

    def __init__(self, base: ExpressionNode, block_size: int | None = None) -> None:
        super().__init__()
        if block_size is not None and block_size < 2:
            raise ValueError(f"block size must be at least 2, got {block_size}")
        self.base = base
        self.block_size = block_size

    def is_branch(self) -> bool:
        return True

    def _shape(self) -> tuple[int, int]:
        size = self.base.output.size
        block = size if self.block_size is None else self.block_size
        if block == 0 or size % block:
            raise ValueError(f"tensor of {size} elements does not split into blocks of {block}")
        return size // block, block

    def forward(self) -> None:
        if self.base.output.size == 0 and self.block_size is None:
            self.output = self.base.output.copy()
            return
        blocks = self.base.output.reshape(self._shape())
        shifted = np.exp(blocks - blocks.max(axis=1, keepdims=True))
        self.output = (shifted / shifted.sum(axis=1, keepdims=True)).ravel()

    def backward(self) -> None:
        if self.output.size == 0:
            return
        shape = self._shape()
        y = self.output.reshape(shape)
        t = y * self.output_grad.reshape(shape)
        self.base.output_grad += (t - y * t.sum(axis=1, keepdims=True)).ravel()

    def children(self) -> Sequence[ExpressionNode]:
        return (self.base,)


def softmax(base, block_size: int | None = None) -> Expression:
    """Softmax of ``base``, per block of ``block_size`` when given."""
    return Expression(SoftmaxNode(_as_expression(base).root, block_size))