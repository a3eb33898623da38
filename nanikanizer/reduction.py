"""Reductions over whole tensors or over consecutive fixed-size blocks.

An operator passed to :func:`block_operator` has ``forward(blocks)``, taking
a 2-D array with one block per row and returning one value per row, and
``backward(blocks, y, y_grad)`` returning the gradient for ``blocks``.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from .expression import Expression, _as_expression
from .node import ExpressionNode


def _check_block_size(block_size: int | None) -> None:
    if block_size is not None and block_size < 2:
        raise ValueError(f"block size must be at least 2, got {block_size}")


def _split_blocks(values: np.ndarray, block_size: int | None) -> np.ndarray:
    """View ``values`` as rows of ``block_size``, or as one row when ``None``."""
    if block_size is None:
        return values.reshape(1, -1)
    if values.size % block_size:
        raise ValueError(
            f"tensor of {values.size} elements does not split into blocks of {block_size}"
        )
    return values.reshape(-1, block_size)


class BlockOperatorNode(ExpressionNode):
    """Reduces each block of the child's output to a single value."""

    def __init__(self, base: ExpressionNode, op, block_size: int | None = None) -> None:
        super().__init__()
        _check_block_size(block_size)
        self.base = base
        self.op = op
        self.block_size = block_size

    def is_branch(self) -> bool:
        return True

    def forward(self) -> None:
        blocks = _split_blocks(self.base.output, self.block_size)
        self.output = np.asarray(
            self.op.forward(blocks), dtype=self.base.output.dtype
        ).ravel()

    def backward(self) -> None:
        blocks = _split_blocks(self.base.output, self.block_size)
        grad = self.op.backward(blocks, self.output, self.output_grad)
        self.base.output_grad += np.asarray(grad).reshape(-1)

    def children(self) -> Sequence[ExpressionNode]:
        return (self.base,)


class _Sum:
    @staticmethod
    def forward(blocks):
        return blocks.sum(axis=1)

    @staticmethod
    def backward(blocks, y, y_grad):
        return np.broadcast_to(y_grad[:, None], blocks.shape)


class _Min:
    @staticmethod
    def forward(blocks):
        return blocks.min(axis=1)

    @staticmethod
    def backward(blocks, y, y_grad):
        return (blocks == y[:, None]) * y_grad[:, None]


class _Max:
    @staticmethod
    def forward(blocks):
        return blocks.max(axis=1)

    @staticmethod
    def backward(blocks, y, y_grad):
        return (blocks == y[:, None]) * y_grad[:, None]


def block_operator(base, op, block_size: int | None = None) -> Expression:
    """Build an expression reducing ``base`` block by block with ``op``."""
    return Expression(BlockOperatorNode(_as_expression(base).root, op, block_size))


def reduce_sum(base, block_size: int | None = None) -> Expression:
    """Sum of all elements, or of each block of ``block_size`` elements."""
    return block_operator(base, _Sum, block_size)


def reduce_min(base, block_size: int | None = None) -> Expression:
    """Minimum of all elements, or of each block; ties all receive the gradient."""
    return block_operator(base, _Min, block_size)


def reduce_max(base, block_size: int | None = None) -> Expression:
    """Maximum of all elements, or of each block; ties all receive the gradient."""
    return block_operator(base, _Max, block_size)