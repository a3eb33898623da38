"""Operations along the depth (innermost) axis of interleaved tensors."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import numpy as np

from .expression import Expression, _as_expression
from .node import ExpressionNode


class DepthConcatNode(ExpressionNode):
    """Interleaves equally sized children element by element."""

    def __init__(self, nodes: Iterable[ExpressionNode]) -> None:
        super().__init__()
        self.nodes = list(nodes)
        if not self.nodes:
            raise ValueError("depth concatenation needs at least one node")

    def is_branch(self) -> bool:
        return True

    def forward(self) -> None:
        sizes = {node.output.size for node in self.nodes}
        if len(sizes) != 1:
            raise ValueError(f"depth concatenation of differently sized tensors: {sorted(sizes)}")
        self.output = np.stack([node.output for node in self.nodes], axis=1).ravel()

    def backward(self) -> None:
        grads = self.output_grad.reshape(-1, len(self.nodes))
        for column, node in enumerate(self.nodes):
            node.output_grad += grads[:, column]

    def children(self) -> Sequence[ExpressionNode]:
        return tuple(self.nodes)


class DepthMeanNode(ExpressionNode):
    """Averages consecutive blocks of the child's output element-wise."""

    def __init__(self, base: ExpressionNode, block_size: int) -> None:
        super().__init__()
        if block_size < 1:
            raise ValueError(f"block size must be at least 1, got {block_size}")
        self.base = base
        self.block_size = block_size

    def is_branch(self) -> bool:
        return True

    def _blocks(self) -> np.ndarray:
        values = self.base.output
        if values.size % self.block_size:
            raise ValueError(
                f"tensor of {values.size} elements does not split into blocks of {self.block_size}"
            )
        return values.reshape(-1, self.block_size)

    def forward(self) -> None:
        blocks = self._blocks()
        with np.errstate(invalid="ignore", divide="ignore"):
            self.output = blocks.sum(axis=0) / blocks.shape[0]

    def backward(self) -> None:
        count = self._blocks().shape[0]
        if count:
            self.base.output_grad += np.tile(self.output_grad / count, count)

    def children(self) -> Sequence[ExpressionNode]:
        return (self.base,)


def depth_concat(expressions: Iterable) -> Expression:
    """Interleave the given expressions element by element."""
    return Expression(DepthConcatNode(_as_expression(e).root for e in expressions))


def depth_mean(base, block_size: int) -> Expression:
    """Mean over all blocks of ``block_size`` elements, giving one block."""
    return Expression(DepthMeanNode(_as_expression(base).root, block_size))