"""Matrix products and transposes over flat, row-major tensors.

A tensor whose size is a multiple of the matrix size is treated as a batch
of consecutive matrices.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from .expression import Expression, _as_expression
from .node import ExpressionNode


class MatrixProductNode(ExpressionNode):
    """Product of an ``lhs_rows x lhs_cols`` and an ``rhs_rows x rhs_cols`` matrix.

    One side may hold a batch of matrices; the other side is then shared by
    every matrix of the batch.
    """

    def __init__(
        self,
        lhs: ExpressionNode,
        rhs: ExpressionNode,
        lhs_rows: int,
        lhs_cols: int,
        rhs_rows: int,
        rhs_cols: int,
    ) -> None:
        super().__init__()
        if lhs_cols != rhs_rows:
            raise ValueError(
                f"cannot multiply {lhs_rows}x{lhs_cols} by {rhs_rows}x{rhs_cols} matrices"
            )
        self.lhs = lhs
        self.rhs = rhs
        self.lhs_shape = (lhs_rows, lhs_cols)
        self.rhs_shape = (rhs_rows, rhs_cols)
        self.lhs_size = lhs_rows * lhs_cols
        self.rhs_size = rhs_rows * rhs_cols

    def is_branch(self) -> bool:
        return True

    def _operands(self) -> tuple[np.ndarray, np.ndarray]:
        """Both operands as 3-D stacks; a shared operand has a stack of one."""
        lhs_values = self.lhs.output
        rhs_values = self.rhs.output
        lhs_fits = lhs_values.size == self.lhs_size
        rhs_fits = rhs_values.size == self.rhs_size
        if not lhs_fits and rhs_fits:
            if self.lhs_size == 0 or lhs_values.size % self.lhs_size:
                raise ValueError(
                    f"left operand of {lhs_values.size} elements is not a batch of "
                    f"{self.lhs_shape[0]}x{self.lhs_shape[1]} matrices"
                )
        elif lhs_fits and not rhs_fits:
            if self.rhs_size == 0 or rhs_values.size % self.rhs_size:
                raise ValueError(
                    f"right operand of {rhs_values.size} elements is not a batch of "
                    f"{self.rhs_shape[0]}x{self.rhs_shape[1]} matrices"
                )
        elif not lhs_fits and not rhs_fits:
            raise ValueError(
                f"operand sizes {lhs_values.size} and {rhs_values.size} do not match "
                f"{self.lhs_shape[0]}x{self.lhs_shape[1]} and "
                f"{self.rhs_shape[0]}x{self.rhs_shape[1]} matrices"
            )
        return (
            lhs_values.reshape((-1,) + self.lhs_shape),
            rhs_values.reshape((-1,) + self.rhs_shape),
        )

    def forward(self) -> None:
        lhs, rhs = self._operands()
        self.output = np.matmul(lhs, rhs).ravel()

    def backward(self) -> None:
        lhs, rhs = self._operands()
        count = max(lhs.shape[0], rhs.shape[0])
        grad = self.output_grad.reshape(count, self.lhs_shape[0], self.rhs_shape[1])
        lhs_grad = np.matmul(grad, np.swapaxes(rhs, 1, 2))
        rhs_grad = np.matmul(np.swapaxes(lhs, 1, 2), grad)
        if lhs.shape[0] == 1:
            lhs_grad = lhs_grad.sum(axis=0)
        if rhs.shape[0] == 1:
            rhs_grad = rhs_grad.sum(axis=0)
        self.lhs.output_grad += lhs_grad.ravel()
        self.rhs.output_grad += rhs_grad.ravel()

    def children(self) -> Sequence[ExpressionNode]:
        return (self.lhs, self.rhs)


class MatrixTransposeNode(ExpressionNode):
    """Transposes each ``rows x cols`` matrix of the child's output."""

    def __init__(self, base: ExpressionNode, rows: int, cols: int) -> None:
        super().__init__()
        if rows < 1 or cols < 1:
            raise ValueError(f"matrix dimensions must be positive, got {rows}x{cols}")
        self.base = base
        self.rows = rows
        self.cols = cols

    def is_branch(self) -> bool:
        return True

    def _count(self) -> int:
        size = self.base.output.size
        if size % (self.rows * self.cols):
            raise ValueError(
                f"tensor of {size} elements is not a batch of {self.rows}x{self.cols} matrices"
            )
        return size // (self.rows * self.cols)

    def forward(self) -> None:
        count = self._count()
        matrices = self.base.output.reshape(count, self.rows, self.cols)
        self.output = np.ascontiguousarray(matrices.transpose(0, 2, 1)).ravel()

    def backward(self) -> None:
        count = self._count()
        grad = self.output_grad.reshape(count, self.cols, self.rows)
        self.base.output_grad += grad.transpose(0, 2, 1).ravel()

    def children(self) -> Sequence[ExpressionNode]:
        return (self.base,)


def matrix_product(lhs, rhs, lhs_rows: int, lhs_cols: int, rhs_rows: int, rhs_cols: int) -> Expression:
    """Matrix product of ``lhs`` and ``rhs``, either of which may be a batch."""
    return Expression(
        MatrixProductNode(
            _as_expression(lhs).root,
            _as_expression(rhs).root,
            lhs_rows,
            lhs_cols,
            rhs_rows,
            rhs_cols,
        )
    )


def matrix_transpose(base, rows: int, cols: int) -> Expression:
    """Transpose of every ``rows x cols`` matrix in ``base``."""
    return Expression(MatrixTransposeNode(_as_expression(base).root, rows, cols))