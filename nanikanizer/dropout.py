"""Dropout: randomly zeroes elements while training, scales them otherwise."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from .expression import Expression, _as_expression
from .node import ExpressionNode

_SEED = 5489


@dataclass
class TrainFlag:
    """A shared switch between training and evaluation mode."""

    value: bool = True

    def __bool__(self) -> bool:
        return bool(self.value)


class DropoutNode(ExpressionNode):
    """Keeps each element with probability ``1 - ratio`` while training.

    Outside training every element is multiplied by ``ratio``.
    """

    def __init__(self, base: ExpressionNode, ratio: float, train: TrainFlag) -> None:
        super().__init__()
        if train is None:
            raise TypeError("dropout needs a training flag")
        self.base = base
        self.ratio = ratio
        self.train = train if isinstance(train, TrainFlag) else TrainFlag(bool(train))
        self._rng = np.random.default_rng(_SEED)
        self._mask = np.zeros(0, dtype=bool)

    def is_branch(self) -> bool:
        return True

    def forward(self) -> None:
        values = self.base.output
        if self.train:
            self._mask = self.ratio < self._rng.random(values.size)
            self.output = np.where(self._mask, values, 0.0).astype(values.dtype)
        else:
            self.output = (values * self.ratio).astype(values.dtype)

    def backward(self) -> None:
        if self.train:
            if self._mask.size != self.output_grad.size:
                raise ValueError("dropout mask does not match the gradient; run forward first")
            self.base.output_grad += np.where(self._mask, self.output_grad, 0.0)
        else:
            self.base.output_grad += self.output_grad * self.ratio

    def children(self) -> Sequence[ExpressionNode]:
        return (self.base,)


def dropout(base, ratio: float, train: TrainFlag) -> Expression:
    """Dropout of ``base`` with drop probability ``ratio``, switched by ``train``."""
    return Expression(DropoutNode(_as_expression(base).root, ratio, train))