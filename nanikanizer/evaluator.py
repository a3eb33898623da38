"""Runs forward and backward passes over an expression graph."""

from __future__ import annotations

import numpy as np

from .expression import Expression
from .node import ExpressionNode


def _post_order(root: ExpressionNode) -> list[ExpressionNode]:
    """Every node reachable from ``root``, each after all of its children."""
    order: list[ExpressionNode] = []
    seen = {id(root)}
    stack = [(root, iter(root.children()))]
    while stack:
        node, pending = stack[-1]
        for child in pending:
            if id(child) not in seen:
                seen.add(id(child))
                stack.append((child, iter(child.children())))
                break
        else:
            stack.pop()
            order.append(node)
    return order


class Evaluator:
    """Evaluates an expression and propagates gradients back to its leaves."""

    def __init__(self, expr: Expression) -> None:
        self._expr = expr
        self._nodes = _post_order(expr.root)
        self._branches = [node for node in reversed(self._nodes) if node.is_branch()]

    @property
    def expression(self) -> Expression:
        return self._expr

    def forward(self) -> np.ndarray:
        """Compute every node, children first; return the root's output."""
        for node in self._nodes:
            node.forward()
            node.prepare_grads()
        return self._expr.root.output

    def backward(self, initial_grad=None) -> None:
        """Propagate ``initial_grad`` (default ``[1.0]``) from the root.

        Gradients of intermediate nodes are reset first; gradients of leaves
        accumulate across calls.
        """
        root = self._expr.root
        grad = np.atleast_1d(
            np.asarray([1.0] if initial_grad is None else initial_grad, dtype=root.output.dtype)
        ).ravel()
        if grad.size != root.output.size:
            raise ValueError(
                f"initial gradient has {grad.size} elements, output has {root.output.size}"
            )
        root.output_grad = grad.copy()
        for node in self._branches:
            if node is not root:
                node.zero_grads()
        for node in self._branches:
            node.backward()