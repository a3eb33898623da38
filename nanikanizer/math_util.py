"""Small numeric helpers shared by the expression operators and optimizers."""

from __future__ import annotations

from collections.abc import Iterable

import numpy as np


def lerp(x1, x2, ratio):
    """Linear interpolation: ``x1`` at ratio 0, ``x2`` at ratio 1."""
    return x1 + (x2 - x1) * ratio


def clamp(x, lo, hi):
    """Limit ``x`` to the closed range ``[lo, hi]``."""
    if x < lo:
        return lo
    if hi < x:
        return hi
    return x


def square(x):
    """Return ``x * x``; works for scalars and arrays."""
    return x * x


def norm_sq(values: Iterable) -> float:
    """Sum of the squares of ``values``."""
    return sum((square(v) for v in values), 0.0)


def relu(x):
    """Rectified linear unit: ``max(0, x)``, element-wise for arrays."""
    return np.maximum(0.0, x)


def sigmoid(x):
    """Logistic function ``1 / (1 + exp(-x))``, element-wise for arrays."""
    return 1.0 / (1.0 + np.exp(-x))