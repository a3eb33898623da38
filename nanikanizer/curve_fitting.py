"""Fit a quadratic to sample points with Adam."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Iterator, Sequence
from typing import NamedTuple

import numpy as np

from .evaluator import Evaluator
from .expression import Expression
from .functions import norm_sq
from .optimizers import AdamOptimizer
from .variable import Variable

SAMPLE_XS = (0.0, 1.0, 2.0, 3.0, 4.0, 5.0)
SAMPLE_YS = (1.0, -4.0, -5.0, -2.0, 5.0, 16.0)


class QuadraticFit(NamedTuple):
    """Coefficients of ``a x^2 + b x + c`` after a step, and the loss seen by that step."""

    a: float
    b: float
    c: float
    loss: float


def fit_quadratic(
    xs: Sequence[float],
    ys: Sequence[float],
    steps: int = 1500,
    alpha: float = 0.1,
) -> Iterator[QuadraticFit]:
    """Minimise the squared error of ``a x^2 + b x + c``, yielding after every step."""
    if len(xs) != len(ys):
        raise ValueError(f"{len(xs)} x values but {len(ys)} y values")
    if not len(xs):
        raise ValueError("at least one sample point is needed")

    x = Expression(np.asarray(xs, dtype=np.float64))
    y = Expression(np.asarray(ys, dtype=np.float64))
    a = Variable([0.0])
    b = Variable([0.0])
    c = Variable([0.0])

    fx = a.expr() * x * x + b.expr() * x + c.expr()
    evaluator = Evaluator(norm_sq(fx - y))

    optimizer = AdamOptimizer(alpha)
    for parameter in (a, b, c):
        optimizer.add_parameter(parameter)

    for _ in range(steps):
        optimizer.zero_grads()
        loss = float(evaluator.forward()[0])
        evaluator.backward()
        optimizer.update()
        yield QuadraticFit(float(a.value[0]), float(b.value[0]), float(c.value[0]), loss)


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Fit a quadratic to sample points.")
    parser.add_argument("--steps", type=int, default=1500)
    parser.add_argument("--alpha", type=float, default=0.1)
    args = parser.parse_args(argv)

    try:
        for fit in fit_quadratic(SAMPLE_XS, SAMPLE_YS, args.steps, args.alpha):
            print(f"a = {fit.a:.8f}, b = {fit.b:.8f}, c = {fit.c:.8f}")
    except Exception as exc:  # report any failure the way the command line expects
        print(exc, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())