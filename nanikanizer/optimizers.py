"""Gradient-based optimizers that update trainable variables in place.

An :class:`Optimizer` keeps one :class:`UpdateRule` per registered variable,
so per-parameter state (moments, accumulators) lives with that parameter.
Arithmetic is done in the dtype of each variable.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import numpy as np

from .math_util import lerp, square
from .variable import Variable


def _check_sizes(x: np.ndarray, grad: np.ndarray) -> None:
    if grad.shape != x.shape:
        raise ValueError(
            f"gradient has {grad.size} elements but the parameter has {x.size}; "
            "run a forward pass before updating"
        )


class UpdateRule(ABC):
    """The per-parameter update step of an optimizer."""

    @abstractmethod
    def update(self, x: np.ndarray, grad: np.ndarray) -> None:
        """Change ``x`` in place using its gradient ``grad``."""


@dataclass
class _SGDRule(UpdateRule):
    alpha: float

    def update(self, x, grad):
        _check_sizes(x, grad)
        x -= x.dtype.type(self.alpha) * grad


@dataclass
class _AdagradRule(UpdateRule):
    alpha: float
    eps: float
    _r: np.ndarray | None = field(default=None, init=False, repr=False)

    def update(self, x, grad):
        _check_sizes(x, grad)
        t = x.dtype.type
        if self._r is None:
            self._r = np.zeros_like(x)
        self._r += square(grad)
        x -= t(self.alpha) / (np.sqrt(self._r) + t(self.eps)) * grad


@dataclass
class _RMSPropRule(UpdateRule):
    alpha: float
    gamma: float
    eps: float
    _r: np.ndarray | None = field(default=None, init=False, repr=False)

    def update(self, x, grad):
        _check_sizes(x, grad)
        t = x.dtype.type
        if self._r is None:
            self._r = np.zeros_like(x)
        self._r[:] = lerp(square(grad), self._r, t(self.gamma))
        x -= t(self.alpha) / (np.sqrt(self._r) + t(self.eps)) * grad


@dataclass
class _AdadeltaRule(UpdateRule):
    gamma: float
    eps: float
    _r: np.ndarray | None = field(default=None, init=False, repr=False)
    _s: np.ndarray | None = field(default=None, init=False, repr=False)

    def update(self, x, grad):
        _check_sizes(x, grad)
        t = x.dtype.type
        if self._r is None:
            self._r = np.zeros_like(x)
            self._s = np.zeros_like(x)
        gamma = t(self.gamma)
        eps = t(self.eps)
        self._r[:] = lerp(square(grad), self._r, gamma)
        step = np.sqrt((self._s + eps) / (self._r + eps)) * grad
        self._s[:] = lerp(square(step), self._s, gamma)
        x -= step


@dataclass
class _AdamRule(UpdateRule):
    alpha: float
    beta1: float
    beta2: float
    eps: float
    _v: np.ndarray | None = field(default=None, init=False, repr=False)
    _r: np.ndarray | None = field(default=None, init=False, repr=False)
    _beta1t: float = field(default=1.0, init=False, repr=False)
    _beta2t: float = field(default=1.0, init=False, repr=False)

    def update(self, x, grad):
        _check_sizes(x, grad)
        t = x.dtype.type
        if self._v is None:
            self._v = np.zeros_like(x)
            self._r = np.zeros_like(x)
            self._beta1t = t(1.0)
            self._beta2t = t(1.0)
        beta1 = t(self.beta1)
        beta2 = t(self.beta2)
        self._beta1t = t(self._beta1t * beta1)
        self._beta2t = t(self._beta2t * beta2)
        self._r[:] = lerp(square(grad), self._r, beta2)
        self._v[:] = lerp(grad, self._v, beta1)
        v_ratio = t(1.0) - self._beta1t
        r_ratio = t(1.0) - self._beta2t
        scale = t(self.alpha) / v_ratio / (np.sqrt(self._r / r_ratio) + t(self.eps))
        x -= self._v * scale


class Optimizer(ABC):
    """Holds trainable variables and updates them from their gradients."""

    def __init__(self) -> None:
        self._holders: list[tuple[Variable, UpdateRule]] = []

    @abstractmethod
    def make_rule(self) -> UpdateRule:
        """A fresh update rule for one parameter."""

    @property
    def parameters(self) -> tuple[Variable, ...]:
        """The registered variables, in registration order."""
        return tuple(variable for variable, _ in self._holders)

    def add_parameter(self, param) -> None:
        """Register a variable, or every parameter of a layer."""
        if isinstance(param, Variable):
            self._holders.append((param, self.make_rule()))
        else:
            param.enumerate_parameters(self)

    def zero_grads(self) -> None:
        """Reset the gradients of every registered variable."""
        for variable, _ in self._holders:
            variable.zero_grads()

    def update(self) -> None:
        """Apply one update step to every registered variable."""
        for variable, rule in self._holders:
            rule.update(variable.value, variable.grad)


class SGDOptimizer(Optimizer):
    """Plain gradient descent."""

    def __init__(self, alpha: float = 0.01) -> None:
        super().__init__()
        self.alpha = alpha

    def make_rule(self) -> UpdateRule:
        return _SGDRule(self.alpha)


class AdagradOptimizer(Optimizer):
    """Adagrad: steps scaled by accumulated squared gradients."""

    def __init__(self, alpha: float = 0.001, eps: float = 1.0e-8) -> None:
        super().__init__()
        self.alpha = alpha
        self.eps = eps

    def make_rule(self) -> UpdateRule:
        return _AdagradRule(self.alpha, self.eps)


class RMSPropOptimizer(Optimizer):
    """RMSProp: steps scaled by a running mean of squared gradients."""

    def __init__(self, alpha: float = 0.001, gamma: float = 0.999, eps: float = 1.0e-8) -> None:
        super().__init__()
        self.alpha = alpha
        self.gamma = gamma
        self.eps = eps

    def make_rule(self) -> UpdateRule:
        return _RMSPropRule(self.alpha, self.gamma, self.eps)


class AdadeltaOptimizer(Optimizer):
    """Adadelta: steps scaled by running means of squared gradients and steps."""

    def __init__(self, gamma: float = 0.999, eps: float = 1.0e-8) -> None:
        super().__init__()
        self.gamma = gamma
        self.eps = eps

    def make_rule(self) -> UpdateRule:
        return _AdadeltaRule(self.gamma, self.eps)


class AdamOptimizer(Optimizer):
    """Adam: bias-corrected running moments of the gradient."""

    def __init__(
        self,
        alpha: float = 0.001,
        beta1: float = 0.9,
        beta2: float = 0.999,
        eps: float = 1.0e-8,
    ) -> None:
        super().__init__()
        self.alpha = alpha
        self.beta1 = beta1
        self.beta2 = beta2
        self.eps = eps

    def make_rule(self) -> UpdateRule:
        return _AdamRule(self.alpha, self.beta1, self.beta2, self.eps)