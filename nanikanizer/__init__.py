"""Computation graphs over flat numpy arrays with automatic differentiation, layers and optimizers."""

__version__ = "0.1.0"