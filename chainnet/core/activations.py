"""Activation functions for chainnet."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Protocol

import numpy as np

from .types import Array


class Activator(Protocol):
    """A scalar nonlinearity and its derivative, applied elementwise."""

    def activation(self, x: Array) -> Array:
        """Return the activated value(s) of ``x``."""

    def activation_gradient(self, x: Array) -> Array:
        """Return the derivative of :meth:`activation` at ``x``."""


def activation_gradient_matrix(activator: Activator, weighted: Array) -> Array:
    """Return the diagonal Jacobian of ``activator`` at the weighted sums."""

    weighted = np.asarray(weighted)
    diagonal = np.asarray(activator.activation_gradient(weighted), dtype=weighted.dtype)
    return np.diag(diagonal)


class Sigmoid:
    """The logistic function ``1 / (1 + e^-x)``."""

    def activation(self, x: Array) -> Array:
        return 1.0 / (1.0 + np.exp(-x))

    def activation_gradient(self, x: Array) -> Array:
        sigma = self.activation(x)
        return sigma * (1.0 - sigma)


@dataclass(frozen=True)
class Relu:
    """Rectified linear unit with an optional leak below zero."""

    leaky_gradient: float = 0.0

    def activation(self, x: Array) -> Array:
        return np.where(x >= 0, x, self.leaky_gradient * x)

    def activation_gradient(self, x: Array) -> Array:
        # x == 0 takes the identity branch.
        return np.where(x >= 0, 1.0, self.leaky_gradient)


class Elu:
    """Exponential linear unit."""

    def activation(self, x: Array) -> Array:
        return np.where(x >= 0, x, np.expm1(np.minimum(x, 0)))

    def activation_gradient(self, x: Array) -> Array:
        return np.where(x >= 0, 1.0, np.exp(np.minimum(x, 0)))


class Linear:
    """Identity; passes values straight through."""

    def activation(self, x: Array) -> Array:
        return np.asarray(x)

    def activation_gradient(self, x: Array) -> Array:
        return np.ones_like(x)


_ACTIVATORS: Dict[str, Callable[..., Activator]] = {
    "sigmoid": Sigmoid,
    "relu": Relu,
    "elu": Elu,
    "linear": Linear,
}


def get_activator(name: str, **options: object) -> Activator:
    """Build the activator registered under ``name``."""

    try:
        factory = _ACTIVATORS[name.lower()]
    except KeyError as exc:
        available = ", ".join(sorted(_ACTIVATORS))
        raise KeyError(f"Unknown activator {name!r}. Available activators: {available}") from exc
    return factory(**options)


__all__ = [
    "Activator",
    "Sigmoid",
    "Relu",
    "Elu",
    "Linear",
    "activation_gradient_matrix",
    "get_activator",
]
