"""Loss functions and the registry used by configuration files.

Every loss takes ``(actual, predicted)`` and returns ``(loss, gradient)``
where ``gradient`` is dLoss/dPredicted, i.e. it points towards *higher* loss.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable

import numpy as np

from ..core.types import Array

LossFn = Callable[[Array, Array], tuple[float, Array]]


def squared_error(actual: Array, predicted: Array) -> tuple[float, Array]:
    delta = np.asarray(predicted) - np.asarray(actual)
    return float(np.dot(delta, delta)), delta + delta


def absolute_error(actual: Array, predicted: Array) -> tuple[float, Array]:
    """Euclidean distance; the gradient is undefined (NaN) when ``predicted == actual``."""

    delta = np.asarray(predicted) - np.asarray(actual)
    norm = np.linalg.norm(delta)
    return float(norm), delta / norm


@dataclass(frozen=True)
class Loss:
    """Named loss wrapper."""

    name: str
    fn: LossFn

    def __call__(self, actual: Array, predicted: Array) -> tuple[float, Array]:
        return self.fn(actual, predicted)


class LossRegistry:
    """Central registry for loss functions."""

    def __init__(self) -> None:
        self._registry: Dict[str, Loss] = {}

    def register(self, name: str, fn: LossFn) -> None:
        self._registry[name] = Loss(name, fn)

    def get(self, name: str) -> Loss:
        try:
            return self._registry[name]
        except KeyError as exc:
            available = ", ".join(self.names())
            raise KeyError(f"Unknown loss {name!r}. Available losses: {available}") from exc

    def names(self) -> Iterable[str]:
        return sorted(self._registry)


REGISTRY = LossRegistry()
REGISTRY.register("squared_error", squared_error)
REGISTRY.register("absolute_error", absolute_error)
REGISTRY.register("mse", squared_error)
REGISTRY.register("mae", absolute_error)

__all__ = ["Loss", "LossRegistry", "REGISTRY", "squared_error", "absolute_error"]
