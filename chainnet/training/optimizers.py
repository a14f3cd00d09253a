"""Optimisers turning a mean gradient into the step added to a network."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Protocol

import numpy as np

from ..core import valueset


class Optimizer(Protocol):
    """Protocol implemented by optimisers."""

    def transform(self, gradient: Any) -> Any:
        """Return the step to add to the parameters for ``gradient``."""


def _leaf_dtype(values: Any) -> np.dtype:
    found: list[np.dtype] = []

    def _grab(x) -> None:
        if not found:
            found.append(np.asarray(x).dtype)

    valueset.unary_inspection(values, _grab)
    return found[0] if found else np.dtype(np.float32)


class Adam:
    """ADAM with bias-corrected first and second moment estimates.

    ``template`` is any value set shaped like the gradients that will be
    passed to :meth:`transform`, usually ``network.zero_gradient()``.  The
    moments start at zero and persist across calls.
    """

    def __init__(
        self,
        template: Any,
        learning_rate: float = 0.001,
        momentum_mixer: float = 0.9,
        velocity_mixer: float = 0.999,
    ) -> None:
        if learning_rate <= 0:
            raise ValueError(f"learning_rate must be positive, got {learning_rate}")
        for name, mixer in (("momentum_mixer", momentum_mixer), ("velocity_mixer", velocity_mixer)):
            if not 0.0 <= mixer < 1.0:
                raise ValueError(f"{name} must be in [0, 1), got {mixer}")
        self.momentum = valueset.zeros_like(template)
        self.velocity = valueset.zeros_like(template)
        self.learning_rate = learning_rate
        self.momentum_mixer = momentum_mixer
        self.velocity_mixer = velocity_mixer
        # beta^t for the upcoming step; the first call is t = 1
        self.accumulated_momentum = momentum_mixer
        self.accumulated_velocity = velocity_mixer
        self.epsilon = float(np.finfo(_leaf_dtype(template)).tiny)
        self.steps = 0

    def transform(self, gradient: Any) -> Any:
        beta1, beta2 = self.momentum_mixer, self.velocity_mixer

        self.momentum = valueset.binary_operation(
            self.momentum, gradient, lambda m, g: m * beta1 + g * (1 - beta1)
        )
        self.velocity = valueset.binary_operation(
            self.velocity, gradient, lambda v, g: v * beta2 + g * g * (1 - beta2)
        )

        momentum_scale = 1 / (1 - self.accumulated_momentum)
        velocity_scale = 1 / (1 - self.accumulated_velocity)
        corrected_momentum = valueset.unary_operation(self.momentum, lambda m: m * momentum_scale)
        corrected_velocity = valueset.unary_operation(self.velocity, lambda v: v * velocity_scale)

        self.accumulated_momentum *= beta1
        self.accumulated_velocity *= beta2
        self.steps += 1

        alpha, eps = self.learning_rate, self.epsilon
        return valueset.binary_operation(
            corrected_momentum,
            corrected_velocity,
            lambda m, v: -alpha * m / (np.sqrt(v) + eps),
        )

    def state_dict(self) -> Mapping[str, Any]:
        return {
            "momentum": self.momentum,
            "velocity": self.velocity,
            "accumulated_momentum": self.accumulated_momentum,
            "accumulated_velocity": self.accumulated_velocity,
            "steps": self.steps,
        }


@dataclass
class SGD:
    """Plain gradient descent: ``step = -lr * gradient``."""

    learning_rate: float

    def transform(self, gradient: Any) -> Any:
        lr = self.learning_rate
        return valueset.unary_operation(gradient, lambda g: -lr * g)


def build_optimizer(name: str, template: Any, **options: float) -> Optimizer:
    """Build the optimiser called ``name`` for gradients shaped like ``template``."""

    name = name.lower()
    if name == "adam":
        return Adam(
            template,
            learning_rate=float(options.get("lr", 0.001)),
            momentum_mixer=float(options.get("beta1", 0.9)),
            velocity_mixer=float(options.get("beta2", 0.999)),
        )
    if name == "sgd":
        return SGD(learning_rate=float(options.get("lr", 0.01)))
    raise ValueError(f"Unknown optimizer: {name}")


__all__ = ["Optimizer", "Adam", "SGD", "build_optimizer"]
