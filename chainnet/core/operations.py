"""Parameter-free operations that behave like networks.

They ignore the activator, have an empty gradient ``()`` and can be chained
with trainable networks, e.g. ``chain(network, Softmax())``.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np

from .activations import Activator
from .network import chain
from .types import Array


class _Operation:
    def apply_nudge(self, nudge: tuple) -> None:
        pass

    def zero_gradient(self) -> tuple:
        return ()


class Exp(_Operation):
    """``e^x`` for every value."""

    def evaluate(self, inputs: Array, activator: Activator | None = None) -> Array:
        return np.exp(inputs)

    def evaluate_training(self, inputs: Array, activator: Activator | None = None):
        outputs = self.evaluate(inputs)
        return outputs, outputs

    def get_gradient(
        self, layer_inputs: Array, output_loss_gradient: Array, activator: Activator | None = None
    ) -> Tuple[tuple, Array]:
        # d/dx e^x = e^x, which is exactly what was cached
        return (), layer_inputs * output_loss_gradient


class Normalize(_Operation):
    """Scale to unit Euclidean length."""

    def evaluate(self, inputs: Array, activator: Activator | None = None) -> Array:
        return inputs / np.linalg.norm(inputs)

    def evaluate_training(self, inputs: Array, activator: Activator | None = None):
        return self.evaluate(inputs), inputs

    def get_gradient(
        self, layer_inputs: Array, output_loss_gradient: Array, activator: Activator | None = None
    ) -> Tuple[tuple, Array]:
        norm = np.linalg.norm(layer_inputs)
        output = layer_inputs / norm
        jacobian = np.eye(output.shape[0], dtype=output.dtype) - np.outer(output, output)
        return (), jacobian @ output_loss_gradient / norm


class TaxicabNormalize(_Operation):
    """Divide by the sum of the values so they add up to one."""

    def evaluate(self, inputs: Array, activator: Activator | None = None) -> Array:
        return inputs / np.sum(inputs)

    def evaluate_training(self, inputs: Array, activator: Activator | None = None):
        return self.evaluate(inputs), inputs

    def get_gradient(
        self, layer_inputs: Array, output_loss_gradient: Array, activator: Activator | None = None
    ) -> Tuple[tuple, Array]:
        total = np.sum(layer_inputs)
        dot = np.dot(layer_inputs, output_loss_gradient)
        # d(x_i / S)/dx_j = delta_ij / S - x_i / S^2
        return (), output_loss_gradient / total - dot / total**2


class Softmax(_Operation):
    """``Exp`` followed by ``TaxicabNormalize``."""

    def __init__(self) -> None:
        self._inner = chain(Exp(), TaxicabNormalize())

    def evaluate(self, inputs: Array, activator: Activator | None = None) -> Array:
        return self._inner.evaluate(inputs, activator)

    def evaluate_training(self, inputs: Array, activator: Activator | None = None):
        return self._inner.evaluate_training(inputs, activator)

    def get_gradient(
        self, layer_inputs, output_loss_gradient: Array, activator: Activator | None = None
    ) -> Tuple[tuple, Array]:
        _, input_loss_gradient = self._inner.get_gradient(
            layer_inputs, output_loss_gradient, activator
        )
        return (), input_loss_gradient


__all__ = ["Exp", "Normalize", "TaxicabNormalize", "Softmax"]
