"""Core typing contracts for chainnet."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

import numpy as np

from . import valueset

Array = np.ndarray

Sample = Tuple[Array, Array]


class TopologyError(ValueError):
    """Raised when layer widths do not line up or an input has the wrong size."""


@dataclass(frozen=True)
class Batch:
    """A fixed collection of ``(input, target)`` samples."""

    inputs: Array
    targets: Array

    def __iter__(self):
        return iter(zip(self.inputs, self.targets))

    def __len__(self) -> int:
        return int(self.inputs.shape[0])


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :meth:`chainnet.training.trainer.Trainer.run`."""

    epochs: int
    final_loss: float
    metrics_path: str = ""
    manifest_path: str = ""
    summary_path: str = ""


@dataclass
class LayerGradient:
    """Gradient of the loss with respect to one layer's weight and bias."""

    weight_gradient: Array
    bias_gradient: Array

    def unary_operation(self, f) -> "LayerGradient":
        return LayerGradient(
            valueset.unary_operation(self.weight_gradient, f),
            valueset.unary_operation(self.bias_gradient, f),
        )

    def binary_operation(self, other: "LayerGradient", f) -> "LayerGradient":
        return LayerGradient(
            valueset.binary_operation(self.weight_gradient, other.weight_gradient, f),
            valueset.binary_operation(self.bias_gradient, other.bias_gradient, f),
        )

    def unary_inspection(self, f) -> None:
        valueset.unary_inspection(self.weight_gradient, f)
        valueset.unary_inspection(self.bias_gradient, f)

    def binary_inspection(self, other: "LayerGradient", f) -> None:
        valueset.binary_inspection(self.weight_gradient, other.weight_gradient, f)
        valueset.binary_inspection(self.bias_gradient, other.bias_gradient, f)

    def all(self, value: float) -> "LayerGradient":
        return LayerGradient(
            np.full_like(self.weight_gradient, value),
            np.full_like(self.bias_gradient, value),
        )


@dataclass
class NetworkGradient:
    """One :class:`LayerGradient` per layer of a :class:`SimpleNetwork`."""

    first: LayerGradient
    hidden: List[LayerGradient]
    last: LayerGradient

    @classmethod
    def from_layers(cls, layers: Sequence[LayerGradient]) -> "NetworkGradient":
        if len(layers) < 2:
            raise TopologyError("a network gradient needs at least two layers")
        return cls(first=layers[0], hidden=list(layers[1:-1]), last=layers[-1])

    @property
    def layers(self) -> List[LayerGradient]:
        return [self.first, *self.hidden, self.last]

    def _map(self, fn) -> "NetworkGradient":
        return NetworkGradient.from_layers([fn(idx, g) for idx, g in enumerate(self.layers)])

    def unary_operation(self, f) -> "NetworkGradient":
        return self._map(lambda _, g: g.unary_operation(f))

    def binary_operation(self, other: "NetworkGradient", f) -> "NetworkGradient":
        others = other.layers
        return self._map(lambda idx, g: g.binary_operation(others[idx], f))

    def unary_inspection(self, f) -> None:
        for layer in self.layers:
            layer.unary_inspection(f)

    def binary_inspection(self, other: "NetworkGradient", f) -> None:
        for mine, theirs in zip(self.layers, other.layers):
            mine.binary_inspection(theirs, f)

    def all(self, value: float) -> "NetworkGradient":
        return self._map(lambda _, g: g.all(value))


@dataclass(frozen=True)
class TrainingInputs:
    """The vector fed into every layer during one training-mode forward pass."""

    input: Array
    hidden_inputs: Tuple[Array, ...]
    hidden_output: Array

    @property
    def layer_inputs(self) -> List[Array]:
        return [self.input, *self.hidden_inputs, self.hidden_output]


def as_samples(batch: Iterable[Sample]) -> List[Sample]:
    return [(np.asarray(x), np.asarray(y)) for x, y in batch]


__all__ = [
    "Array",
    "Sample",
    "Batch",
    "RunResult",
    "TopologyError",
    "LayerGradient",
    "NetworkGradient",
    "TrainingInputs",
    "as_samples",
]
