"""A single affine + activation stage."""

from __future__ import annotations

from typing import Mapping, Tuple

import numpy as np

from .activations import Activator, activation_gradient_matrix
from .types import Array, LayerGradient, TopologyError


class Layer:
    """Weight matrix of shape ``(outputs, inputs)`` and a bias of ``(outputs,)``.

    The bias is added *after* the activation::

        through(x) = activation(weight @ x) + bias
    """

    __slots__ = ("weight", "bias")

    def __init__(self, weight: Array, bias: Array) -> None:
        weight = np.asarray(weight)
        bias = np.asarray(bias, dtype=weight.dtype)
        if weight.ndim != 2 or bias.shape != (weight.shape[0],):
            raise TopologyError(
                f"bias of shape {bias.shape} does not match weight of shape {weight.shape}"
            )
        self.weight = weight.copy()
        self.bias = bias.copy()

    @classmethod
    def random(
        cls,
        inputs: int,
        outputs: int,
        rng: np.random.Generator,
        dtype: np.dtype | type = np.float32,
    ) -> "Layer":
        """Draw every weight and bias uniformly from ``[-1, 1]``."""

        weight = rng.uniform(-1.0, 1.0, size=(outputs, inputs)).astype(dtype)
        bias = rng.uniform(-1.0, 1.0, size=outputs).astype(dtype)
        return cls(weight, bias)

    @property
    def inputs(self) -> int:
        return int(self.weight.shape[1])

    @property
    def outputs(self) -> int:
        return int(self.weight.shape[0])

    @property
    def dtype(self) -> np.dtype:
        return self.weight.dtype

    def through(self, inputs: Array, activator: Activator) -> Array:
        weighted = self.weight @ inputs
        activated = np.asarray(activator.activation(weighted), dtype=self.dtype)
        return activated + self.bias

    def backpropogate(
        self,
        loss_gradient: Array,
        inputs: Array,
        activator: Activator,
    ) -> Tuple[LayerGradient, Array]:
        """Return this layer's gradient and the loss gradient w.r.t. ``inputs``."""

        jacobian = activation_gradient_matrix(activator, self.weight @ inputs)
        # the bias sits outside the activation, so its local Jacobian is the identity
        bias_gradient = np.asarray(loss_gradient, dtype=self.dtype)
        weight_gradient = np.outer(jacobian @ bias_gradient, inputs).astype(self.dtype)
        input_gradient = (jacobian @ self.weight).T @ bias_gradient
        return LayerGradient(weight_gradient, bias_gradient.copy()), input_gradient

    def apply_shifts(self, weight_delta: Array, bias_delta: Array) -> None:
        self.weight += weight_delta
        self.bias += bias_delta

    def state_dict(self) -> Mapping[str, Array]:
        return {"weight": self.weight.copy(), "bias": self.bias.copy()}

    def load_state_dict(self, state: Mapping[str, Array]) -> None:
        for key in ("weight", "bias"):
            if key not in state:
                raise KeyError(f"Missing {key} in layer state")
            value = np.asarray(state[key], dtype=self.dtype)
            current = getattr(self, key)
            if value.shape != current.shape:
                raise ValueError(
                    f"{key} has shape {value.shape}, expected {current.shape}"
                )
            setattr(self, key, value.copy())

    def __repr__(self) -> str:
        return f"Layer(inputs={self.inputs}, outputs={self.outputs}, dtype={self.dtype})"


__all__ = ["Layer"]
