"""Networks: fixed chains of layers and compositions of networks."""

from __future__ import annotations

from typing import Any, List, Mapping, Protocol, Sequence, Tuple

import numpy as np

from .activations import Activator
from .layer import Layer
from .types import Array, LayerGradient, NetworkGradient, TopologyError, TrainingInputs


class Network(Protocol):
    """Protocol implemented by everything that can be evaluated and trained."""

    def evaluate(self, inputs: Array, activator: Activator) -> Array:
        """Return the outputs for ``inputs``."""

    def evaluate_training(self, inputs: Array, activator: Activator) -> Tuple[Array, Any]:
        """Return the outputs plus whatever :meth:`get_gradient` needs later."""

    def get_gradient(
        self,
        layer_inputs: Any,
        output_loss_gradient: Array,
        activator: Activator,
    ) -> Tuple[Any, Array]:
        """Backpropagate and return ``(gradient, input_loss_gradient)``."""

    def apply_nudge(self, nudge: Any) -> None:
        """Add a gradient-shaped step to the parameters."""

    def zero_gradient(self) -> Any:
        """Return an all-zero value set shaped like this network's gradient."""


class SimpleNetwork:
    """``len(hidden) + 2`` layers: ``IN -> WIDTH``, ``WIDTH -> WIDTH`` * HIDDEN, ``WIDTH -> OUT``.

    The topology is validated once here; evaluation assumes it holds.
    """

    def __init__(self, first: Layer, hidden: Sequence[Layer], last: Layer) -> None:
        self.first = first
        self.hidden: List[Layer] = list(hidden)
        self.last = last
        self._validate()

    # ------------------------------------------------------------------
    # Construction

    @classmethod
    def random(
        cls,
        inputs: int,
        outputs: int,
        width: int,
        hidden: int,
        rng: np.random.Generator,
        dtype: np.dtype | type = np.float32,
    ) -> "SimpleNetwork":
        """Build a network whose layers are all drawn by :meth:`Layer.random`."""

        if hidden < 0:
            raise TopologyError(f"hidden layer count must be >= 0, got {hidden}")
        first = Layer.random(inputs, width, rng, dtype)
        middle = [Layer.random(width, width, rng, dtype) for _ in range(hidden)]
        last = Layer.random(width, outputs, rng, dtype)
        return cls(first, middle, last)

    @classmethod
    def from_dims(
        cls,
        dims: Sequence[int],
        rng: np.random.Generator,
        dtype: np.dtype | type = np.float32,
    ) -> "SimpleNetwork":
        """Build from ``[IN, WIDTH, ..., WIDTH, OUT]``."""

        dims = [int(d) for d in dims]
        if len(dims) < 3:
            raise TopologyError(f"need at least [inputs, width, outputs], got {dims}")
        widths = set(dims[1:-1])
        if len(widths) != 1:
            raise TopologyError(f"all hidden widths must match, got {dims[1:-1]}")
        return cls.random(dims[0], dims[-1], dims[1], len(dims) - 3, rng, dtype)

    def _validate(self) -> None:
        layers = self.layers
        for idx, (prev, nxt) in enumerate(zip(layers[:-1], layers[1:])):
            if prev.outputs != nxt.inputs:
                raise TopologyError(
                    f"layer {idx} produces {prev.outputs} values "
                    f"but layer {idx + 1} expects {nxt.inputs}"
                )
        dtypes = {layer.dtype for layer in layers}
        if len(dtypes) != 1:
            raise TopologyError(f"layers mix dtypes: {sorted(str(d) for d in dtypes)}")

    # ------------------------------------------------------------------
    # Introspection

    @property
    def layers(self) -> List[Layer]:
        return [self.first, *self.hidden, self.last]

    @property
    def dims(self) -> List[int]:
        return [self.first.inputs] + [layer.outputs for layer in self.layers]

    @property
    def inputs(self) -> int:
        return self.first.inputs

    @property
    def outputs(self) -> int:
        return self.last.outputs

    @property
    def dtype(self) -> np.dtype:
        return self.first.dtype

    def parameter_count(self) -> int:
        return int(sum(layer.weight.size + layer.bias.size for layer in self.layers))

    def _check_input(self, inputs: Array) -> Array:
        inputs = np.asarray(inputs, dtype=self.dtype)
        if inputs.shape != (self.inputs,):
            raise TopologyError(
                f"expected an input vector of shape ({self.inputs},), got {inputs.shape}"
            )
        return inputs

    # ------------------------------------------------------------------
    # Evaluation

    def evaluate(self, inputs: Array, activator: Activator) -> Array:
        current = self.first.through(self._check_input(inputs), activator)
        for layer in self.hidden:
            current = layer.through(current, activator)
        return self.last.through(current, activator)

    def evaluate_training(
        self, inputs: Array, activator: Activator
    ) -> Tuple[Array, TrainingInputs]:
        inputs = self._check_input(inputs)
        current = self.first.through(inputs, activator)
        hidden_inputs: List[Array] = []
        for layer in self.hidden:
            hidden_inputs.append(current)
            current = layer.through(current, activator)
        outputs = self.last.through(current, activator)
        record = TrainingInputs(
            input=inputs,
            hidden_inputs=tuple(hidden_inputs),
            hidden_output=current,
        )
        return outputs, record

    def get_gradient(
        self,
        layer_inputs: TrainingInputs,
        output_loss_gradient: Array,
        activator: Activator,
    ) -> Tuple[NetworkGradient, Array]:
        last, loss_gradient = self.last.backpropogate(
            output_loss_gradient, layer_inputs.hidden_output, activator
        )
        hidden: List[LayerGradient] = []
        for layer, layer_input in zip(
            reversed(self.hidden), reversed(layer_inputs.hidden_inputs)
        ):
            gradient, loss_gradient = layer.backpropogate(loss_gradient, layer_input, activator)
            hidden.append(gradient)
        hidden.reverse()
        first, input_loss_gradient = self.first.backpropogate(
            loss_gradient, layer_inputs.input, activator
        )
        return NetworkGradient(first=first, hidden=hidden, last=last), input_loss_gradient

    def apply_nudge(self, nudge: NetworkGradient) -> None:
        for layer, shift in zip(self.layers, nudge.layers):
            layer.apply_shifts(shift.weight_gradient, shift.bias_gradient)

    def zero_gradient(self) -> NetworkGradient:
        return NetworkGradient.from_layers(
            [
                LayerGradient(np.zeros_like(layer.weight), np.zeros_like(layer.bias))
                for layer in self.layers
            ]
        )

    # ------------------------------------------------------------------
    # Serialisation

    def state_dict(self) -> Mapping[str, Array]:
        state = {}
        for idx, layer in enumerate(self.layers):
            state[f"W{idx}"] = layer.weight.copy()
            state[f"b{idx}"] = layer.bias.copy()
        return state

    def load_state_dict(self, state: Mapping[str, Array]) -> None:
        for idx, layer in enumerate(self.layers):
            for name in (f"W{idx}", f"b{idx}"):
                if name not in state:
                    raise KeyError(f"Missing {name} in state dict")
            layer.load_state_dict({"weight": state[f"W{idx}"], "bias": state[f"b{idx}"]})

    def __repr__(self) -> str:
        return f"SimpleNetwork(dims={self.dims}, dtype={self.dtype})"


class ChainedNetwork:
    """Two networks evaluated one after the other: ``second(first(x))``."""

    def __init__(self, first: Network, second: Network) -> None:
        self.first = first
        self.second = second

    def evaluate(self, inputs: Array, activator: Activator) -> Array:
        return self.second.evaluate(self.first.evaluate(inputs, activator), activator)

    def evaluate_training(self, inputs: Array, activator: Activator) -> Tuple[Array, tuple]:
        middle, first_inputs = self.first.evaluate_training(inputs, activator)
        outputs, second_inputs = self.second.evaluate_training(middle, activator)
        return outputs, (first_inputs, second_inputs)

    def get_gradient(
        self,
        layer_inputs: tuple,
        output_loss_gradient: Array,
        activator: Activator,
    ) -> Tuple[tuple, Array]:
        second_gradient, middle_loss_gradient = self.second.get_gradient(
            layer_inputs[1], output_loss_gradient, activator
        )
        first_gradient, input_loss_gradient = self.first.get_gradient(
            layer_inputs[0], middle_loss_gradient, activator
        )
        return (first_gradient, second_gradient), input_loss_gradient

    def apply_nudge(self, nudge: tuple) -> None:
        self.first.apply_nudge(nudge[0])
        self.second.apply_nudge(nudge[1])

    def zero_gradient(self) -> tuple:
        return (self.first.zero_gradient(), self.second.zero_gradient())


def chain(*networks: Network) -> Network:
    """Compose ``networks`` left to right into nested :class:`ChainedNetwork`s."""

    if not networks:
        raise TopologyError("chain() needs at least one network")
    combined = networks[0]
    for network in networks[1:]:
        combined = ChainedNetwork(combined, network)
    return combined


__all__ = ["Network", "SimpleNetwork", "ChainedNetwork", "chain"]
