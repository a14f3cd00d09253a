"""Registry of small in-memory datasets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, MutableMapping

import numpy as np

from ..core.types import Batch


@dataclass(frozen=True)
class DatasetSpec:
    """A dataset registered in the system."""

    name: str
    train: Batch
    val: Batch | None
    provenance: Dict[str, Any]

    @property
    def d_in(self) -> int:
        return int(self.train.inputs.shape[1])

    @property
    def d_out(self) -> int:
        return int(self.train.targets.shape[1])

    def split(self, name: str) -> Batch:
        if name == "train":
            return self.train
        if name == "val" and self.val is not None:
            return self.val
        raise ValueError(f"Unsupported split: {name}")


DatasetFactory = Callable[..., DatasetSpec]

_REGISTRY: MutableMapping[str, DatasetFactory] = {}


def register_dataset(name: str, factory: DatasetFactory | None = None):
    """Register ``factory`` under ``name``; usable as a decorator."""

    def _register(fn: DatasetFactory) -> DatasetFactory:
        _REGISTRY[name] = fn
        return fn

    if factory is not None:
        return _register(factory)
    return _register


def get(name: str, **options: Any) -> DatasetSpec:
    try:
        factory = _REGISTRY[name]
    except KeyError as exc:
        available = ", ".join(names())
        raise KeyError(f"Unknown dataset {name!r}. Available datasets: {available}") from exc
    return factory(**options)


def names() -> list[str]:
    return sorted(_REGISTRY)


_GATE_INPUTS = np.array([[0, 0], [1, 0], [0, 1], [1, 1]], dtype=np.float64)

_GATES = {
    "xor": [0, 1, 1, 0],
    "and": [0, 0, 0, 1],
    "or": [0, 1, 1, 1],
}


def _gate_factory(gate: str) -> DatasetFactory:
    def _factory(dtype: str = "float32", **_: object) -> DatasetSpec:
        inputs = _GATE_INPUTS.astype(dtype)
        targets = np.array(_GATES[gate], dtype=dtype).reshape(-1, 1)
        return DatasetSpec(
            name=gate,
            train=Batch(inputs=inputs, targets=targets),
            val=None,
            provenance={"type": "logic_gate", "gate": gate, "dtype": dtype},
        )

    return _factory


for _gate in _GATES:
    register_dataset(_gate, _gate_factory(_gate))


@register_dataset("sine")
def _sine(
    freq: float = 1.0,
    n_points: int = 32,
    seed: int = 0,
    noise: float = 0.0,
    val_split: float = 0.25,
    dtype: str = "float32",
    **_: object,
) -> DatasetSpec:
    """``y = sin(freq * pi * x)`` on ``[-1, 1]`` with a deterministic split."""

    rng = np.random.default_rng(seed)
    x = np.linspace(-1.0, 1.0, n_points).reshape(-1, 1)
    y = np.sin(freq * np.pi * x) + noise * rng.standard_normal(size=x.shape)
    order = rng.permutation(n_points)
    n_val = int(round(n_points * val_split))
    val_idx, train_idx = np.sort(order[:n_val]), np.sort(order[n_val:])
    val = None
    if n_val:
        val = Batch(inputs=x[val_idx].astype(dtype), targets=y[val_idx].astype(dtype))
    return DatasetSpec(
        name="sine",
        train=Batch(inputs=x[train_idx].astype(dtype), targets=y[train_idx].astype(dtype)),
        val=val,
        provenance={
            "type": "synthetic",
            "freq": freq,
            "n_points": n_points,
            "seed": seed,
            "noise": noise,
            "val_split": val_split,
            "dtype": dtype,
        },
    )


__all__ = ["DatasetSpec", "register_dataset", "get", "names"]
