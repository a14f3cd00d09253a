"""chainnet public API."""

from .core import activations, operations, types, valueset  # noqa: F401
from .core.activations import Elu, Linear, Relu, Sigmoid
from .core.layer import Layer
from .core.network import ChainedNetwork, SimpleNetwork, chain
from .training.losses import absolute_error, squared_error
from .training.optimizers import SGD, Adam
from .training.pipelines import load_preset, presets, run_pipeline
from .training.trainer import Trainer, get_loss, train

__all__ = [
    "activations",
    "operations",
    "types",
    "valueset",
    "Sigmoid",
    "Relu",
    "Elu",
    "Linear",
    "Layer",
    "SimpleNetwork",
    "ChainedNetwork",
    "chain",
    "squared_error",
    "absolute_error",
    "Adam",
    "SGD",
    "Trainer",
    "train",
    "get_loss",
    "load_preset",
    "presets",
    "run_pipeline",
]
