"""Training loops, losses and optimisers."""

from .losses import REGISTRY, absolute_error, squared_error
from .optimizers import SGD, Adam, build_optimizer
from .trainer import Trainer, get_loss, train

__all__ = [
    "REGISTRY",
    "absolute_error",
    "squared_error",
    "Adam",
    "SGD",
    "build_optimizer",
    "Trainer",
    "get_loss",
    "train",
]
