"""Dataset registry for chainnet."""

from . import registry
from .registry import DatasetSpec, get, names, register_dataset

__all__ = ["registry", "DatasetSpec", "get", "names", "register_dataset"]
