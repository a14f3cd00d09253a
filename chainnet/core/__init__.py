"""Core numerical primitives for chainnet."""

from . import activations, layer, network, operations, types, valueset

__all__ = ["activations", "layer", "network", "operations", "types", "valueset"]
