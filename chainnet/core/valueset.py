"""Elementwise algebra over nested collections of scalars.

A *value set* is anything that ultimately stores scalars of a single dtype:
a numpy array, a tuple or list of value sets, or an object implementing the
:class:`ValueSet` protocol (layer and network gradients).  Writing optimiser
maths against these functions lets the same code run on a single matrix, one
layer's gradient or a whole chain of networks.

Operations apply ``f`` to every scalar and keep the shape.  ``f`` is first
tried on the whole backing array; when that raises or changes the shape it
is mapped one scalar at a time, so plain scalar functions such as
``math.sqrt`` or ``max`` work too.  Inspections visit one scalar at a
time in row-major order.  Both operands of a binary call must share a shape;
that is the caller's responsibility.
"""

from __future__ import annotations

from typing import Any, Callable, Protocol, Sequence, Tuple, TypeVar, runtime_checkable

import numpy as np

V = TypeVar("V")

UnaryFn = Callable[[Any], Any]
BinaryFn = Callable[[Any, Any], Any]


@runtime_checkable
class ValueSet(Protocol):
    """Protocol implemented by composite gradient containers."""

    def unary_operation(self, f: UnaryFn) -> "ValueSet":
        """Return a same-shaped copy with ``f`` applied to every leaf."""

    def binary_operation(self, other: "ValueSet", f: BinaryFn) -> "ValueSet":
        """Combine corresponding leaves of ``self`` and ``other`` with ``f``."""

    def unary_inspection(self, f: UnaryFn) -> None:
        """Call ``f`` on every scalar."""

    def binary_inspection(self, other: "ValueSet", f: BinaryFn) -> None:
        """Call ``f`` on every pair of corresponding scalars."""

    def all(self, value: float) -> "ValueSet":
        """Return a same-shaped instance with every scalar set to ``value``."""


def _whole_array(f: Callable[..., Any], values: np.ndarray, *operands: Any) -> np.ndarray | None:
    try:
        result = np.asarray(f(values, *operands))
    except (TypeError, ValueError):
        return None
    if result.shape != values.shape:
        return None
    return np.array(result, dtype=values.dtype)


def _map_array(f: UnaryFn, values: np.ndarray) -> np.ndarray:
    mapped = _whole_array(f, values)
    if mapped is None:
        mapped = np.vectorize(f, otypes=[values.dtype])(values)
    return mapped


def _zip_arrays(f: BinaryFn, values: np.ndarray, other: Any) -> np.ndarray:
    other = np.asarray(other)
    combined = _whole_array(f, values, other)
    if combined is None:
        combined = np.vectorize(f, otypes=[values.dtype])(values, other)
    return combined


def unary_operation(values: V, f: UnaryFn) -> V:
    if isinstance(values, np.ndarray):
        return _map_array(f, values)  # type: ignore[return-value]
    if isinstance(values, (tuple, list)):
        return type(values)(unary_operation(item, f) for item in values)
    return values.unary_operation(f)  # type: ignore[attr-defined]


def binary_operation(values: V, other: V, f: BinaryFn) -> V:
    if isinstance(values, np.ndarray):
        return _zip_arrays(f, values, other)  # type: ignore[return-value]
    if isinstance(values, (tuple, list)):
        return type(values)(
            binary_operation(a, b, f) for a, b in zip(values, other)  # type: ignore[arg-type]
        )
    return values.binary_operation(other, f)  # type: ignore[attr-defined]


def unary_inspection(values: Any, f: UnaryFn) -> None:
    if isinstance(values, np.ndarray):
        for x in values.flat:
            f(x)
    elif isinstance(values, (tuple, list)):
        for item in values:
            unary_inspection(item, f)
    else:
        values.unary_inspection(f)


def binary_inspection(values: Any, other: Any, f: BinaryFn) -> None:
    if isinstance(values, np.ndarray):
        for a, b in zip(values.flat, np.asarray(other).flat):
            f(a, b)
    elif isinstance(values, (tuple, list)):
        for a, b in zip(values, other):
            binary_inspection(a, b, f)
    else:
        values.binary_inspection(other, f)


def all(template: V, value: float) -> V:  # noqa: A001 - mirrors the protocol name
    """Return a value set shaped like ``template`` filled with ``value``."""

    if isinstance(template, np.ndarray):
        return np.full_like(template, value)
    if isinstance(template, (tuple, list)):
        return type(template)(all(item, value) for item in template)
    return template.all(value)  # type: ignore[attr-defined]


def zeros_like(template: V) -> V:
    return all(template, 0)


def sum_count(items: Sequence[V]) -> Tuple[V, int]:
    """Return the elementwise sum of ``items`` and how many there were."""

    if not items:
        raise ValueError("sum_count requires at least one value set")
    total = zeros_like(items[0])
    count = 0
    for item in items:
        total = binary_operation(total, item, lambda a, b: a + b)
        count += 1
    return total, count


def mean(items: Sequence[V]) -> V:
    """Return the elementwise mean of ``items``."""

    total, count = sum_count(items)
    return unary_operation(total, lambda x: x / count)


def leaf_count(values: Any) -> int:
    counter = [0]

    def _count(_: Any) -> None:
        counter[0] += 1

    unary_inspection(values, _count)
    return counter[0]


__all__ = [
    "ValueSet",
    "unary_operation",
    "binary_operation",
    "unary_inspection",
    "binary_inspection",
    "all",
    "zeros_like",
    "sum_count",
    "mean",
    "leaf_count",
]
