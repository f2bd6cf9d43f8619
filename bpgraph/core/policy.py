# bpgraph/core/policy.py
"""
Accumulation policies.

A `Summer` combines the gradient contributions that several consumers send
back to one value; a `Unity` supplies the implicit unit gradient of a value
that is the final output of a differentiation call (dy/dy = 1).
"""
from __future__ import annotations

import operator
from dataclasses import dataclass
from functools import reduce
from typing import Any, Callable, Iterable, List, Sequence

import numpy as np


@dataclass(frozen=True)
class Summer:
    """
    Zero element plus an addition; must form a commutative monoid.

    Attributes
    ----------
    zero : Callable[[], Any]
        Returns the additive identity.
    add  : Callable[[Any, Any], Any]
        Combines two contributions.
    """
    zero: Callable[[], Any]
    add: Callable[[Any, Any], Any]

    def sum(self, values: Iterable[Any]) -> Any:
        return reduce(self.add, values, self.zero())


@dataclass(frozen=True)
class Unity:
    """Unit gradient for a value, shaped like that value."""
    one: Callable[[Any], Any]


def _num_one(value: Any) -> Any:
    if isinstance(value, np.ndarray):
        return np.ones_like(value, dtype=float)
    one_like = getattr(value, "one_like", None)
    if one_like is not None:
        return one_like()
    return 1.0


NUM_SUMMER = Summer(zero=lambda: 0.0, add=operator.add)
NUM_UNITY = Unity(one=_num_one)


def summers(n: int) -> List[Summer]:
    return [NUM_SUMMER] * n


def unities(n: int) -> List[Unity]:
    return [NUM_UNITY] * n


def tuple_summer(parts: Sequence[Summer]) -> Summer:
    """Componentwise policy for plain tuples, one summer per component."""
    parts = tuple(parts)
    return Summer(
        zero=lambda: tuple(s.zero() for s in parts),
        add=lambda a, b: tuple(s.add(x, y) for s, x, y in zip(parts, a, b)),
    )


def tuple_unity(parts: Sequence[Unity]) -> Unity:
    parts = tuple(parts)
    return Unity(one=lambda value: tuple(u.one(x) for u, x in zip(parts, value)))
