# bpgraph/tuples.py
"""
Fixed-arity numeric tuples.

`T2` and `T3` behave like numbers componentwise, so they work with the
numeric accumulation policy (`0.0 + T2(a, b)` broadcasts the scalar) and can
be split into parts with `t2_iso` / `t3_iso`:

    def f(bp):
        a, b = bp.parts_ref(t2_iso, bp.inp_ref(0))
        return bp.op_ref2(a, b, ops.mul)

    backprop(f, (T2(2.0, 3.0),)) -> (6.0, (T2(3.0, 2.0),))
"""
from __future__ import annotations

import operator
from dataclasses import dataclass, fields
from typing import Any

from .core.iso import Iso


class _NumTuple:
    """Componentwise arithmetic; plain scalars broadcast to every component."""

    def as_tuple(self) -> tuple:
        return tuple(getattr(self, f.name) for f in fields(self))

    @classmethod
    def from_tuple(cls, xs):
        return cls(*xs)

    def _zip(self, other, f):
        if isinstance(other, _NumTuple):
            if type(other) is not type(self):
                return NotImplemented
            return type(self)(*(f(a, b) for a, b in zip(self.as_tuple(), other.as_tuple())))
        return type(self)(*(f(a, other) for a in self.as_tuple()))

    def _rzip(self, other, f):
        return type(self)(*(f(other, a) for a in self.as_tuple()))

    def __add__(self, other):
        return self._zip(other, operator.add)

    def __radd__(self, other):
        return self._rzip(other, operator.add)

    def __sub__(self, other):
        return self._zip(other, operator.sub)

    def __rsub__(self, other):
        return self._rzip(other, operator.sub)

    def __mul__(self, other):
        return self._zip(other, operator.mul)

    def __rmul__(self, other):
        return self._rzip(other, operator.mul)

    def __truediv__(self, other):
        return self._zip(other, operator.truediv)

    def __rtruediv__(self, other):
        return self._rzip(other, operator.truediv)

    def __neg__(self):
        return type(self)(*(-a for a in self.as_tuple()))

    def one_like(self):
        return type(self)(*(1.0 for _ in fields(self)))

    def zero_like(self):
        return type(self)(*(0.0 for _ in fields(self)))


@dataclass(frozen=True)
class T2(_NumTuple):
    a: Any
    b: Any


@dataclass(frozen=True)
class T3(_NumTuple):
    a: Any
    b: Any
    c: Any


t2_iso = Iso(T2.as_tuple, T2.from_tuple)
t3_iso = Iso(T3.as_tuple, T3.from_tuple)
