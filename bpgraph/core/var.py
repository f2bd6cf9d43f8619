# bpgraph/core/var.py
"""
References: handles a computation holds to values of the graph being built.

    InputRef  : slot of the top-level argument tuple of the call.
    ConstRef  : embedded value with no gradient path.
    NodeRef   : output slot of a node already materialized in the graph.
    OpRef     : inline application of an op to references; it becomes a node
                (or a pipe) only when something consumes it.

Input and node handles carry the `Graph` of the call that created them as a
session marker; builders reject handles from other sessions.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence, Tuple

from .errors import ArityMismatchError


class _RefArith:
    """Operator overloading: builds inline expressions over the numeric ops."""

    # numpy defers to the reflected operators instead of broadcasting over refs
    __array_ufunc__ = None

    def __add__(self, other):
        from ..ops.arithmetic import add
        return lift_r2(add, self, other)

    def __radd__(self, other):
        from ..ops.arithmetic import add
        return lift_r2(add, other, self)

    def __sub__(self, other):
        from ..ops.arithmetic import sub
        return lift_r2(sub, self, other)

    def __rsub__(self, other):
        from ..ops.arithmetic import sub
        return lift_r2(sub, other, self)

    def __mul__(self, other):
        from ..ops.arithmetic import mul
        return lift_r2(mul, self, other)

    def __rmul__(self, other):
        from ..ops.arithmetic import mul
        return lift_r2(mul, other, self)

    def __truediv__(self, other):
        from ..ops.arithmetic import div
        return lift_r2(div, self, other)

    def __rtruediv__(self, other):
        from ..ops.arithmetic import div
        return lift_r2(div, other, self)

    def __pow__(self, other):
        from ..ops.arithmetic import pow
        return lift_r2(pow, self, other)

    def __rpow__(self, other):
        from ..ops.arithmetic import pow
        return lift_r2(pow, other, self)

    def __neg__(self):
        from ..ops.arithmetic import neg
        return lift_r1(neg, self)


@dataclass(frozen=True, eq=False)
class InputRef(_RefArith):
    session: Any
    index: int

    def __repr__(self):
        return f"InputRef({self.index})"


@dataclass(frozen=True, eq=False)
class ConstRef(_RefArith):
    value: Any

    def __repr__(self):
        return f"ConstRef({self.value!r})"


@dataclass(frozen=True, eq=False)
class NodeRef(_RefArith):
    session: Any
    node_id: int
    index: int = 0

    def __repr__(self):
        return f"NodeRef({self.node_id}, {self.index})"


@dataclass(frozen=True, eq=False)
class OpRef(_RefArith):
    op: Any
    args: Tuple[Any, ...]

    def __repr__(self):
        return f"OpRef({self.op.tag}, {list(self.args)!r})"


REF_TYPES = (InputRef, ConstRef, NodeRef, OpRef)


def const_ref(x: Any) -> ConstRef:
    return ConstRef(x)


def as_ref(x: Any):
    """References pass through; anything else becomes a constant."""
    return x if isinstance(x, REF_TYPES) else ConstRef(x)


def lift_r(op, refs: Sequence[Any]) -> OpRef:
    """Inline application of `op`; nothing is evaluated or allocated yet."""
    refs = tuple(as_ref(r) for r in refs)
    if len(refs) != op.arity:
        raise ArityMismatchError(op.tag, op.arity, len(refs))
    return OpRef(op, refs)


def lift_r1(op, x) -> OpRef:
    return lift_r(op, (x,))


def lift_r2(op, x, y) -> OpRef:
    return lift_r(op, (x, y))


def lift_r3(op, x, y, z) -> OpRef:
    return lift_r(op, (x, y, z))
