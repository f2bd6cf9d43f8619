# bpgraph/core/iso.py
"""
Bidirectional mappings between a value and the pieces it is split into.

`view` takes a value apart; `review` rebuilds a value of the same type from
pieces. Splitting drivers use `view` on forward values and `review` on
gradients, so the two must be inverse to each other.

Shapes expected by the drivers:
    parts_ref / internally : view(v) -> tuple of parts
    choices_ref            : view(v) -> (tag, x)
    sop_ref                : view(v) -> (tag, tuple of parts)
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable


@dataclass(frozen=True)
class Iso:
    view: Callable[[Any], Any]
    review: Callable[[Any], Any]

    def inverse(self) -> "Iso":
        return Iso(self.review, self.view)

    def compose(self, inner: "Iso") -> "Iso":
        """`self` first, then `inner` on the result of `self.view`."""
        return Iso(lambda v: inner.view(self.view(v)),
                   lambda p: self.review(inner.review(p)))


identity_iso = Iso(lambda v: v, lambda v: v)
tuple_iso = Iso(tuple, tuple)
