# bpgraph/core/node.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, List, Optional, Union

from .policy import Summer


@dataclass(frozen=True)
class Edge:
    """
    Back-reference from a consumer to one of its producers.

    Attributes
    ----------
    target : int
        Id of the consuming node or pipe in the graph table.
    index  : int
        Which of the consumer's input gradients belongs to the producer.
    """
    target: int
    index: int


@dataclass(frozen=True)
class ConstEdge:
    """Fixed gradient contribution, seeded when an inline result is closed off."""
    grad: Any


@dataclass
class Internal:
    """Fan-out of an output slot: every consumer edge recorded so far."""
    edges: List[Union[Edge, ConstEdge]] = field(default_factory=list)


@dataclass(frozen=True)
class Terminal:
    """Root of the backward pass; `grad` None stands for the unit gradient."""
    grad: Any = None


FanOut = Union[Internal, Terminal]


def merge_fan_out(old: FanOut, new: FanOut) -> FanOut:
    if isinstance(old, Internal) and isinstance(new, Internal):
        return Internal(old.edges + new.edges)
    return new


def _edge_targets(edges) -> Iterator[int]:
    for e in edges:
        if isinstance(e, Edge):
            yield e.target


@dataclass(eq=False)
class BPNode:
    """
    Materialized result of running one op once.

    Attributes
    ----------
    outputs    : List[FanOut]
        One fan-out record per output slot.
    results    : tuple
        Forward values, one per output slot; never recomputed.
    grad_func  : Callable[[list], tuple]
        Output gradients (None entries mean "unit gradient") to input gradients.
    summers    : List[Summer]
        Accumulation policy per output slot.
    op_tag     : str
        Debug tag.
    grad_cache : Optional[tuple]
        Input gradients, filled at most once by the backward pass.
    """
    outputs: List[FanOut]
    results: tuple
    grad_func: Callable[[list], tuple]
    summers: List[Summer]
    op_tag: str = "node"
    grad_cache: Optional[tuple] = None

    def dependencies(self) -> Iterator[int]:
        for fr in self.outputs:
            if isinstance(fr, Internal):
                yield from _edge_targets(fr.edges)

    def upstream(self, read: Callable[[Any], Any]) -> list:
        grads = []
        for summer, fr in zip(self.summers, self.outputs):
            if isinstance(fr, Terminal):
                grads.append(fr.grad)
            else:
                grads.append(summer.sum(read(e) for e in fr.edges))
        return grads

    def fan_out(self) -> int:
        return sum(len(fr.edges) for fr in self.outputs if isinstance(fr, Internal))


@dataclass(eq=False)
class BPPipe:
    """
    Single-output node materialized for one use site of an inline expression.

    It has exactly one consumer, so its upstream gradient is that consumer's
    contribution as is and no summer is involved.
    """
    output: Union[Edge, ConstEdge]
    results: tuple
    grad_func: Callable[[list], tuple]
    op_tag: str = "pipe"
    grad_cache: Optional[tuple] = None

    def dependencies(self) -> Iterator[int]:
        return _edge_targets([self.output])

    def upstream(self, read: Callable[[Any], Any]) -> list:
        return [read(self.output)]

    def fan_out(self) -> int:
        return 1
