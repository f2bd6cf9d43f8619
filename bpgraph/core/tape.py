# bpgraph/core/tape.py
from __future__ import annotations

from typing import Any, List, Sequence, Union

from .errors import GraphClosedError
from .node import BPNode, BPPipe, FanOut, Internal


class Graph:
    """
    Node table of one differentiation call, in creation order.

    Ids are positions in `entries` and never change. Edges only ever point
    from an existing producer to a consumer that read its value, so the table
    is acyclic. `sources` holds one fan-out record per top-level input.
    """

    def __init__(self, inputs: Sequence[Any]):
        self.inputs = tuple(inputs)
        self.entries: List[Union[BPNode, BPPipe]] = []
        self.sources: List[FanOut] = [Internal() for _ in self.inputs]
        self.closed = False
        self.backward_started = False

    def __repr__(self):
        return f"Graph(inputs={len(self.inputs)}, entries={len(self.entries)})"

    def push(self, entry: Union[BPNode, BPPipe]) -> int:
        """Append a node or pipe and return its id."""
        self.check_open()
        self.entries.append(entry)
        return len(self.entries) - 1

    def check_open(self) -> None:
        if self.closed:
            raise GraphClosedError("the forward pass of this graph has already finished")

    def close(self) -> None:
        """End the forward pass; only the backward pass may touch the graph now."""
        self.closed = True

    def begin_backward(self) -> None:
        if self.backward_started:
            raise GraphClosedError("a graph supports a single backward pass")
        self.closed = True
        self.backward_started = True

    @property
    def nodes(self) -> List[BPNode]:
        return [e for e in self.entries if isinstance(e, BPNode)]

    @property
    def pipes(self) -> List[BPPipe]:
        return [e for e in self.entries if isinstance(e, BPPipe)]
