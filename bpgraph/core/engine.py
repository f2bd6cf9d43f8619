# bpgraph/core/engine.py
"""
Backward traversal and the drivers that run a whole differentiation call.

The forward pass (user code talking to a `BP` builder) leaves every value
with a list of the consumers that read it. The backward pass starts from the
declared output, then pulls gradients from consumers back onto producers:

    pull(node) = node.grad_func([sum of pull(consumer)[slot] over its edges])

Each pull is memoized on the node, so a node's gradient function runs at most
once per backward pass however many consumers it has, and every edge is
followed once.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Sequence, Tuple

from ..config import EngineConfig
from .builder import BP
from .errors import ArityMismatchError
from .graph_utils import graph_summary
from .node import ConstEdge, Internal, Terminal, merge_fan_out
from .policy import Summer, Unity
from .tape import Graph
from .var import ConstRef, InputRef, NodeRef, OpRef, as_ref

logger = logging.getLogger(__name__)


class BackwardPass:
    """
    One backward traversal over the graph built by `bp`.

    Attributes
    ----------
    calls : int
        Number of gradient functions invoked so far (one per pulled node or pipe).
    """

    def __init__(self, bp: BP):
        self.bp = bp
        self.graph = bp.graph
        self.calls = 0

    # ------------------------------ seeding ------------------------------ #
    def close_off(self, is_terminal: bool, grad: Any, ref) -> None:
        """
        Seed the gradient `grad` at `ref`.

        A terminal seed turns the referenced slot into a root of the backward
        pass (`grad` None meaning the unit gradient). An inline expression is
        not materialized: its op's gradient is taken right here and each
        argument receives its share as a fixed contribution.
        """
        if isinstance(ref, NodeRef):
            self.bp.check_session(ref)
            outputs = self.graph.entries[ref.node_id].outputs
            outputs[ref.index] = merge_fan_out(outputs[ref.index], _seed(is_terminal, grad))
        elif isinstance(ref, InputRef):
            self.bp.check_session(ref)
            sources = self.graph.sources
            sources[ref.index] = merge_fan_out(sources[ref.index], _seed(is_terminal, grad))
        elif isinstance(ref, ConstRef):
            return
        elif isinstance(ref, OpRef):
            xs = [self.bp.resolve(r) for r in ref.args]
            gs = ref.op.grad_with(xs, grad)
            for g, r in zip(gs, ref.args):
                self.close_off(False, g, r)
        else:
            raise TypeError(f"not a reference: {ref!r}")

    # ------------------------------ pulling ------------------------------ #
    def pull(self, entry_id: int) -> tuple:
        """
        Input gradients of node or pipe `entry_id`, computed at most once.

        Consumers are pulled before the entry that needs them; an explicit
        stack stands in for recursion so deep chains are fine.
        """
        entries = self.graph.entries
        stack = [entry_id]
        while stack:
            idx = stack[-1]
            entry = entries[idx]
            if entry.grad_cache is not None:
                stack.pop()
                continue
            waiting = [t for t in entry.dependencies() if entries[t].grad_cache is None]
            if waiting:
                stack.extend(waiting)
                continue
            entry.grad_cache = tuple(entry.grad_func(entry.upstream(self.read)))
            self.calls += 1
            stack.pop()
        return entries[entry_id].grad_cache

    def read(self, edge) -> Any:
        """Gradient contribution carried by one consumer edge."""
        if isinstance(edge, ConstEdge):
            return edge.grad
        return self.pull(edge.target)[edge.index]

    def collect(self, summers: Sequence[Summer], unities: Sequence[Unity]) -> tuple:
        """Gradients of the top-level inputs, aligned with the input tuple."""
        grads = []
        for x, fr, summer, unity in zip(self.graph.inputs, self.graph.sources, summers, unities):
            if isinstance(fr, Terminal):
                # the input itself was the declared output
                grads.append(unity.one(x) if fr.grad is None else fr.grad)
            else:
                grads.append(summer.sum(self.read(e) for e in fr.edges))
        return tuple(grads)


def _seed(is_terminal: bool, grad: Any):
    if is_terminal:
        return Terminal(grad)
    return Internal([] if grad is None else [ConstEdge(grad)])


# ------------------------------- drivers ------------------------------- #
def backprop_with(fn: Callable[[BP], Any], inputs: Sequence[Any],
                  summers: Sequence[Summer], unities: Sequence[Unity],
                  default_summer: Optional[Summer] = None,
                  default_unity: Optional[Unity] = None,
                  config: Optional[EngineConfig] = None) -> Tuple[Any, Callable]:
    """
    Run the forward pass of `fn` over `inputs` in a fresh graph.

    Returns
    -------
    (result, grad_fn) where `grad_fn(grad_out=None)` runs this graph's
    backward pass, once, and returns the gradients of `inputs`.
    """
    inputs = tuple(inputs)
    summers, unities = list(summers), list(unities)
    for policies in (summers, unities):
        if len(policies) != len(inputs):
            raise ArityMismatchError("backprop", len(inputs), len(policies), what="policies")

    graph = Graph(inputs)
    bp = BP(graph, default_summer, default_unity, config)
    ref = as_ref(fn(bp))
    result = bp.resolve(ref)
    graph.close()
    logger.debug("forward pass: %d input(s), %d node(s)/pipe(s)", len(inputs), len(graph.entries))
    if bp.config.log_graph_summary:
        graph_summary(graph)

    def grad_fn(grad_out: Any = None) -> tuple:
        graph.begin_backward()
        backward = BackwardPass(bp)
        backward.close_off(True, grad_out, ref)
        grads = backward.collect(summers, unities)
        logger.debug("backward pass: %d gradient function call(s)", backward.calls)
        return grads

    return result, grad_fn


def backprop_explicit(fn: Callable[[BP], Any], inputs: Sequence[Any],
                      summers: Sequence[Summer], unities: Sequence[Unity],
                      grad_out: Any = None,
                      default_summer: Optional[Summer] = None,
                      default_unity: Optional[Unity] = None,
                      config: Optional[EngineConfig] = None) -> Tuple[Any, tuple]:
    """Result of `fn` and the gradient of every input, with explicit policies."""
    result, grad_fn = backprop_with(fn, inputs, summers, unities,
                                    default_summer, default_unity, config)
    return result, grad_fn(grad_out)


def eval_bp_explicit(fn, inputs, summers, unities, default_summer=None,
                     default_unity=None, config=None) -> Any:
    """Forward pass only."""
    return backprop_with(fn, inputs, summers, unities,
                         default_summer, default_unity, config)[0]


def grad_bp_explicit(fn, inputs, summers, unities, grad_out=None, default_summer=None,
                     default_unity=None, config=None) -> tuple:
    return backprop_explicit(fn, inputs, summers, unities, grad_out,
                             default_summer, default_unity, config)[1]
