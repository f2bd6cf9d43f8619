# bpgraph/core/builder.py
"""
Graph builder.

A `BP` object is the exclusively-owned context of one forward pass. User code
receives it, asks it for input references, and applies ops through it:

    def f(bp):
        x, y = bp.inp_refs()
        z = bp.op_ref2(x, y, ops.mul)
        return bp.op_ref1(z, ops.exp)

Applying an op with `op_ref` runs the op immediately, stores its value and
gradient function in a new node, and records an edge on every producer the
node reads from. Inline expressions (`lift_r`, or arithmetic on references)
are only evaluated; they are wired into the graph when they are consumed. An
inline application of an op that declares a summer becomes one shared node
the first time it is consumed; any other inline expression gets a fresh
single-consumer pipe at every use site.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Sequence

from ..config import EngineConfig, get_config
from .errors import ArityMismatchError, BackpropError, InputIndexError, SessionMismatchError
from .node import BPNode, BPPipe, Edge, Internal
from .policy import Summer, Unity
from .tape import Graph
from .var import ConstRef, InputRef, NodeRef, OpRef, as_ref

logger = logging.getLogger(__name__)


class BP:
    """
    Attributes
    ----------
    graph          : Graph
        Node table and input fan-out records of this call.
    default_summer : Optional[Summer]
        Policy used by `op_ref` when neither the call nor the op gives one,
        and by the splitting drivers when none is given.
    default_unity  : Optional[Unity]
        Unit gradient used by the splitting drivers when none is given.
    config         : EngineConfig
        Snapshot of the active configuration.
    """

    def __init__(self, graph: Graph, default_summer: Optional[Summer] = None,
                 default_unity: Optional[Unity] = None,
                 config: Optional[EngineConfig] = None):
        self.graph = graph
        self.default_summer = default_summer
        self.default_unity = default_unity
        self.config = config or get_config()
        self._shared = {}  # OpRef -> NodeRef of materialized inline expressions

    # ------------------------------ refs ------------------------------ #
    def inp_ref(self, index: int) -> InputRef:
        if not 0 <= index < len(self.graph.inputs):
            raise InputIndexError(index, len(self.graph.inputs))
        return InputRef(self.graph, index)

    def inp_refs(self) -> tuple:
        return tuple(InputRef(self.graph, i) for i in range(len(self.graph.inputs)))

    @staticmethod
    def const_ref(x: Any) -> ConstRef:
        return ConstRef(x)

    def check_session(self, ref) -> None:
        if ref.session is not self.graph:
            raise SessionMismatchError(ref)

    def summer(self, summer: Optional[Summer] = None) -> Summer:
        summer = summer or self.default_summer
        if summer is None:
            raise BackpropError("no accumulation policy given and the builder has no default")
        return summer

    def unity(self, unity: Optional[Unity] = None) -> Unity:
        unity = unity or self.default_unity
        if unity is None:
            raise BackpropError("no unit gradient given and the builder has no default")
        return unity

    # --------------------------- resolution --------------------------- #
    def resolve(self, ref) -> Any:
        """Forward value of a reference; nodes are read, never re-run."""
        if isinstance(ref, NodeRef):
            self.check_session(ref)
            return self.graph.entries[ref.node_id].results[ref.index]
        if isinstance(ref, InputRef):
            self.check_session(ref)
            return self.graph.inputs[ref.index]
        if isinstance(ref, ConstRef):
            return ref.value
        if isinstance(ref, OpRef):
            shared = self._shared.get(ref)
            if shared is not None:
                return self.resolve(shared)
            return ref.op.apply([self.resolve(r) for r in ref.args])
        raise TypeError(f"not a reference: {ref!r}")

    # ----------------------------- sharing ----------------------------- #
    def can_share(self, op) -> bool:
        """Inline applications of `op` are shared when enabled and `op` has a summer."""
        return self.config.share_inline_exprs and op.summer is not None

    def materialize(self, ref):
        """
        Shared node of a shareable inline expression, created on first use.

        Every other reference is returned unchanged.
        """
        if not isinstance(ref, OpRef) or not self.can_share(ref.op):
            return ref
        shared = self._shared.get(ref)
        if shared is None:
            shared = self._shared[ref] = self.op_ref(ref.args, ref.op)
        return shared

    # -------------------------- registration -------------------------- #
    def register(self, edge: Edge, ref) -> None:
        """Record that the consumer named by `edge` reads `ref`."""
        self.graph.check_open()
        if isinstance(ref, NodeRef):
            self.check_session(ref)
            fr = self.graph.entries[ref.node_id].outputs[ref.index]
            if isinstance(fr, Internal):
                fr.edges.append(edge)
        elif isinstance(ref, InputRef):
            self.check_session(ref)
            fr = self.graph.sources[ref.index]
            if isinstance(fr, Internal):
                fr.edges.append(edge)
        elif isinstance(ref, ConstRef):
            return
        elif isinstance(ref, OpRef):
            if self.can_share(ref.op):
                self.register(edge, self.materialize(ref))
                return
            self._register_pipe(edge, ref)
        else:
            raise TypeError(f"not a reference: {ref!r}")

    def _register_pipe(self, edge: Edge, ref: OpRef) -> None:
        # A fresh pipe per use site of the same inline expression.
        xs = [self.resolve(r) for r in ref.args]
        res, gf = ref.op.apply_with_grad(xs)
        pipe = BPPipe(output=edge, results=(res,),
                      grad_func=lambda gs: gf(gs[0]), op_tag=ref.op.tag)
        pipe_id = self.graph.push(pipe)
        logger.debug("pipe %d for inline %s consumed by %s", pipe_id, ref.op.tag, edge)
        for i, r in enumerate(ref.args):
            self.register(Edge(pipe_id, i), r)

    # ----------------------------- nodes ----------------------------- #
    def new_node(self, results: Sequence[Any], grad_func: Callable[[list], tuple],
                 summers: Sequence[Summer], refs: Sequence[Any], op_tag: str = "node") -> int:
        """Push a node with one output slot per result and register its inputs."""
        node = BPNode(outputs=[Internal() for _ in results], results=tuple(results),
                      grad_func=grad_func, summers=list(summers), op_tag=op_tag)
        node_id = self.graph.push(node)
        for i, r in enumerate(refs):
            self.register(Edge(node_id, i), r)
        return node_id

    def op_ref(self, refs: Sequence[Any], op, summer: Optional[Summer] = None) -> NodeRef:
        """Apply `op` to `refs` now and return a reference to the new node."""
        refs = tuple(as_ref(r) for r in refs)
        if len(refs) != op.arity:
            raise ArityMismatchError(op.tag, op.arity, len(refs))
        summer = self.summer(summer or op.summer)
        self.graph.check_open()
        refs = tuple(self.materialize(r) for r in refs)
        res, gf = op.apply_with_grad([self.resolve(r) for r in refs])
        node_id = self.new_node((res,), lambda gs: gf(gs[0]), (summer,), refs, op.tag)
        return NodeRef(self.graph, node_id, 0)

    def op_ref1(self, x, op, summer: Optional[Summer] = None) -> NodeRef:
        return self.op_ref((x,), op, summer)

    def op_ref2(self, x, y, op, summer: Optional[Summer] = None) -> NodeRef:
        return self.op_ref((x, y), op, summer)

    def op_ref3(self, x, y, z, op, summer: Optional[Summer] = None) -> NodeRef:
        return self.op_ref((x, y, z), op, summer)

    def bind_ref(self, ref, summer: Optional[Summer] = None):
        """Materialize an inline expression into a node; other refs pass through."""
        if not isinstance(ref, OpRef):
            return ref
        shared = self._shared.get(ref)
        if shared is not None:
            return shared
        node = self.op_ref(ref.args, ref.op, summer)
        if self.can_share(ref.op):
            self._shared[ref] = node
        return node

    # -------------------------- composition -------------------------- #
    def parts_ref(self, iso, ref, summers=None, unities=None):
        from .compose import parts_ref
        return parts_ref(self, iso, ref, summers, unities)

    def split_refs(self, ref, summers=None, unities=None):
        from .compose import split_refs
        return split_refs(self, ref, summers, unities)

    def with_parts(self, iso, ref, fn, summers=None, unities=None):
        from .compose import with_parts
        return with_parts(self, iso, ref, fn, summers, unities)

    def choices_ref(self, iso, ref, summers=None, unities=None):
        from .compose import choices_ref
        return choices_ref(self, iso, ref, summers, unities)

    def choice_ref(self, iso, ref, tag, summer=None, unity=None):
        from .compose import choice_ref
        return choice_ref(self, iso, ref, tag, summer, unity)

    def sop_ref(self, iso, ref, summers=None, unities=None):
        from .compose import sop_ref
        return sop_ref(self, iso, ref, summers, unities)

    def internally(self, iso, ref, fn, summers=None, unities=None, summer=None):
        from .compose import internally
        return internally(self, iso, ref, fn, summers, unities, summer)

    def plug_bp(self, refs, fn, summers=None, unities=None, summer=None):
        from .compose import plug_bp
        return plug_bp(self, refs, fn, summers, unities, summer)

    def plug_with(self, refs, fn, summers=None, unities=None, summer=None):
        from .compose import plug_with
        return plug_with(self, refs, fn, summers, unities, summer)


def with_inps(fn: Callable) -> Callable[[BP], Any]:
    """Adapt `fn(bp, *input_refs)` to the `fn(bp)` shape the drivers call."""
    def run(bp: BP):
        return fn(bp, *bp.inp_refs())
    return run
