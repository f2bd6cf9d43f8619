# bpgraph/core/compose.py
"""
Drivers that glue a value's pieces, or a whole nested graph, into the outer
graph as one node.

Splitting (`parts_ref`, `split_refs`, `choices_ref`, `sop_ref`) gives each
piece of an aggregate value its own output slot, so every piece collects its
own consumers; the node's gradient rebuilds an aggregate gradient from the
per-piece ones with `iso.review`.

Nesting (`internally`, `plug_bp`) runs an independent differentiation call
over some values and wires its result in as a single node whose gradient
function runs the nested backward pass.
"""
from __future__ import annotations

from typing import Any, Callable, Optional, Sequence

from .builder import BP, with_inps
from .engine import backprop_with
from .errors import MissingChoiceError
from .iso import Iso, tuple_iso
from .policy import Summer, Unity
from .var import NodeRef, as_ref


def _policies(bp: BP, summers, unities, n: int):
    summers = [bp.summer()] * n if summers is None else list(summers)
    unities = [bp.unity()] * n if unities is None else list(unities)
    return summers, unities


def _parts_node(bp: BP, ref, parts: tuple, summers, unities,
                rebuild: Callable[[tuple], Any], op_tag: str) -> tuple:
    def grad_func(gs):
        full = tuple(u.one(p) if g is None else g for g, u, p in zip(gs, unities, parts))
        return (rebuild(full),)

    node_id = bp.new_node(parts, grad_func, summers, (ref,), op_tag)
    return tuple(NodeRef(bp.graph, node_id, i) for i in range(len(parts)))


# ------------------------------- products ------------------------------- #
def parts_ref(bp: BP, iso: Iso, ref, summers: Optional[Sequence[Summer]] = None,
              unities: Optional[Sequence[Unity]] = None) -> tuple:
    """Split the value of `ref` into `iso.view(value)` and return one ref per part."""
    ref = bp.materialize(as_ref(ref))
    parts = tuple(iso.view(bp.resolve(ref)))
    summers, unities = _policies(bp, summers, unities, len(parts))
    return _parts_node(bp, ref, parts, summers, unities, iso.review, "parts")


def split_refs(bp: BP, ref, summers=None, unities=None) -> tuple:
    """`parts_ref` for values that already are tuples."""
    return parts_ref(bp, tuple_iso, ref, summers, unities)


def with_parts(bp: BP, iso: Iso, ref, fn: Callable, summers=None, unities=None):
    return fn(*parts_ref(bp, iso, ref, summers, unities))


# --------------------------------- sums --------------------------------- #
def _branch_node(bp: BP, iso: Iso, ref, tag, x, summer: Summer, unity: Unity) -> NodeRef:
    def grad_func(gs):
        g = unity.one(x) if gs[0] is None else gs[0]
        return (iso.review((tag, g)),)

    node_id = bp.new_node((x,), grad_func, (summer,), (ref,), "choice")
    return NodeRef(bp.graph, node_id, 0)


def choices_ref(bp: BP, iso: Iso, ref, summers=None, unities=None) -> tuple:
    """
    Track the active alternative of a sum-like value.

    `iso.view(value)` must return `(tag, x)`. Only the active branch gets a
    node; `summers` and `unities`, when given, are indexed by tag.

    Returns
    -------
    (tag, ref to x)
    """
    ref = bp.materialize(as_ref(ref))
    tag, x = iso.view(bp.resolve(ref))
    summer = bp.summer(None if summers is None else summers[tag])
    unity = bp.unity(None if unities is None else unities[tag])
    return tag, _branch_node(bp, iso, ref, tag, x, summer, unity)


def choice_ref(bp: BP, iso: Iso, ref, tag, summer: Optional[Summer] = None,
               unity: Optional[Unity] = None) -> NodeRef:
    """Partial extraction of alternative `tag`; raises `MissingChoiceError` otherwise."""
    ref = bp.materialize(as_ref(ref))
    actual, x = iso.view(bp.resolve(ref))
    if actual != tag:
        raise MissingChoiceError(tag, actual)
    return _branch_node(bp, iso, ref, tag, x, bp.summer(summer), bp.unity(unity))


def sop_ref(bp: BP, iso: Iso, ref, summers=None, unities=None) -> tuple:
    """
    Sum of products: `iso.view(value)` returns `(tag, parts)`.

    `summers` and `unities`, when given, are indexed by tag and hold one
    policy per part of that alternative.

    Returns
    -------
    (tag, tuple of refs to the parts)
    """
    ref = bp.materialize(as_ref(ref))
    tag, parts = iso.view(bp.resolve(ref))
    parts = tuple(parts)
    branch_summers, branch_unities = _policies(
        bp,
        None if summers is None else summers[tag],
        None if unities is None else unities[tag],
        len(parts),
    )
    refs = _parts_node(bp, ref, parts, branch_summers, branch_unities,
                       lambda gs: iso.review((tag, gs)), "sop")
    return tag, refs


# -------------------------------- nesting -------------------------------- #
def internally(bp: BP, iso: Iso, ref, fn: Callable[[BP], Any], summers=None,
               unities=None, summer: Optional[Summer] = None) -> NodeRef:
    """
    Run `fn` in a nested graph whose inputs are `iso.view(value of ref)`.

    The nested result becomes one node of the outer graph; its gradient is
    the nested input gradients rebuilt with `iso.review`.
    """
    ref = bp.materialize(as_ref(ref))
    xs = tuple(iso.view(bp.resolve(ref)))
    summers, unities = _policies(bp, summers, unities, len(xs))
    res, inner_grad = backprop_with(fn, xs, summers, unities,
                                    bp.default_summer, bp.default_unity, bp.config)
    node_id = bp.new_node((res,), lambda gs: (iso.review(inner_grad(gs[0])),),
                          (bp.summer(summer),), (ref,), "internally")
    return NodeRef(bp.graph, node_id, 0)


def plug_bp(bp: BP, refs: Sequence[Any], fn: Callable[[BP], Any], summers=None,
            unities=None, summer: Optional[Summer] = None) -> NodeRef:
    """Run `fn` in a nested graph over the values of `refs` and plug its result in."""
    refs = tuple(bp.materialize(as_ref(r)) for r in refs)
    env = tuple(bp.resolve(r) for r in refs)
    summers, unities = _policies(bp, summers, unities, len(env))
    res, inner_grad = backprop_with(fn, env, summers, unities,
                                    bp.default_summer, bp.default_unity, bp.config)
    node_id = bp.new_node((res,), lambda gs: inner_grad(gs[0]),
                          (bp.summer(summer),), refs, "plug")
    return NodeRef(bp.graph, node_id, 0)


def plug_with(bp: BP, refs: Sequence[Any], fn: Callable, summers=None,
              unities=None, summer: Optional[Summer] = None) -> NodeRef:
    """`plug_bp` where `fn(inner_bp, *inner_inputs)` receives the nested inputs."""
    return plug_bp(bp, refs, with_inps(fn), summers, unities, summer)
