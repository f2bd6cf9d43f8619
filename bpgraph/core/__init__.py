# bpgraph/core/__init__.py

"""
Core public API of the graph engine.

Exports:
    BP                : Builder handed to user code during the forward pass.
    Op                : Differentiable primitive (value + vector-Jacobian product).
    Summer, Unity     : Accumulation policy and unit-gradient policy.
    Iso               : view/review pair used by the splitting drivers.
    lift_r, const_ref : Inline expressions and constants.
    BackwardPass      : Memoized backward traversal over one graph.
    backprop_with     : Forward pass + deferred gradient function.
    backprop_explicit : Forward + backward with explicit policies.
"""

from .errors import (
    BackpropError,
    SessionMismatchError,
    GraphClosedError,
    ArityMismatchError,
    InputIndexError,
    MissingChoiceError,
)
from .policy import Summer, Unity, NUM_SUMMER, NUM_UNITY, summers, unities, tuple_summer, tuple_unity
from .op import Op, op0, op_const, op1, op2, op3, opN, op_deriv1, op_deriv2, no_grad, id_op
from .iso import Iso, identity_iso, tuple_iso
from .var import InputRef, ConstRef, NodeRef, OpRef, const_ref, as_ref, lift_r, lift_r1, lift_r2, lift_r3
from .tape import Graph
from .builder import BP, with_inps
from .engine import BackwardPass, backprop_with, backprop_explicit, eval_bp_explicit, grad_bp_explicit
from .graph_utils import get_graph_stats, graph_summary

__all__ = [
    "BackpropError", "SessionMismatchError", "GraphClosedError",
    "ArityMismatchError", "InputIndexError", "MissingChoiceError",
    "Summer", "Unity", "NUM_SUMMER", "NUM_UNITY", "summers", "unities",
    "tuple_summer", "tuple_unity",
    "Op", "op0", "op_const", "op1", "op2", "op3", "opN",
    "op_deriv1", "op_deriv2", "no_grad", "id_op",
    "Iso", "identity_iso", "tuple_iso",
    "InputRef", "ConstRef", "NodeRef", "OpRef",
    "const_ref", "as_ref", "lift_r", "lift_r1", "lift_r2", "lift_r3",
    "Graph", "BP", "with_inps",
    "BackwardPass", "backprop_with", "backprop_explicit",
    "eval_bp_explicit", "grad_bp_explicit",
    "get_graph_stats", "graph_summary",
]
