# bpgraph/num.py

#-----------------------------------------------------------------------------
# Drivers for ordinary numbers: every input, and every node built without an
# explicit policy, accumulates with `+` starting from 0.0, and the declared
# output is seeded with a unit gradient (dy/dy = 1) unless one is given.
#-----------------------------------------------------------------------------
from __future__ import annotations

from typing import Any, Callable, Sequence, Tuple

from .core.builder import BP
from .core.engine import backprop_explicit, eval_bp_explicit
from .core.policy import NUM_SUMMER, NUM_UNITY, summers, unities


def backprop(fn: Callable[[BP], Any], inputs: Sequence[Any],
             grad_out: Any = None) -> Tuple[Any, tuple]:
    """
    Result of `fn` over `inputs` and the gradient of every input.

    Example
    -------
    def f(bp):
        x, = bp.inp_refs()
        return bp.op_ref1(x, ops.square)

    backprop(f, (3.0,)) -> (9.0, (6.0,))
    """
    inputs = tuple(inputs)
    n = len(inputs)
    return backprop_explicit(fn, inputs, summers(n), unities(n), grad_out,
                             NUM_SUMMER, NUM_UNITY)


def eval_bp_op(fn: Callable[[BP], Any], inputs: Sequence[Any]) -> Any:
    """Forward result only; no backward pass is run."""
    inputs = tuple(inputs)
    n = len(inputs)
    return eval_bp_explicit(fn, inputs, summers(n), unities(n), NUM_SUMMER, NUM_UNITY)


def grad_bp_op(fn: Callable[[BP], Any], inputs: Sequence[Any],
               grad_out: Any = None) -> tuple:
    return backprop(fn, inputs, grad_out)[1]
