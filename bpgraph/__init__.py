# bpgraph/__init__.py
# Reverse-mode automatic differentiation over a dynamically built graph

from .config import EngineConfig, get_config, use_config
from .core import (
    BP,
    Op,
    Iso,
    Summer,
    Unity,
    NUM_SUMMER,
    NUM_UNITY,
    BackpropError,
    SessionMismatchError,
    GraphClosedError,
    ArityMismatchError,
    InputIndexError,
    MissingChoiceError,
    backprop_with,
    backprop_explicit,
    eval_bp_explicit,
    grad_bp_explicit,
    const_ref,
    lift_r,
    lift_r1,
    lift_r2,
    lift_r3,
    with_inps,
    op0,
    op1,
    op2,
    op3,
    opN,
    op_deriv1,
    op_deriv2,
    no_grad,
    id_op,
)
from .num import backprop, eval_bp_op, grad_bp_op
from .tuples import T2, T3, t2_iso, t3_iso

# Op library
from . import ops

__all__ = [
    # Config
    'EngineConfig',
    'get_config',
    'use_config',
    # Builder and refs
    'BP',
    'const_ref',
    'lift_r',
    'lift_r1',
    'lift_r2',
    'lift_r3',
    'with_inps',
    # Ops
    'Op',
    'op0',
    'op1',
    'op2',
    'op3',
    'opN',
    'op_deriv1',
    'op_deriv2',
    'no_grad',
    'id_op',
    'ops',
    # Policies
    'Iso',
    'Summer',
    'Unity',
    'NUM_SUMMER',
    'NUM_UNITY',
    # Drivers
    'backprop',
    'eval_bp_op',
    'grad_bp_op',
    'backprop_with',
    'backprop_explicit',
    'eval_bp_explicit',
    'grad_bp_explicit',
    # Tuples
    'T2',
    'T3',
    't2_iso',
    't3_iso',
    # Errors
    'BackpropError',
    'SessionMismatchError',
    'GraphClosedError',
    'ArityMismatchError',
    'InputIndexError',
    'MissingChoiceError',
]
