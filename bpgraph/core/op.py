# bpgraph/core/op.py
"""
Differentiable primitives.

An `Op` over `arity` inputs wraps a function `fn(*xs) -> (y, vjp)` where
`vjp(g)` returns one gradient per input given the gradient `g` of the output
(a vector-Jacobian product). The engine never looks inside an op; it only
calls `apply` and `apply_with_grad`.

Constructors mirror the usual shapes:

    op1(lambda x: (x * x, lambda g: (2.0 * x * g,)))
    op_deriv2(lambda a, b: a * b, lambda a, b: b, lambda a, b: a, tag="mul")
"""
from __future__ import annotations

from typing import Any, Callable, Optional, Sequence, Tuple

from .errors import ArityMismatchError
from .policy import NUM_SUMMER, NUM_UNITY, Summer, Unity
from .var import lift_r


class Op:
    """
    Attributes
    ----------
    fn     : Callable
        `fn(*xs) -> (y, vjp)`.
    arity  : int
        Number of inputs.
    tag    : str
        Debug tag (e.g., "add", "mul"), also used by graph statistics.
    unity  : Unity
        Supplies the output gradient when the caller passes none.
    summer : Optional[Summer]
        Accumulation policy for the op's output. Builders use it for nodes of
        this op, and an inline application is only shared between consumers
        when the op declares one.
    """

    def __init__(self, fn: Callable, arity: int, tag: str = "op",
                 unity: Optional[Unity] = None, summer: Optional[Summer] = None):
        self.fn = fn
        self.arity = arity
        self.tag = tag
        self.unity = unity or NUM_UNITY
        self.summer = summer

    def __repr__(self):
        return f"Op({self.tag!r}, arity={self.arity})"

    def _check(self, xs: Sequence[Any]) -> None:
        if len(xs) != self.arity:
            raise ArityMismatchError(self.tag, self.arity, len(xs))

    def apply(self, xs: Sequence[Any]) -> Any:
        return self.apply_with_grad(xs)[0]

    def apply_with_grad(self, xs: Sequence[Any]) -> Tuple[Any, Callable]:
        """
        Run the op once; return its output and a gradient function.

        The gradient function takes the output gradient, or None for "this is
        the final output", in which case the unit gradient of the output is
        used.
        """
        self._check(xs)
        y, vjp = self.fn(*xs)

        def grad_fn(g=None) -> tuple:
            if g is None:
                g = self.unity.one(y)
            gs = tuple(vjp(g))
            if len(gs) != self.arity:
                raise ArityMismatchError(self.tag, self.arity, len(gs), what="gradients")
            return gs

        return y, grad_fn

    def grad_with(self, xs: Sequence[Any], g=None) -> tuple:
        return self.apply_with_grad(xs)[1](g)

    def __call__(self, *args):
        """Apply this op to references, producing an inline expression."""
        return lift_r(self, args)


# ----------------------------- constructors ----------------------------- #
def op0(x: Any, tag: str = "const") -> Op:
    """Nullary op that always produces `x`."""
    return Op(lambda: (x, lambda g: ()), 0, tag)


def op_const(x: Any, n: int, tag: str = "const") -> Op:
    """Op over `n` inputs that ignores them and produces `x` (zero gradients)."""
    return Op(lambda *xs: (x, lambda g: (0.0,) * n), n, tag)


def op1(f: Callable, tag: str = "op1", unity: Optional[Unity] = None,
        summer: Optional[Summer] = None) -> Op:
    return Op(f, 1, tag, unity, summer)


def op2(f: Callable, tag: str = "op2", unity: Optional[Unity] = None,
        summer: Optional[Summer] = None) -> Op:
    return Op(f, 2, tag, unity, summer)


def op3(f: Callable, tag: str = "op3", unity: Optional[Unity] = None,
        summer: Optional[Summer] = None) -> Op:
    return Op(f, 3, tag, unity, summer)


def opN(f: Callable, n: int, tag: str = "opN", unity: Optional[Unity] = None,
        summer: Optional[Summer] = None) -> Op:
    return Op(f, n, tag, unity, summer)


def op_deriv1(f: Callable, df: Callable, tag: str = "op1") -> Op:
    """Unary numeric op from a function and its derivative: vjp(g) = g * df(x)."""
    def fn(x):
        return f(x), lambda g: (g * df(x),)
    return Op(fn, 1, tag, summer=NUM_SUMMER)


def op_deriv2(f: Callable, dfdx: Callable, dfdy: Callable, tag: str = "op2") -> Op:
    """Binary numeric op from a function and its two partials."""
    def fn(x, y):
        return f(x, y), lambda g: (g * dfdx(x, y), g * dfdy(x, y))
    return Op(fn, 2, tag, summer=NUM_SUMMER)


def no_grad(f: Callable, n: int, tag: str = "no_grad") -> Op:
    """Op whose output is treated as constant with respect to its inputs."""
    return Op(lambda *xs: (f(*xs), lambda g: (0.0,) * n), n, tag)


id_op = Op(lambda x: (x, lambda g: (g,)), 1, "id")
