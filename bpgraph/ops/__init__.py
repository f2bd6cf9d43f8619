# bpgraph/ops/__init__.py

# Convenience re-exports so users can do: from bpgraph.ops import mul, exp, ...
from .arithmetic import add, sub, mul, div, neg, pow, square
from .transcendental import exp, log, sqrt, erf
from .special import norm_cdf, sum_n

__all__ = [
    "add", "sub", "mul", "div", "neg", "pow", "square",
    "exp", "log", "sqrt", "erf",
    "norm_cdf", "sum_n",
]
