# bpgraph/ops/arithmetic.py
import numpy as np

from ..core.op import Op, op1, op2, op_deriv2
from ..core.policy import NUM_SUMMER


def _pow(x, y):
    """
    Power (demo-level domain handling):
      out = x ** y

    Local partials:
      ∂out/∂x = y * x^(y-1)
      ∂out/∂y = x^y * log(x)        (taken as 0 unless x > 0)
    """
    out = x ** y

    def vjp(g):
        dfdx = y * (x ** (y - 1.0))
        dfdy = out * np.log(x) if np.all(np.asarray(x) > 0) else 0.0
        return g * dfdx, g * dfdy

    return out, vjp


add = op_deriv2(lambda a, b: a + b, lambda a, b: 1.0, lambda a, b: 1.0, "add")
sub = op_deriv2(lambda a, b: a - b, lambda a, b: 1.0, lambda a, b: -1.0, "sub")
mul = op2(lambda a, b: (a * b, lambda g: (g * b, g * a)), "mul", summer=NUM_SUMMER)
div = op_deriv2(lambda a, b: a / b, lambda a, b: 1.0 / b, lambda a, b: -a / np.square(b), "div")
pow = Op(_pow, 2, "pow", summer=NUM_SUMMER)
neg = op1(lambda x: (-x, lambda g: (-g,)), "neg", summer=NUM_SUMMER)
square = op1(lambda x: (x * x, lambda g: (2.0 * x * g,)), "square", summer=NUM_SUMMER)
