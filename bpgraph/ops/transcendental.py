# bpgraph/ops/transcendental.py
import numpy as np
from scipy.special import erf as scipy_erf

from ..core.op import op1
from ..core.policy import NUM_SUMMER


def _exp(x):
    ex = np.exp(x)
    return ex, lambda g: (g * ex,)


def _log(x):
    return np.log(x), lambda g: (g / x,)


def _sqrt(x):
    s = np.sqrt(x)
    return s, lambda g: (g * 0.5 / s,)


def _erf(x):
    """
    Error function: erf(x) = (2/√π) ∫₀ˣ e^(-t²) dt

    Derivative: d/dx erf(x) = (2/√π) * e^(-x²)
    """
    deriv = (2.0 / np.sqrt(np.pi)) * np.exp(-np.square(x))
    return scipy_erf(x), lambda g: (g * deriv,)


exp = op1(_exp, "exp", summer=NUM_SUMMER)
log = op1(_log, "log", summer=NUM_SUMMER)
sqrt = op1(_sqrt, "sqrt", summer=NUM_SUMMER)
erf = op1(_erf, "erf", summer=NUM_SUMMER)
