# bpgraph/core/errors.py
"""
Exceptions raised by the graph builder and the backward traversal.

Everything here signals programmer misuse of the builder API (a handle used
outside the call that created it, an operation fed the wrong number of
arguments, a builder used after its forward pass ended). Errors raised by
user operations themselves are never wrapped.
"""


class BackpropError(RuntimeError):
    """Base class for every error raised by bpgraph."""


class SessionMismatchError(BackpropError):
    """
    Raised when a reference created by one differentiation call is handed to
    the builder of another call.

    Attributes
    ----------
    ref : Any
        The offending reference.
    """

    def __init__(self, ref) -> None:
        super().__init__(
            f"{ref!r} belongs to a different differentiation call; "
            f"references cannot leave the call that created them."
        )
        self.ref = ref


class GraphClosedError(BackpropError):
    """Raised when a graph is extended after its forward pass, or pulled twice."""


class ArityMismatchError(BackpropError, TypeError):
    """
    Raised when an operation receives (or returns gradients for) a number of
    values different from its declared arity.

    Attributes
    ----------
    tag : str
        Debug tag of the operation.
    expected : int
        Declared arity.
    got : int
        Number of values actually supplied.
    """

    def __init__(self, tag: str, expected: int, got: int, what: str = "inputs") -> None:
        super().__init__(f"op '{tag}' expects {expected} {what}, got {got}.")
        self.tag = tag
        self.expected = expected
        self.got = got


class InputIndexError(BackpropError, IndexError):
    """Raised when an input reference names a slot the call does not have."""

    def __init__(self, index: int, n_inputs: int) -> None:
        super().__init__(f"input index {index} out of range for {n_inputs} input(s).")
        self.index = index
        self.n_inputs = n_inputs


class MissingChoiceError(BackpropError, LookupError):
    """
    Raised by partial extraction when a value is not the expected alternative.

    Attributes
    ----------
    expected : Any
        Branch tag the caller asked for.
    actual : Any
        Branch tag the value actually carries.
    """

    def __init__(self, expected, actual) -> None:
        super().__init__(
            f"expected alternative {expected!r} but the value holds {actual!r}."
        )
        self.expected = expected
        self.actual = actual
