# bpgraph/config.py
"""
Engine configuration.

The active configuration is a module-level default that `use_config`
temporarily swaps, the same way a tape is swapped for an isolated graph:

    with use_config(share_inline_exprs=False):
        y, grads = backprop(f, (3.0,))

A builder snapshots the active configuration when it is created, and nested
passes reuse the snapshot of the builder that started them.
"""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Optional


@dataclass(frozen=True)
class EngineConfig:
    """
    Attributes
    ----------
    share_inline_exprs : bool
        When True, an inline application of an op that declares a summer is
        materialized into one shared node the first time it is consumed, and
        every later consumer reads that node. When False, or for ops without
        a summer, every use site gets its own single-consumer pipe.
    log_graph_summary : bool
        Log graph statistics (see `graph_utils.graph_summary`) at INFO level
        at the end of every forward pass.
    """
    share_inline_exprs: bool = True
    log_graph_summary: bool = False


default_config = EngineConfig()


def get_config() -> EngineConfig:
    return default_config


@contextmanager
def use_config(config: Optional[EngineConfig] = None, **overrides):
    """
    Temporarily switch the active configuration.

    Keyword overrides are applied on top of `config` (or of the currently
    active configuration when `config` is None).
    """
    global default_config
    prev = default_config
    try:
        default_config = replace(config or prev, **overrides)
        yield default_config
    finally:
        default_config = prev
