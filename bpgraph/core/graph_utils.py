"""
Graph statistics.

Helpers to inspect the node table left behind by a forward pass: how many
nodes and pipes were materialized, how many consumer edges were recorded,
and how the fan-out is distributed.
"""

import logging
from collections import Counter
from typing import Dict

import numpy as np

from .node import BPPipe, Internal

logger = logging.getLogger(__name__)


def get_graph_stats(graph) -> Dict:
    """
    Statistics of a graph (no logging).

    Returns:
        dict with node/pipe/edge counts, fan-out figures and op-tag counts
    """
    entries = graph.entries
    n_pipes = sum(isinstance(e, BPPipe) for e in entries)
    input_fan_outs = [len(fr.edges) for fr in graph.sources if isinstance(fr, Internal)]
    fan_outs = [e.fan_out() for e in entries]

    return {
        'inputs': len(graph.inputs),
        'nodes': len(entries) - n_pipes,
        'pipes': n_pipes,
        'edges': sum(fan_outs) + sum(input_fan_outs),
        'max_fan_out': max(fan_outs + input_fan_outs, default=0),
        'avg_fan_out': float(np.mean(fan_outs)) if fan_outs else 0.0,
        'operations': dict(Counter(e.op_tag for e in entries)),
    }


def graph_summary(graph, detailed: bool = False) -> Dict:
    """
    Log a summary of the graph at INFO level and return its statistics.

    Args:
        graph: Graph of a finished forward pass
        detailed: also log one line per entry (first 100 entries)
    """
    stats = get_graph_stats(graph)
    if not graph.entries:
        logger.info("Empty computation graph (%d input(s))", stats['inputs'])
        return stats

    logger.info(
        "graph: %d node(s), %d pipe(s), %d edge(s), max fan-out %d, avg fan-out %.2f",
        stats['nodes'], stats['pipes'], stats['edges'],
        stats['max_fan_out'], stats['avg_fan_out'],
    )
    n_entries = len(graph.entries)
    for op_tag, count in Counter(stats['operations']).most_common(10):
        logger.info("  %-12s: %6d (%5.1f%%)", op_tag, count, 100.0 * count / n_entries)

    if detailed:
        for i, entry in enumerate(graph.entries[:100]):
            kind = "pipe" if isinstance(entry, BPPipe) else "node"
            logger.info("%s %4d: %-12s fan-out %d", kind, i, entry.op_tag, entry.fan_out())

    return stats
