"""
Numeric tuple types, isos and the engine configuration switch.
"""

import numpy as np

from bpgraph import T2, T3, EngineConfig, Iso, NUM_SUMMER, NUM_UNITY, get_config, t2_iso, use_config
from bpgraph.core import identity_iso, tuple_iso


def test_t2_arithmetic():
    a, b = T2(1.0, 2.0), T2(3.0, 4.0)
    assert a + b == T2(4.0, 6.0)
    assert b - a == T2(2.0, 2.0)
    assert a * b == T2(3.0, 8.0)
    assert b / a == T2(3.0, 2.0)
    assert -a == T2(-1.0, -2.0)


def test_scalar_broadcast():
    assert 0.0 + T2(1.0, 2.0) == T2(1.0, 2.0)
    assert 2.0 * T3(1.0, 2.0, 3.0) == T3(2.0, 4.0, 6.0)
    assert T3(2.0, 4.0, 6.0) / 2.0 == T3(1.0, 2.0, 3.0)
    assert 1.0 - T2(1.0, 2.0) == T2(0.0, -1.0)


def test_mixed_tuple_types_do_not_combine():
    assert T2(1.0, 2.0).__add__(T3(1.0, 2.0, 3.0)) is NotImplemented


def test_tuples_with_numeric_policies():
    assert NUM_SUMMER.sum([T2(1.0, 2.0), T2(3.0, 4.0)]) == T2(4.0, 6.0)
    assert NUM_SUMMER.sum([]) == 0.0
    assert NUM_UNITY.one(T3(5.0, 6.0, 7.0)) == T3(1.0, 1.0, 1.0)
    assert T2(5.0, 6.0).zero_like() == T2(0.0, 0.0)
    assert np.array_equal(NUM_UNITY.one(np.zeros(3)), np.ones(3))
    assert NUM_UNITY.one(4.0) == 1.0


def test_tuple_holding_arrays_is_not_copied():
    arr = np.arange(3.0)
    assert T2(arr, arr).as_tuple()[0] is arr


def test_isos():
    assert t2_iso.view(T2(1.0, 2.0)) == (1.0, 2.0)
    assert t2_iso.review((1.0, 2.0)) == T2(1.0, 2.0)
    assert t2_iso.inverse().view((1.0, 2.0)) == T2(1.0, 2.0)
    assert tuple_iso.view([1, 2]) == (1, 2)
    assert identity_iso.review(5) == 5

    swap = Iso(lambda p: (p[1], p[0]), lambda p: (p[1], p[0]))
    swapped = t2_iso.compose(swap)
    assert swapped.view(T2(1.0, 2.0)) == (2.0, 1.0)
    assert swapped.review((2.0, 1.0)) == T2(1.0, 2.0)


def test_use_config_restores_previous():
    before = get_config()
    assert before == EngineConfig()
    with use_config(share_inline_exprs=False) as cfg:
        assert get_config() is cfg
        assert not cfg.share_inline_exprs
        with use_config(EngineConfig(log_graph_summary=True)):
            assert get_config().log_graph_summary
            assert get_config().share_inline_exprs
        assert get_config() is cfg
    assert get_config() is before
