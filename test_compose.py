"""
Splitting aggregate values into tracked parts, tracking the active branch of
a tagged value, and nesting whole differentiation calls as single nodes.
"""

import numpy as np
import pytest

from bpgraph import (
    NUM_SUMMER,
    NUM_UNITY,
    T2,
    T3,
    Iso,
    MissingChoiceError,
    SessionMismatchError,
    Summer,
    Unity,
    backprop,
    backprop_explicit,
    id_op,
    op1,
    op3,
    ops,
    t2_iso,
    t3_iso,
    use_config,
    with_inps,
)
from bpgraph.core import get_graph_stats, tuple_summer, tuple_unity


def test_parts_of_pair():
    def f(bp):
        a, b = bp.parts_ref(t2_iso, bp.inp_ref(0))
        return bp.op_ref2(a, b, ops.mul)

    assert backprop(f, (T2(2.0, 3.0),)) == (6.0, (T2(3.0, 2.0),))


def test_unused_part_gets_zero():
    def f(bp):
        a, _ = bp.parts_ref(t2_iso, bp.inp_ref(0))
        return a

    assert backprop(f, (T2(2.0, 3.0),)) == (2.0, (T2(1.0, 0.0),))


def test_parts_consumed_several_times():
    def f(bp):
        a, b = bp.parts_ref(t2_iso, bp.inp_ref(0))
        ab = bp.op_ref2(a, b, ops.mul)
        return bp.op_ref2(ab, a, ops.add)

    assert backprop(f, (T2(2.0, 3.0),)) == (8.0, (T2(4.0, 2.0),))


pair_summer = tuple_summer([NUM_SUMMER, NUM_SUMMER])
pair_unity = tuple_unity([NUM_UNITY, NUM_UNITY])


def run_pair(f, value):
    return backprop_explicit(f, (value,), [pair_summer], [pair_unity],
                             default_summer=NUM_SUMMER, default_unity=NUM_UNITY)


def test_split_plain_tuple():
    def f(bp):
        a, b = bp.split_refs(bp.inp_ref(0))
        return bp.op_ref2(a, b, ops.mul)

    assert run_pair(f, (2.0, 3.0)) == (6.0, ((3.0, 2.0),))


@pytest.mark.parametrize("share", [True, False])
def test_split_inline_tuple_expression(share):
    def f(bp):
        a, b = bp.split_refs(id_op(bp.inp_ref(0)))
        return bp.op_ref2(a, b, ops.mul)

    with use_config(share_inline_exprs=share):
        assert run_pair(f, (2.0, 3.0)) == (6.0, ((3.0, 2.0),))


swap = op1(lambda p: ((p[1], p[0]), lambda g: ((g[1], g[0]),)), "swap", summer=pair_summer)


@pytest.mark.parametrize("share, swap_entries", [(True, 1), (False, 2)])
def test_inline_tuple_expression_with_several_consumers(share, swap_entries):
    graphs = []

    def f(bp):
        graphs.append(bp.graph)
        e = swap(bp.inp_ref(0))
        a, b = bp.split_refs(e)
        _, d = bp.split_refs(e)
        return bp.op_ref2(bp.op_ref2(a, b, ops.mul), d, ops.add)

    with use_config(share_inline_exprs=share):
        assert run_pair(f, (2.0, 3.0)) == (8.0, ((4.0, 2.0),))
    assert get_graph_stats(graphs[0])['operations']['swap'] == swap_entries


def test_parts_of_inline_pair_value():
    def f(bp):
        a, b = bp.parts_ref(t2_iso, id_op(bp.inp_ref(0)))
        return bp.op_ref2(a, b, ops.mul)

    assert backprop(f, (T2(2.0, 3.0),)) == (6.0, (T2(3.0, 2.0),))


def test_with_parts():
    prod3 = op3(lambda a, b, c: (a * b * c, lambda g: (g * b * c, g * a * c, g * a * b)), "prod3")

    def f(bp):
        return bp.with_parts(t3_iso, bp.inp_ref(0), lambda a, b, c: bp.op_ref3(a, b, c, prod3))

    assert backprop(f, (T3(1.0, 2.0, 3.0),)) == (6.0, (T3(6.0, 3.0, 2.0),))


# ----------------------------- tagged values ----------------------------- #
either_iso = Iso(
    view=lambda e: (0 if e[0] == "L" else 1, e[1]),
    review=lambda tv: ("L" if tv[0] == 0 else "R", tv[1]),
)


def _either_add(a, b):
    if a is None:
        return b
    if b is None:
        return a
    return (a[0], a[1] + b[1])


either_summer = Summer(zero=lambda: None, add=_either_add)
either_unity = Unity(one=lambda e: (e[0], 1.0))


def run_either(f, value):
    return backprop_explicit(f, (value,), [either_summer], [either_unity],
                             default_summer=NUM_SUMMER, default_unity=NUM_UNITY)


def test_choices_tracks_active_branch():
    seen = []

    def f(bp):
        tag, r = bp.choices_ref(either_iso, bp.inp_ref(0))
        seen.append(tag)
        return bp.op_ref1(r, ops.square)

    assert run_either(f, ("L", 3.0)) == (9.0, (("L", 6.0),))
    assert run_either(f, ("R", 2.0)) == (4.0, (("R", 4.0),))
    assert seen == [0, 1]


def test_choices_with_policy_per_branch():
    def f(bp):
        _, r = bp.choices_ref(either_iso, bp.inp_ref(0),
                              summers={0: NUM_SUMMER, 1: NUM_SUMMER},
                              unities={0: NUM_UNITY, 1: NUM_UNITY})
        return r

    assert run_either(f, ("R", 5.0)) == (5.0, (("R", 1.0),))


def test_choice_extracts_expected_branch():
    def f(bp):
        r = bp.choice_ref(either_iso, bp.inp_ref(0), 0)
        return bp.op_ref2(r, 2.0, ops.mul)

    assert run_either(f, ("L", 3.0)) == (6.0, (("L", 2.0),))


def test_choice_of_wrong_branch_raises():
    def f(bp):
        return bp.choice_ref(either_iso, bp.inp_ref(0), 1)

    with pytest.raises(MissingChoiceError) as exc:
        run_either(f, ("L", 3.0))
    assert (exc.value.expected, exc.value.actual) == (1, 0)


def _shape_add(a, b):
    if a is None:
        return b
    if b is None:
        return a
    return (a[0],) + tuple(x + y for x, y in zip(a[1:], b[1:]))


shape_iso = Iso(
    view=lambda v: (0 if v[0] == "rect" else 1, v[1:]),
    review=lambda tp: (("rect",) if tp[0] == 0 else ("circle",)) + tuple(tp[1]),
)


def test_sum_of_products():
    def f(bp):
        tag, parts = bp.sop_ref(shape_iso, bp.inp_ref(0))
        if tag == 0:
            w, h = parts
            return bp.op_ref2(w, h, ops.mul)
        r, = parts
        return bp.op_ref2(bp.op_ref1(r, ops.square), np.pi, ops.mul)

    shape_summer = Summer(zero=lambda: None, add=_shape_add)
    shape_unity = Unity(one=lambda v: (v[0],) + (1.0,) * (len(v) - 1))

    def run(value):
        return backprop_explicit(f, (value,), [shape_summer], [shape_unity],
                                 default_summer=NUM_SUMMER, default_unity=NUM_UNITY)

    assert run(("rect", 2.0, 3.0)) == (6.0, (("rect", 3.0, 2.0),))
    area, ((kind, dr),) = run(("circle", 2.0))
    assert kind == "circle"
    assert np.isclose(area, 4.0 * np.pi)
    assert np.isclose(dr, 4.0 * np.pi)


# -------------------------------- nesting -------------------------------- #
inner_mul = with_inps(lambda ibp, a, b: ibp.op_ref2(a, b, ops.mul))


def test_internally():
    def f(bp):
        return bp.internally(t2_iso, bp.inp_ref(0), inner_mul)

    assert backprop(f, (T2(2.0, 3.0),)) == (6.0, (T2(3.0, 2.0),))


def test_internally_result_consumed_outside():
    def f(bp):
        inner = bp.internally(t2_iso, bp.inp_ref(0), inner_mul)
        return bp.op_ref1(inner, ops.square)

    assert backprop(f, (T2(2.0, 3.0),)) == (36.0, (T2(36.0, 24.0),))


def test_plug_bp():
    def f(bp):
        x, y, z = bp.inp_refs()
        p = bp.plug_bp([x, y], inner_mul)
        return bp.op_ref2(p, z, ops.mul)

    assert backprop(f, (2.0, 3.0, 4.0)) == (24.0, (12.0, 8.0, 6.0))


def test_plug_with():
    def f(bp):
        x, y, z = bp.inp_refs()
        p = bp.plug_with([x, y], lambda ibp, a, b: ibp.op_ref2(a, b, ops.mul))
        return bp.op_ref2(p, z, ops.mul)

    assert backprop(f, (2.0, 3.0, 4.0)) == (24.0, (12.0, 8.0, 6.0))


def test_nested_pass_runs_once_for_several_consumers():
    # a second run of the nested backward pass would raise GraphClosedError
    def f(bp):
        x, y, z = bp.inp_refs()
        p = bp.plug_bp([x, y], inner_mul)
        pz = bp.op_ref2(p, z, ops.mul)
        return bp.op_ref2(pz, p, ops.add)

    assert backprop(f, (2.0, 3.0, 4.0)) == (30.0, (15.0, 10.0, 6.0))


@pytest.mark.parametrize("share, counts", [(True, (2, 0)), (False, (1, 2))])
def test_nested_pass_inherits_inline_config(share, counts):
    configs = []
    inner_graphs = []

    def inner(ibp):
        configs.append(ibp.config)
        inner_graphs.append(ibp.graph)
        e = ibp.inp_ref(0) * 3.0
        return ibp.op_ref2(e, e, ops.add)

    def f(bp):
        configs.append(bp.config)
        return bp.plug_bp([bp.inp_ref(0)], inner)

    with use_config(share_inline_exprs=share):
        assert backprop(f, (2.0,)) == (12.0, (6.0,))
    outer_config, inner_config = configs
    assert inner_config is outer_config
    stats = get_graph_stats(inner_graphs[0])
    assert (stats['nodes'], stats['pipes']) == counts


def test_outer_reference_inside_nested_pass_is_rejected():
    def f(bp):
        x, = bp.inp_refs()
        return bp.plug_bp([x], lambda ibp: ibp.op_ref1(x, ops.square))

    with pytest.raises(SessionMismatchError):
        backprop(f, (2.0,))
