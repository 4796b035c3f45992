import itertools

import pytest

from extraction_gym.extraction import ExtractionResult
from extraction_gym.ilp_simplify import (
    ClassILP,
    Config,
    NodeILP,
    child_to_parents,
    classes_with_single_parent,
    find_extra_roots,
    pull_up_costs,
    pull_up_with_single_parent,
    reachable,
    remove_empty_classes,
    remove_high_cost,
    remove_more_expensive_subsumed_nodes,
    remove_single_zero_cost,
    remove_unreachable_classes,
    remove_with_loops,
)


def build(spec):
    """spec maps class id to a list of (node id, cost, child class ids)."""
    counter = itertools.count()
    result = {}
    for class_id, nodes in spec.items():
        result[class_id] = ClassILP(
            active=next(counter),
            members=[node_id for node_id, _, _ in nodes],
            variables=[next(counter) for _ in nodes],
            costs=[float(cost) for _, cost, _ in nodes],
            children_classes=[dict.fromkeys(children) for _, _, children in nodes],
        )
    return result


def disabled():
    return Config(**{name: False for name in Config.__dataclass_fields__})


def test_class_remove_keeps_lists_parallel():
    details = ClassILP(
        active=0,
        members=["n1", "n2", "n3"],
        variables=[1, 2, 3],
        costs=[1.0, 2.0, 3.0],
        children_classes=[{"b": None}, {}, {"c": None}],
    )
    details.remove(1)
    details.check()
    assert details.members == ["n1", "n3"]
    assert details.variables == [1, 3]
    assert details.costs == [1.0, 3.0]
    assert details.children_classes == [{"b": None}, {"c": None}]
    assert details.member_count() == 2


def test_remove_node_ignores_unknown_node():
    details = ClassILP(
        active=0,
        members=["n1", "n2"],
        variables=[1, 2],
        costs=[1.0, 2.0],
        children_classes=[{}, {}],
    )
    details.remove_node("missing")
    assert details.members == ["n1", "n2"]
    assert details.member_count() == 2
    details.remove_node("n1")
    assert details.members == ["n2"]
    assert details.variables == [2]
    assert details.member_count() == 1


def test_check_rejects_mismatched_lists():
    details = ClassILP(active=0, members=["n1"], variables=[1], costs=[], children_classes=[{}])
    with pytest.raises(ValueError):
        details.check()


def test_as_nodes_and_lookups():
    details = build({"a": [("n1", 1, ["b"]), ("n2", 2, ["b", "c"])]})["a"]
    nodes = details.as_nodes()
    assert nodes[1] == NodeILP(details.variables[1], 2.0, "n2", {"b": None, "c": None})
    assert list(details.children_of_node("n2")) == ["b", "c"]
    assert details.variable_for_node("n1") == details.variables[0]
    assert details.variable_for_node("missing") is None
    with pytest.raises(ValueError):
        details.children_of_node("missing")


def test_remove_with_loops_drops_self_and_sole_root_references():
    vars_ = build(
        {
            "r": [("r1", 1, ["a"])],
            "a": [("a1", 1, ["a"]), ("a2", 1, ["r"]), ("a3", 1, [])],
        }
    )
    remove_with_loops(vars_, ["r"], Config())
    assert vars_["a"].members == ["a3"]
    assert vars_["r"].members == ["r1"]


def test_remove_with_loops_disabled_changes_nothing():
    vars_ = build({"a": [("a1", 1, ["a"])]})
    remove_with_loops(vars_, ["a"], disabled())
    assert vars_["a"].members == ["a1"]


def test_remove_high_cost_drops_expensive_non_root_nodes():
    vars_ = build(
        {
            "r": [("r1", 1, ["a"])],
            "a": [("cheap", 3, []), ("dear", 10, [])],
        }
    )
    remove_high_cost(vars_, 5.0, ["r"], Config())
    assert vars_["a"].members == ["cheap"]
    assert vars_["r"].members == ["r1"]


def test_remove_high_cost_rejects_duplicate_roots():
    vars_ = build({"r": [("r1", 1, [])]})
    with pytest.raises(ValueError):
        remove_high_cost(vars_, 5.0, ["r", "r"], Config())


def test_subsumed_nodes_are_removed():
    vars_ = build(
        {
            "a": [("big", 2, ["x", "y"]), ("small", 1, ["x"]), ("free", 0, ["x", "y"])],
            "x": [("x1", 1, [])],
            "y": [("y1", 1, [])],
        }
    )
    remove_more_expensive_subsumed_nodes(vars_, Config())
    assert sorted(vars_["a"].members) == ["free", "small"]
    vars_["a"].check()


def test_unreachable_classes_are_removed():
    vars_ = build(
        {
            "r": [("r1", 1, ["x"])],
            "x": [("x1", 1, [])],
            "y": [("y1", 1, ["x"])],
        }
    )
    remove_unreachable_classes(vars_, ["r"], Config())
    assert set(vars_) == {"r", "x"}


def test_reachable_follows_children():
    vars_ = build(
        {
            "r": [("r1", 1, ["x"]), ("r2", 1, ["z"])],
            "x": [("x1", 1, ["y"])],
            "y": [("y1", 1, [])],
            "z": [("z1", 1, [])],
            "w": [("w1", 1, ["r"])],
        }
    )
    assert reachable(vars_, ["r"]) == {"r", "x", "y", "z"}
    with pytest.raises(KeyError):
        reachable(vars_, ["missing"])


def test_empty_classes_propagate_to_parents():
    vars_ = build(
        {
            "g": [("g1", 1, ["p"]), ("g2", 1, [])],
            "p": [("p1", 1, ["e"])],
            "e": [],
        }
    )
    remove_empty_classes(vars_, Config())
    assert vars_["p"].member_count() == 0
    assert vars_["g"].members == ["g2"]


def test_find_extra_roots_adds_common_children_transitively():
    vars_ = build(
        {
            "r": [("r1", 1, ["x", "y"]), ("r2", 1, ["x"])],
            "x": [("x1", 1, ["z"])],
            "y": [("y1", 1, [])],
            "z": [("z1", 1, [])],
        }
    )
    roots = ["r"]
    find_extra_roots(vars_, roots, Config())
    assert roots == ["r", "x", "z"]


def test_find_extra_roots_skips_empty_root():
    vars_ = build({"r": [], "s": [("s1", 1, ["t"])], "t": [("t1", 1, [])]})
    roots = ["r", "s"]
    find_extra_roots(vars_, roots, Config())
    assert roots == ["r", "s", "t"]


def test_child_to_parents_and_single_parent():
    vars_ = build(
        {
            "p": [("p1", 1, ["c", "d"])],
            "q": [("q1", 1, ["d"])],
            "c": [("c1", 1, [])],
            "d": [("d1", 1, [])],
        }
    )
    parents = child_to_parents(vars_)
    assert set(parents["d"]) == {"p", "q"}
    assert set(parents["c"]) == {"p"}
    assert classes_with_single_parent(vars_) == {"c": "p"}


def test_pull_up_costs_moves_minimum_to_parent():
    vars_ = build(
        {
            "p": [("p1", 1, ["c"]), ("p2", 4, [])],
            "c": [("c1", 2, []), ("c2", 3, [])],
        }
    )
    before_child = list(vars_["c"].costs)
    pull_up_costs(vars_, ["p"], Config())
    assert min(vars_["c"].costs) == 0.0
    shift = min(before_child)
    assert vars_["c"].costs == [cost - shift for cost in before_child]
    assert vars_["p"].costs == [1.0 + shift, 4.0]


def test_pull_up_costs_leaves_roots_alone():
    vars_ = build({"p": [("p1", 1, ["c"])], "c": [("c1", 2, [])]})
    pull_up_costs(vars_, ["p", "c"], Config())
    assert vars_["c"].costs == [2.0]
    assert vars_["p"].costs == [1.0]


def test_pull_up_with_single_parent_moves_children():
    vars_ = build(
        {
            "p": [("p1", 1, ["c"])],
            "c": [("c1", 1, ["z"])],
            "z": [("z1", 1, [])],
        }
    )
    pull_up_with_single_parent(vars_, ["p"], Config())
    assert set(vars_["p"].children_classes[0]) == {"c", "z"}
    assert vars_["c"].children_classes[0] == {}


def test_remove_single_zero_cost_chooses_and_unlinks():
    vars_ = build(
        {
            "p": [("p1", 1, ["z", "x"])],
            "z": [("z1", 0, [])],
            "x": [("x1", 1, [])],
        }
    )
    result = ExtractionResult()
    remove_single_zero_cost(vars_, result, ["p"], Config())
    assert "z" not in vars_
    assert result.choices == {"z": "z1"}
    assert list(vars_["p"].children_classes[0]) == ["x"]


def test_remove_single_zero_cost_keeps_roots():
    vars_ = build({"z": [("z1", 0, [])]})
    result = ExtractionResult()
    remove_single_zero_cost(vars_, result, ["z"], Config())
    assert "z" in vars_
    assert result.choices == {}


def test_disabled_passes_change_nothing():
    spec = {
        "r": [("r1", 5, ["a"]), ("r2", 9, ["a", "e"])],
        "a": [("a1", 0, []), ("a2", 100, ["a"])],
        "e": [],
        "u": [("u1", 1, [])],
    }
    vars_ = build(spec)
    config = disabled()
    roots = ["r"]
    result = ExtractionResult()
    remove_with_loops(vars_, roots, config)
    remove_high_cost(vars_, 1.0, roots, config)
    remove_more_expensive_subsumed_nodes(vars_, config)
    remove_unreachable_classes(vars_, roots, config)
    pull_up_with_single_parent(vars_, roots, config)
    pull_up_costs(vars_, roots, config)
    remove_single_zero_cost(vars_, result, roots, config)
    find_extra_roots(vars_, roots, config)
    remove_empty_classes(vars_, config)
    assert vars_ == build(spec)
    assert roots == ["r"]
    assert result.choices == {}