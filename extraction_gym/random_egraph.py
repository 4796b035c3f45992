"""Random e-graphs that always have an acyclic extraction, for testing extractors."""

from __future__ import annotations

import random

from .egraph import Cost, EGraph, Node, NodeId


def _node_id(index: int) -> NodeId:
    return f"node_{index}"


def _semi_random_cost(rng: random.Random, nodes: list[Node]) -> Cost:
    # Without this, costs would almost never equal each other or zero.
    if nodes and rng.random() < 0.1:
        return nodes[rng.randrange(len(nodes))].cost
    if rng.random() < 0.05:
        return 0.0
    return rng.random() * 100.0


def generate_random_egraph(rng: random.Random | None = None) -> EGraph:
    """Make a random e-graph whose roots have a loop-free extraction.

    Core nodes only point at earlier nodes; extra nodes, which no extraction
    needs, may point anywhere and so add cycles.
    """
    rng = rng if rng is not None else random.Random()
    core_count = rng.randrange(1, 100)
    extra_count = rng.randrange(1, 100)
    nodes: list[Node] = []
    eclass = 0

    for index in range(core_count):
        children = [_node_id(j) for j in range(index) if rng.random() < 0.1]
        if rng.random() < 0.2:
            eclass += 1
        nodes.append(Node("operation", children, str(eclass), _semi_random_cost(rng, nodes)))

    for _ in range(extra_count):
        nodes.append(
            Node(
                "operation",
                [],
                str(rng.randrange(eclass * 2 + 1)),
                _semi_random_cost(rng, nodes),
            )
        )

    for node in nodes[core_count:]:
        node.children.extend(_node_id(j) for j in range(len(nodes)) if rng.random() < 0.05)

    egraph = EGraph()
    for index, node in enumerate(nodes):
        egraph.add_node(_node_id(index), node)

    for _ in range(1, rng.randrange(2, 6)):
        egraph.root_eclasses.append(nodes[rng.randrange(core_count)].eclass)

    return egraph