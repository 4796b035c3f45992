"""Greedy extraction that counts shared e-classes only once."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from .egraph import ClassId, Cost, EGraph, Node, NodeId
from .extraction import ExtractionResult, Extractor

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class _CostSet:
    costs: dict[ClassId, Cost]
    total: Cost
    choice: NodeId


def _cost_set(
    egraph: EGraph, node_id: NodeId, node: Node, costs: Mapping[ClassId, _CostSet]
) -> _CostSet | None:
    class_id = node.eclass
    class_costs: dict[ClassId, Cost] = {}
    for child in node.children:
        child_set = costs.get(egraph.nid_to_cid(child))
        if child_set is None or class_id in child_set.costs:
            return None
        class_costs.update(child_set.costs)
    class_costs[class_id] = node.cost
    return _CostSet(class_costs, sum(class_costs.values(), 0.0), node_id)


class GreedyDagExtractor(Extractor):
    """Picks for each e-class the node whose reachable e-classes cost least."""

    def extract(self, egraph: EGraph, roots: Sequence[ClassId]) -> ExtractionResult:
        costs: dict[ClassId, _CostSet] = {}
        keep_going = True
        iteration = 0
        while keep_going:
            iteration += 1
            log.debug("iteration %d", iteration)
            keep_going = False
            for node_id, node in egraph.nodes.items():
                candidate = _cost_set(egraph, node_id, node, costs)
                if candidate is None:
                    continue
                previous = costs.get(node.eclass)
                if previous is None or candidate.total < previous.total:
                    costs[node.eclass] = candidate
                    keep_going = True

        result = ExtractionResult()
        for class_id, cost_set in costs.items():
            result.choose(class_id, cost_set.choice)
        return result