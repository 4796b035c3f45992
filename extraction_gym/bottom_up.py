"""Tree-cost optimal extraction by iterating node costs to a fixed point."""

from __future__ import annotations

from collections.abc import Sequence

from .egraph import ClassId, Cost, EGraph
from .extraction import INFINITY, ExtractionResult, Extractor


class BottomUpExtractor(Extractor):
    """Revisits every node until no e-class gets cheaper."""

    def extract(self, egraph: EGraph, roots: Sequence[ClassId]) -> ExtractionResult:
        result = ExtractionResult()
        costs: dict[ClassId, Cost] = {}
        did_something = True
        while did_something:
            did_something = False
            for eclass in egraph.classes().values():
                for node_id in eclass.nodes:
                    cost = result.node_sum_cost(egraph, egraph[node_id], costs)
                    if cost < costs.get(eclass.id, INFINITY):
                        result.choose(eclass.id, node_id)
                        costs[eclass.id] = cost
                        did_something = True
        return result