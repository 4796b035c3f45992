"""Bottom-up extraction driven by a work list of nodes whose cost may change."""

from __future__ import annotations

from collections.abc import Sequence

from .egraph import ClassId, Cost, EGraph, NodeId
from .extraction import INFINITY, ExtractionResult, Extractor
from .worklist import UniqueQueue


class FasterBottomUpExtractor(Extractor):
    """Same tree costs as the plain bottom-up extractor, visiting fewer nodes.

    Starts from the leaves and, whenever an e-class gets cheaper, revisits
    only the nodes that have that e-class as a child.
    """

    def extract(self, egraph: EGraph, roots: Sequence[ClassId]) -> ExtractionResult:
        classes = egraph.classes()
        parents: dict[ClassId, list[NodeId]] = {cid: [] for cid in classes}
        pending: UniqueQueue[NodeId] = UniqueQueue()

        for eclass in classes.values():
            for node_id in eclass.nodes:
                node = egraph[node_id]
                for child in node.children:
                    parents[egraph.nid_to_cid(child)].append(node_id)
                if not node.children:
                    pending.insert(node_id)

        result = ExtractionResult()
        costs: dict[ClassId, Cost] = {}

        while pending:
            node_id = pending.pop()
            class_id = egraph.nid_to_cid(node_id)
            cost = result.node_sum_cost(egraph, egraph[node_id], costs)
            if cost < costs.get(class_id, INFINITY):
                result.choose(class_id, node_id)
                costs[class_id] = cost
                pending.extend(parents[class_id])

        return result