"""Greedy DAG extraction over hash-consed terms with reachability sets."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from .egraph import ClassId, Cost, EGraph, Node, NodeId
from .extraction import INFINITY, ExtractionResult, Extractor

log = logging.getLogger(__name__)

TermId = int


@dataclass(frozen=True)
class _Term:
    op: str
    children: tuple[TermId, ...]


@dataclass(frozen=True)
class _TermInfo:
    node: NodeId
    eclass: ClassId
    node_cost: Cost
    total_cost: Cost
    reachable: frozenset[ClassId]
    size: int


class TermDag:
    """Terms sharing common subterms, each knowing the e-classes it reaches.

    Reachability lets the cost of a term count shared subterms once.
    """

    def __init__(self) -> None:
        self._terms: list[_Term] = []
        self._info: list[_TermInfo] = []
        self._hash_cons: dict[_Term, TermId] = {}

    def make(
        self, node_id: NodeId, node: Node, children: Iterable[TermId], target: Cost
    ) -> TermId | None:
        """Build a term from a node and child terms.

        Returns None if the term would contain its own e-class or would cost
        more than ``target``.
        """
        children = tuple(children)
        term = _Term(node.op, children)
        existing = self._hash_cons.get(term)
        if existing is not None:
            return existing

        if not children:
            info = _TermInfo(
                node_id, node.eclass, node.cost, node.cost, frozenset((node.eclass,)), 1
            )
            return self._push(term, info)

        if any(node.eclass in self._info[child].reachable for child in children):
            return None

        biggest = max(reversed(children), key=lambda child: self._info[child].size)
        cost = node.cost + self.total_cost(biggest)
        shared = set(self._info[biggest].reachable)

        for child in children:
            if cost > target:
                return None
            cost += self._shared_cost(shared, child)

        if cost > target:
            return None

        shared.add(node.eclass)
        size = 1 + sum(self._info[child].size for child in children)
        info = _TermInfo(node_id, node.eclass, node.cost, cost, frozenset(shared), size)
        return self._push(term, info)

    def node_cost(self, term_id: TermId) -> Cost:
        return self._info[term_id].node_cost

    def total_cost(self, term_id: TermId) -> Cost:
        return self._info[term_id].total_cost

    def _push(self, term: _Term, info: _TermInfo) -> TermId:
        term_id = len(self._terms)
        self._terms.append(term)
        self._info.append(info)
        self._hash_cons[term] = term_id
        return term_id

    def _shared_cost(self, shared: set[ClassId], term_id: TermId) -> Cost:
        """Cost of the parts of a term not yet in ``shared``, which is updated."""
        if self._info[term_id].eclass in shared:
            return 0.0
        cost = self._info[term_id].node_cost
        stack = [(term_id, iter(self._terms[term_id].children))]
        while stack:
            current, pending = stack[-1]
            for child in pending:
                info = self._info[child]
                if info.eclass not in shared:
                    cost += info.node_cost
                    stack.append((child, iter(self._terms[child].children)))
                    break
            else:
                shared.add(self._info[current].eclass)
                stack.pop()
        return cost


class GlobalGreedyDagExtractor(Extractor):
    """Keeps the cheapest term per e-class, costing shared subterms once."""

    def extract(self, egraph: EGraph, roots: Sequence[ClassId]) -> ExtractionResult:
        termdag = TermDag()
        best_in_class: dict[ClassId, TermId] = {}
        nodes = dict(egraph.nodes)

        keep_going = True
        iteration = 0
        while keep_going:
            iteration += 1
            log.debug("iteration %d", iteration)
            keep_going = False

            for node_id, node in nodes.items():
                children = _child_terms(egraph, node, best_in_class)
                if children is None:
                    continue
                current = best_in_class.get(node.eclass)
                old_cost = termdag.total_cost(current) if current is not None else INFINITY
                candidate = termdag.make(node_id, node, children, old_cost)
                if candidate is not None and termdag.total_cost(candidate) < old_cost:
                    best_in_class[node.eclass] = candidate
                    keep_going = True

        result = ExtractionResult()
        for class_id, term_id in best_in_class.items():
            result.choose(class_id, termdag._info[term_id].node)
        return result


def _child_terms(
    egraph: EGraph, node: Node, best_in_class: dict[ClassId, TermId]
) -> list[TermId] | None:
    children = []
    for child in node.children:
        term = best_in_class.get(egraph.nid_to_cid(child))
        if term is None:
            return None
        children.append(term)
    return children