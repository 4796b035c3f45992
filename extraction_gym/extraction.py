"""Extraction results, their validation and their costs."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum

from .egraph import ClassId, Cost, EGraph, Node, NodeId

INFINITY: Cost = math.inf

# Allowance for floating point values to be considered equal.
EPSILON_ALLOWANCE = 0.00001


class Extractor(ABC):
    """Chooses one node for each e-class needed by the roots."""

    @abstractmethod
    def extract(self, egraph: EGraph, roots: Sequence[ClassId]) -> ExtractionResult:
        """Return a choice of node for the e-classes of the e-graph."""


class _Status(Enum):
    DOING = "doing"
    DONE = "done"


@dataclass
class ExtractionResult:
    """A mapping from e-class to the node chosen for it."""

    choices: dict[ClassId, NodeId] = field(default_factory=dict)

    def choose(self, class_id: ClassId, node_id: NodeId) -> None:
        self.choices[class_id] = node_id

    def check(self, egraph: EGraph) -> None:
        """Raise ValueError unless this is a complete, acyclic extraction."""
        if not egraph.root_eclasses:
            raise ValueError("e-graph has no root e-classes")

        for cid in egraph.root_eclasses:
            if cid not in self.choices:
                raise ValueError(f"root e-class {cid!r} has no chosen node")

        for cid, nid in self.choices.items():
            if nid not in egraph.nodes:
                raise ValueError(f"node {nid!r} chosen for {cid!r} is not in the e-graph")
            if egraph[nid].eclass != cid:
                raise ValueError(f"node {nid!r} does not belong to e-class {cid!r}")

        todo = list(egraph.root_eclasses)
        visited: set[ClassId] = set()
        while todo:
            cid = todo.pop()
            if cid in visited:
                continue
            visited.add(cid)
            if cid not in self.choices:
                raise ValueError(f"e-class {cid!r} is needed but has no chosen node")
            todo.extend(egraph.nid_to_cid(child) for child in egraph[self.choices[cid]].children)

        if self.find_cycles(egraph, egraph.root_eclasses):
            raise ValueError("extraction contains a cycle")

    def find_cycles(self, egraph: EGraph, roots: Sequence[ClassId]) -> list[ClassId]:
        """E-classes reached again while still being explored from the roots."""
        status: dict[ClassId, _Status] = {}
        cycles: list[ClassId] = []

        def visit(cid: ClassId) -> Iterator[NodeId] | None:
            state = status.get(cid)
            if state is _Status.DONE:
                return None
            if state is _Status.DOING:
                cycles.append(cid)
                return None
            status[cid] = _Status.DOING
            return iter(egraph[self.choices[cid]].children)

        for root in roots:
            children = visit(root)
            if children is None:
                continue
            stack = [(root, children)]
            while stack:
                cid, pending = stack[-1]
                for child in pending:
                    child_cid = egraph.nid_to_cid(child)
                    grandchildren = visit(child_cid)
                    if grandchildren is not None:
                        stack.append((child_cid, grandchildren))
                        break
                else:
                    status[cid] = _Status.DONE
                    stack.pop()
        return cycles

    def tree_cost(self, egraph: EGraph, roots: Sequence[ClassId]) -> Cost:
        """Cost of the extracted terms with shared subterms counted each time."""
        node_roots = [self.choices[cid] for cid in roots]
        memo: dict[ClassId, Cost] = {}
        cost = 0.0
        for nid in node_roots:
            cost += self._class_tree_cost(egraph, egraph.nid_to_cid(nid), memo)
        return cost

    def _class_tree_cost(self, egraph: EGraph, start: ClassId, memo: dict[ClassId, Cost]) -> Cost:
        in_progress: set[ClassId] = set()
        stack = [(start, False)]
        while stack:
            cid, expanded = stack.pop()
            if cid in memo:
                continue
            node = egraph[self.choices[cid]]
            if expanded:
                children_cost = 0.0
                for child in node.children:
                    children_cost += memo[egraph.nid_to_cid(child)]
                memo[cid] = node.cost + children_cost
                in_progress.discard(cid)
                continue
            if cid in in_progress:
                raise ValueError(f"extraction has a cycle through {cid!r}")
            in_progress.add(cid)
            stack.append((cid, True))
            for child in node.children:
                child_cid = egraph.nid_to_cid(child)
                if child_cid in memo:
                    continue
                if child_cid in in_progress:
                    raise ValueError(f"extraction has a cycle through {child_cid!r}")
                stack.append((child_cid, False))
        return memo[start]

    def dag_cost(self, egraph: EGraph, roots: Sequence[ClassId]) -> Cost:
        """Cost of the extracted terms with each e-class counted once."""
        costs: dict[ClassId, Cost] = {}
        todo = list(roots)
        while todo:
            cid = todo.pop()
            node = egraph[self.choices[cid]]
            if cid in costs:
                continue
            costs[cid] = node.cost
            todo.extend(egraph.nid_to_cid(child) for child in node.children)
        return sum(costs.values(), 0.0)

    def node_sum_cost(self, egraph: EGraph, node: Node, costs: Mapping[ClassId, Cost]) -> Cost:
        """The node's cost plus the known costs of its children's e-classes."""
        children_cost = sum(
            (costs.get(egraph.nid_to_cid(child), INFINITY) for child in node.children), 0.0
        )
        return node.cost + children_cost