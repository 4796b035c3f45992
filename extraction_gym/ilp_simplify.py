"""Simplifications of the extraction ILP applied before it is solved.

Each e-class is described by a :class:`ClassILP`: its activation column and,
per member node, the node's column, cost and the set of child e-classes.
Sets of e-classes are kept as insertion-ordered dicts whose values are None,
so that every pass visits them in a fixed order.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import MutableMapping, Sequence
from dataclasses import dataclass, field

from .egraph import ClassId, Cost, NodeId
from .extraction import EPSILON_ALLOWANCE, ExtractionResult

log = logging.getLogger(__name__)

ClassSet = dict[ClassId, None]
ClassVars = MutableMapping[ClassId, "ClassILP"]


@dataclass
class Config:
    """Which simplifications to apply and how to treat a solver timeout."""

    pull_up_costs: bool = True
    remove_self_loops: bool = True
    remove_high_cost_nodes: bool = True
    remove_more_expensive_subsumed_nodes: bool = True
    remove_unreachable_classes: bool = True
    pull_up_single_parent: bool = True
    take_intersection_of_children_in_class: bool = True
    move_min_cost_of_members_to_class: bool = False
    find_extra_roots: bool = True
    remove_empty_classes: bool = True
    return_improved_on_timeout: bool = True
    remove_single_zero_cost: bool = True


@dataclass(frozen=True)
class NodeILP:
    """One member node of a class as seen by the ILP."""

    variable: int
    cost: Cost
    member: NodeId
    children_classes: ClassSet


@dataclass
class ClassILP:
    """An e-class in the ILP: parallel lists describe its member nodes.

    ``children_classes`` starts as the child e-classes of each member but is
    edited by the simplifications, so it may later differ from the e-graph.
    """

    active: int
    members: list[NodeId] = field(default_factory=list)
    variables: list[int] = field(default_factory=list)
    costs: list[Cost] = field(default_factory=list)
    children_classes: list[ClassSet] = field(default_factory=list)

    def remove(self, index: int) -> None:
        """Drop the member at ``index`` from every parallel list."""
        for values in (self.variables, self.costs, self.members, self.children_classes):
            values.pop(index)

    def remove_node(self, node_id: NodeId) -> None:
        if node_id in self.members:
            self.remove(self.members.index(node_id))

    def member_count(self) -> int:
        return len(self.variables)

    def check(self) -> None:
        """Raise ValueError if the parallel lists differ in length."""
        lengths = {
            len(self.variables),
            len(self.costs),
            len(self.members),
            len(self.children_classes),
        }
        if len(lengths) != 1:
            raise ValueError("class ILP member lists differ in length")

    def as_nodes(self) -> list[NodeILP]:
        return [
            NodeILP(variable, cost, member, dict(children))
            for variable, cost, member, children in zip(
                self.variables, self.costs, self.members, self.children_classes
            )
        ]

    def children_of_node(self, node_id: NodeId) -> ClassSet:
        """Child classes of a member; ValueError if it is not a member."""
        return self.children_classes[self.members.index(node_id)]

    def variable_for_node(self, node_id: NodeId) -> int | None:
        if node_id in self.members:
            return self.variables[self.members.index(node_id)]
        return None


def _is_single_zero_cost_leaf(details: ClassILP) -> bool:
    return (
        len(details.children_classes) == 1
        and not details.children_classes[0]
        and details.costs[0] == 0.0
    )


def remove_single_zero_cost(
    vars: ClassVars, result: ExtractionResult, roots: Sequence[ClassId], config: Config
) -> None:
    """Choose classes holding one free leaf node and drop every reference to them."""
    if not config.remove_single_zero_cost:
        return

    zero = [
        class_id
        for class_id, details in vars.items()
        if _is_single_zero_cost_leaf(details) and class_id not in roots
    ]
    if not zero:
        return

    parents_of = child_to_parents(vars)
    removed = 0
    extras = 0
    for class_id in zero:
        for parent in parents_of.get(class_id, {}):
            for children in vars[parent].children_classes:
                if class_id in children:
                    del children[class_id]
                    removed += 1
            if _is_single_zero_cost_leaf(vars[parent]) and class_id not in roots:
                extras += 1

    for class_id in zero:
        result.choose(class_id, vars[class_id].members[0])
    for class_id in zero:
        del vars[class_id]

    log.info(
        "Zero cost & zero children removed: %d links removed: %d, extras: %d",
        len(zero),
        removed,
        extras,
    )


def child_to_parents(vars: ClassVars) -> dict[ClassId, ClassSet]:
    """Map each child class to the classes with a member pointing at it."""
    parents: dict[ClassId, ClassSet] = {}
    for class_id, details in vars.items():
        for children in details.children_classes:
            for child in children:
                parents.setdefault(child, {})[class_id] = None
    return parents


def remove_more_expensive_subsumed_nodes(vars: ClassVars, config: Config) -> None:
    """Drop nodes costing at least as much as a sibling whose children they include."""
    if not config.remove_more_expensive_subsumed_nodes:
        return

    removed = 0
    for details in vars.values():
        nodes = sorted(details.as_nodes(), key=lambda n: (len(n.children_classes), n.cost))
        i = 0
        while i < len(nodes):
            cheaper = nodes[i]
            for j in range(len(nodes) - 1, i, -1):
                other = nodes[j]
                if (
                    cheaper.cost <= other.cost
                    and cheaper.children_classes.keys() <= other.children_classes.keys()
                ):
                    details.remove_node(other.member)
                    del nodes[j]
                    removed += 1
            i += 1
    log.info("Removed more expensive subsumed nodes: %d", removed)


def remove_unreachable_classes(vars: ClassVars, roots: Sequence[ClassId], config: Config) -> None:
    """Drop classes that no root can reach."""
    if not config.remove_unreachable_classes:
        return
    keep = reachable(vars, roots)
    unreachable = [class_id for class_id in vars if class_id not in keep]
    for class_id in unreachable:
        del vars[class_id]
    log.info("Unreachable classes: %d", len(unreachable))


def remove_empty_classes(vars: ClassVars, config: Config) -> None:
    """Drop nodes pointing at classes with no members, repeating as classes empty."""
    if not config.remove_empty_classes:
        return

    empty = deque(class_id for class_id, details in vars.items() if details.member_count() == 0)
    parents_of = child_to_parents(vars)
    done: set[ClassId] = set()
    removed = 0

    while empty:
        class_id = empty.popleft()
        if class_id in done:
            continue
        done.add(class_id)
        for parent in parents_of.get(class_id, {}):
            details = vars[parent]
            for index in range(len(details.children_classes) - 1, -1, -1):
                if class_id in details.children_classes[index]:
                    details.remove(index)
                    removed += 1
            if details.member_count() == 0:
                empty.append(parent)

    log.info("Nodes removed that point to empty classes: %d", removed)


def find_extra_roots(vars: ClassVars, roots: list[ClassId], config: Config) -> None:
    """Append to ``roots`` every class that is a child of all members of a root."""
    if not config.find_extra_roots:
        return

    extra = 0
    i = 0
    # Roots appended here are examined in the same pass.
    while i < len(roots):
        details = vars[roots[i]]
        i += 1
        if not details.children_classes:
            continue
        common = dict(details.children_classes[0])
        for children in details.children_classes[1:]:
            common = {class_id: None for class_id in common if class_id in children}
        for class_id in common:
            if class_id not in roots:
                roots.append(class_id)
                extra += 1

    log.info("Extra roots discovered: %d", extra)


def pull_up_costs(vars: ClassVars, roots: Sequence[ClassId], config: Config) -> None:
    """Move the cheapest member cost of a single-parent class onto its parent's nodes."""
    if not config.pull_up_costs:
        return

    single_parent = classes_with_single_parent(vars)
    rounds = 0
    changed = True
    while rounds < 10 and changed:
        log.info("Classes with a single parent: %d", len(single_parent))
        changed = False
        rounds += 1
        for child, parent in single_parent.items():
            if child == parent or child in roots:
                continue
            child_details = vars[child]
            if child_details.member_count() == 0:
                continue

            min_cost = min(child_details.costs)
            if min_cost < 0.0:
                raise ValueError(f"class {child!r} has a negative cost")
            if min_cost == 0.0:
                continue
            changed = True

            child_details.costs = [cost - min_cost for cost in child_details.costs]
            parent_details = vars[parent]
            for index, children in enumerate(parent_details.children_classes):
                if child in children:
                    parent_details.costs[index] += min_cost


def pull_up_with_single_parent(
    vars: ClassVars, roots: Sequence[ClassId], config: Config
) -> None:
    """Move the children of a one-node, single-parent class up into that parent node."""
    if not config.pull_up_single_parent:
        return

    for _ in range(10):
        single_parent = classes_with_single_parent(vars)
        log.info("Classes with a single parent: %d", len(single_parent))

        pulled = 0
        for child, parent in single_parent.items():
            if child == parent or child in roots:
                continue
            child_details = vars[child]
            if len(child_details.members) != 1 or not child_details.children_classes[0]:
                continue

            parent_details = vars[parent]
            indices = [
                index
                for index, children in enumerate(parent_details.children_classes)
                if child in children
            ]
            if len(indices) != 1:
                continue

            parent_details.children_classes[indices[0]].update(
                child_details.children_classes[0]
            )
            child_details.children_classes[0].clear()
            pulled += 1

        log.info("Pull up count: %d", pulled)
        if pulled == 0:
            break


def remove_high_cost(
    vars: ClassVars, initial_result_cost: Cost, roots: Sequence[ClassId], config: Config
) -> None:
    """Drop nodes that alone would push the total above a known solution's cost.

    Raises ValueError if ``roots`` holds a class twice.
    """
    if not config.remove_high_cost_nodes:
        return
    if len(set(roots)) != len(roots):
        raise ValueError("all root classes must be unique")

    lowest_root_cost_sum = sum((min(vars[root].costs) for root in roots if vars[root].costs), 0.0)

    removed = 0
    for class_id, details in vars.items():
        is_root = class_id in roots
        for index in range(len(details.costs) - 1, -1, -1):
            this_root = min(details.costs) if is_root else 0.0
            limit = initial_result_cost - lowest_root_cost_sum + this_root + EPSILON_ALLOWANCE
            if details.costs[index] > limit:
                details.remove(index)
                removed += 1
    log.info("Removed high-cost nodes: %d", removed)


def remove_with_loops(vars: ClassVars, roots: Sequence[ClassId], config: Config) -> None:
    """Drop nodes with a child in their own class, or in the only root class."""
    if not config.remove_self_loops:
        return

    sole_root = roots[0] if len(roots) == 1 else None
    removed = 0
    for class_id, details in vars.items():
        for index in range(len(details.children_classes) - 1, -1, -1):
            children = details.children_classes[index]
            if class_id in children or (sole_root is not None and sole_root in children):
                details.remove(index)
                removed += 1
    log.info("Omitted looping nodes: %d", removed)


def classes_with_single_parent(vars: ClassVars) -> dict[ClassId, ClassId]:
    """Map each class referenced from exactly one parent class to that parent."""
    return {
        child: next(iter(parents))
        for child, parents in child_to_parents(vars).items()
        if len(parents) == 1
    }


def reachable(vars: ClassVars, classes: Sequence[ClassId]) -> set[ClassId]:
    """Classes reachable from ``classes``; KeyError if one is not in ``vars``."""
    seen: set[ClassId] = set()
    todo = list(reversed(classes))
    while todo:
        class_id = todo.pop()
        if class_id in seen:
            continue
        seen.add(class_id)
        for children in reversed(vars[class_id].children_classes):
            todo.extend(reversed(list(children)))
    return seen