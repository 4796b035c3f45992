"""E-graphs in their serialized JSON form: nodes grouped into e-classes."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

NodeId = str
ClassId = str
Cost = float

PathLike = Union[str, Path]


@dataclass
class Node:
    """One e-node: an operator, its child nodes, its e-class and its cost."""

    op: str
    children: list[NodeId] = field(default_factory=list)
    eclass: ClassId = ""
    cost: Cost = 1.0

    def __post_init__(self) -> None:
        self.children = list(self.children)
        self.cost = float(self.cost)
        if math.isnan(self.cost):
            raise ValueError("node cost must not be NaN")


@dataclass
class EClass:
    """An e-class and the ids of its member nodes, in insertion order."""

    id: ClassId
    nodes: list[NodeId] = field(default_factory=list)


@dataclass
class EGraph:
    """A serialized e-graph: nodes by id, the root e-classes and class data."""

    nodes: dict[NodeId, Node] = field(default_factory=dict)
    root_eclasses: list[ClassId] = field(default_factory=list)
    class_data: dict[ClassId, Any] = field(default_factory=dict)
    _classes: dict[ClassId, EClass] | None = field(
        default=None, init=False, repr=False, compare=False
    )

    def __getitem__(self, node_id: NodeId) -> Node:
        return self.nodes[node_id]

    def add_node(self, node_id: NodeId, node: Node) -> None:
        """Add a node under a fresh id."""
        if node_id in self.nodes:
            raise ValueError(f"duplicate node id {node_id!r}")
        self.nodes[node_id] = node
        self._classes = None

    def classes(self) -> dict[ClassId, EClass]:
        """E-classes in order of first appearance among the nodes."""
        if self._classes is None:
            classes: dict[ClassId, EClass] = {}
            for node_id, node in self.nodes.items():
                classes.setdefault(node.eclass, EClass(node.eclass)).nodes.append(node_id)
            self._classes = classes
        return self._classes

    def nid_to_cid(self, node_id: NodeId) -> ClassId:
        return self.nodes[node_id].eclass

    def nid_to_class(self, node_id: NodeId) -> EClass:
        return self.classes()[self.nid_to_cid(node_id)]

    @classmethod
    def from_json(cls, text: str) -> EGraph:
        """Parse an e-graph from JSON text; raises ValueError when malformed."""
        data = json.loads(text)
        if not isinstance(data, dict) or not isinstance(data.get("nodes"), dict):
            raise ValueError("e-graph JSON must be an object with a 'nodes' object")
        egraph = cls()
        for node_id, raw in data["nodes"].items():
            egraph.add_node(str(node_id), _node_from_json(str(node_id), raw))
        roots = data.get("root_eclasses", [])
        if not isinstance(roots, list):
            raise ValueError("'root_eclasses' must be a list")
        egraph.root_eclasses = [str(root) for root in roots]
        class_data = data.get("class_data", {})
        if not isinstance(class_data, dict):
            raise ValueError("'class_data' must be an object")
        egraph.class_data = dict(class_data)
        return egraph

    @classmethod
    def from_json_file(cls, path: PathLike) -> EGraph:
        return cls.from_json(Path(path).read_text(encoding="utf-8"))

    def to_json(self) -> str:
        data = {
            "nodes": {
                node_id: {
                    "op": node.op,
                    "children": list(node.children),
                    "eclass": node.eclass,
                    "cost": node.cost,
                }
                for node_id, node in self.nodes.items()
            },
            "root_eclasses": list(self.root_eclasses),
            "class_data": dict(self.class_data),
        }
        return json.dumps(data, indent=2)

    def to_json_file(self, path: PathLike) -> None:
        Path(path).write_text(self.to_json(), encoding="utf-8")


def _node_from_json(node_id: NodeId, raw: Any) -> Node:
    if not isinstance(raw, dict):
        raise ValueError(f"node {node_id!r} must be an object")
    try:
        op = raw["op"]
        eclass = raw["eclass"]
    except KeyError as exc:
        raise ValueError(f"node {node_id!r} is missing {exc.args[0]!r}") from None
    children = raw.get("children", [])
    if not isinstance(children, list):
        raise ValueError(f"children of node {node_id!r} must be a list")
    try:
        cost = float(raw.get("cost", 1.0))
    except (TypeError, ValueError):
        raise ValueError(f"cost of node {node_id!r} is not a number") from None
    return Node(str(op), [str(child) for child in children], str(eclass), cost)