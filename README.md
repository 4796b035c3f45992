# extraction-gym

A library of e-graph extraction algorithms. Given a serialized e-graph (nodes,
their e-classes, costs and children, plus the root e-classes), an extractor
picks one node for every e-class. The result can be checked for validity and
scored two ways:

- **tree cost**: the cost of the extracted terms as trees, where shared
  sub-terms are counted every time they appear;
- **DAG cost**: the cost where each chosen e-class is counted once.

## Installing

```
pip install .
```

For running the test suite:

```
pip install ".[test]"
pytest
```

## E-graphs

`extraction_gym.egraph` holds the data model:

- `Node(op, children, eclass, cost)`: a node; a NaN cost raises `ValueError`.
- `EClass(id, nodes)`: an e-class and its member node ids.
- `EGraph`: `nodes` by id, `root_eclasses` and `class_data`. `add_node`
  rejects duplicate ids; `classes()` groups nodes by e-class in order of first
  appearance; `nid_to_cid` and `nid_to_class` look up a node's e-class;
  `egraph[node_id]` returns the node.
- `EGraph.from_json(text)` / `from_json_file(path)` read the JSON form, an
  object with `nodes`, and optionally `root_eclasses` and `class_data`;
  malformed input raises `ValueError`. `to_json()` / `to_json_file(path)`
  write it back.

## Extractors

Every extractor subclasses `extraction_gym.extraction.Extractor` and has
`extract(egraph, roots)`, returning an `ExtractionResult` whose `choices` map
each e-class id to the chosen node id.

- `bottom_up.BottomUpExtractor` revisits every node until no e-class gets
  cheaper; it finds extractions with optimal tree cost.
- `faster_bottom_up.FasterBottomUpExtractor` gives the same tree costs, starting
  from the leaves and revisiting only nodes whose child e-classes got cheaper
  (using the `worklist.UniqueQueue` FIFO, which holds each element at most once).
- `greedy_dag.GreedyDagExtractor` picks for each e-class the node whose set of
  reachable e-classes costs least, counting shared e-classes once.
- `global_greedy_dag.GlobalGreedyDagExtractor` keeps the cheapest term per
  e-class in a `TermDag` of hash-consed terms that know which e-classes they
  reach, so shared subterms are costed once.

The greedy DAG extractors are not guaranteed to find the optimal DAG cost.

## Checking and costing results

`ExtractionResult` offers:

- `check(egraph)`: raises `ValueError` unless every root and every e-class they
  need has a chosen node of the right e-class, and the choice is acyclic;
- `find_cycles(egraph, roots)`: e-classes reached again while still being
  explored;
- `tree_cost(egraph, roots)` (raises `ValueError` on a cycle) and
  `dag_cost(egraph, roots)`;
- `node_sum_cost(egraph, node, costs)`: a node's cost plus the known costs of
  its child e-classes, infinity for unknown ones.

`extraction.EPSILON_ALLOWANCE` is the tolerance used when comparing costs.

```python
from extraction_gym.egraph import EGraph
from extraction_gym.faster_bottom_up import FasterBottomUpExtractor

egraph = EGraph.from_json_file("egraph.json")
result = FasterBottomUpExtractor().extract(egraph, egraph.root_eclasses)

result.check(egraph)
print(result.tree_cost(egraph, egraph.root_eclasses))
print(result.dag_cost(egraph, egraph.root_eclasses))
```

## ILP building blocks

- `milp.Model` builds a minimisation problem from integer column and row
  handles: `add_col()` (continuous, lower bound 0), `add_binary()`,
  `add_row()`, `set_weight`, `set_row_equal/upper/lower`,
  `set_col_lower/upper` and `set_obj_coeff`. `solve(time_limit=None)` runs
  SciPy's mixed-integer solver and returns a `Solution` with a `SolveStatus`
  (`FINISHED`, `STOPPED`, `INFEASIBLE`, `UNBOUNDED`), the objective, and
  `col(column)` for column values.
- `ilp_simplify` describes e-classes as `ClassILP` records and provides passes
  that shrink an extraction ILP before solving, each switched by a field of
  `Config`: removing looping, high-cost, subsumed and unreachable nodes or
  classes, removing nodes that point at empty classes, pulling costs and
  children up into single-parent classes, settling classes that hold one free
  leaf node, and finding extra roots.

## Random e-graphs

`random_egraph.generate_random_egraph(rng=None)` makes a random e-graph whose
roots always have a loop-free extraction; pass a `random.Random` for
reproducible graphs. It is handy for comparing extractors against each other.

## What is not included

- There is no command-line program; extractors are used from Python.
- There is no extractor that solves for optimal DAG cost: `milp` and
  `ilp_simplify` provide the model and the simplification passes, but no
  `Extractor` built on them.