"""E-graph extraction: bottom-up and greedy DAG extractors, result checking and costing, and ILP helpers."""

__version__ = "0.1.0"