"""A small mixed-integer linear programming model solved with HiGHS."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum

import numpy as np
from scipy.optimize import Bounds, LinearConstraint, milp
from scipy.sparse import coo_matrix


class SolveStatus(Enum):
    FINISHED = "finished"
    INFEASIBLE = "infeasible"
    UNBOUNDED = "unbounded"
    STOPPED = "stopped"


@dataclass(frozen=True)
class Solution:
    """Outcome of a solve: status, objective and column values if any."""

    status: SolveStatus
    objective: float
    values: tuple[float, ...] | None

    @property
    def finished(self) -> bool:
        return self.status is SolveStatus.FINISHED

    def col(self, column: int) -> float:
        if self.values is None:
            raise ValueError(f"no solution available (status {self.status.value})")
        return self.values[column]


@dataclass
class _Column:
    lower: float
    upper: float
    integer: bool
    objective: float = 0.0


@dataclass
class _Row:
    lower: float = -math.inf
    upper: float = math.inf
    weights: dict[int, float] = field(default_factory=dict)


_STATUS = {
    0: SolveStatus.FINISHED,
    1: SolveStatus.STOPPED,
    2: SolveStatus.INFEASIBLE,
    3: SolveStatus.UNBOUNDED,
}


class Model:
    """Columns and rows of a minimisation problem; columns and rows are ints."""

    def __init__(self) -> None:
        self._cols: list[_Column] = []
        self._rows: list[_Row] = []

    def add_col(self) -> int:
        """A continuous column bounded below by zero."""
        self._cols.append(_Column(0.0, math.inf, False))
        return len(self._cols) - 1

    def add_binary(self) -> int:
        self._cols.append(_Column(0.0, 1.0, True))
        return len(self._cols) - 1

    def add_row(self) -> int:
        """A row with no bounds and no weights."""
        self._rows.append(_Row())
        return len(self._rows) - 1

    def set_weight(self, row: int, column: int, value: float) -> None:
        self._col(column)
        self._row(row).weights[column] = float(value)

    def set_row_equal(self, row: int, value: float) -> None:
        target = self._row(row)
        target.lower = target.upper = float(value)

    def set_row_upper(self, row: int, value: float) -> None:
        self._row(row).upper = float(value)

    def set_row_lower(self, row: int, value: float) -> None:
        self._row(row).lower = float(value)

    def set_col_lower(self, column: int, value: float) -> None:
        self._col(column).lower = float(value)

    def set_col_upper(self, column: int, value: float) -> None:
        self._col(column).upper = float(value)

    def set_obj_coeff(self, column: int, value: float) -> None:
        self._col(column).objective = float(value)

    def solve(self, time_limit: float | None = None) -> Solution:
        """Minimise the objective, within ``time_limit`` seconds if given."""
        if any(col.lower > col.upper for col in self._cols) or any(
            row.lower > row.upper for row in self._rows
        ):
            return Solution(SolveStatus.INFEASIBLE, math.inf, None)

        if not self._cols:
            feasible = all(row.lower <= 0.0 <= row.upper for row in self._rows)
            if feasible:
                return Solution(SolveStatus.FINISHED, 0.0, ())
            return Solution(SolveStatus.INFEASIBLE, math.inf, None)

        objective = np.array([col.objective for col in self._cols])
        integrality = np.array([1 if col.integer else 0 for col in self._cols])
        bounds = Bounds(
            np.array([col.lower for col in self._cols]),
            np.array([col.upper for col in self._cols]),
        )
        options: dict[str, object] = {"disp": False}
        if time_limit is not None:
            options["time_limit"] = float(max(time_limit, 0.0))

        result = milp(
            objective,
            integrality=integrality,
            bounds=bounds,
            constraints=self._constraints(),
            options=options,
        )

        status = _STATUS.get(result.status, SolveStatus.STOPPED)
        if result.x is None:
            return Solution(status, math.inf, None)
        values = np.where(integrality == 1, np.round(result.x), result.x)
        return Solution(status, float(objective @ values), tuple(float(v) for v in values))

    def _constraints(self) -> LinearConstraint | None:
        if not self._rows:
            return None
        data: list[float] = []
        row_index: list[int] = []
        col_index: list[int] = []
        for index, row in enumerate(self._rows):
            for column, weight in row.weights.items():
                data.append(weight)
                row_index.append(index)
                col_index.append(column)
        matrix = coo_matrix(
            (data, (row_index, col_index)), shape=(len(self._rows), len(self._cols))
        ).tocsr()
        return LinearConstraint(
            matrix,
            np.array([row.lower for row in self._rows]),
            np.array([row.upper for row in self._rows]),
        )

    def _col(self, column: int) -> _Column:
        if not 0 <= column < len(self._cols):
            raise IndexError(f"no column {column}")
        return self._cols[column]

    def _row(self, row: int) -> _Row:
        if not 0 <= row < len(self._rows):
            raise IndexError(f"no row {row}")
        return self._rows[row]