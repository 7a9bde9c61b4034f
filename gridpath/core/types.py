#!/usr/bin/env python3
# gridpath/core/types.py
from dataclasses import dataclass, field
from typing import List, Tuple, Optional, Dict, Any, Sequence, Union

from gridpath.core.settings import BLOCK, DEFAULT_WEIGHTS

Cell = Tuple[int, int]  # (x, y) == (col, row)


@dataclass(frozen=True)
class TerrainGrid:
    width: int
    height: int
    cells: Tuple[Tuple[int, ...], ...]  # [row][col]
    weights: Dict[str, Union[int, str]] = field(default_factory=lambda: dict(DEFAULT_WEIGHTS))

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[int]],
                  weights: Optional[Dict[str, Union[int, str]]] = None) -> "TerrainGrid":
        """
        Build a grid from row-major integer data.

        Raises ValueError if the rows are not rectangular, or if a code or a
        weight would give a negative add-on (g must never decrease along a path).
        """
        if not rows or not rows[0]:
            raise ValueError("grid must have at least one row and one column")
        width = len(rows[0])
        if any(len(r) != width for r in rows):
            raise ValueError("grid rows must all have the same length")
        table = dict(DEFAULT_WEIGHTS)
        if weights:
            table.update({str(k): v for k, v in weights.items()})
        for k, v in table.items():
            if v != BLOCK and int(v) < 0:
                raise ValueError(f"weight for code {k} must be >= 0 or {BLOCK!r}, got {v!r}")
        cells = tuple(tuple(int(v) for v in r) for r in rows)
        for y, r in enumerate(cells):
            for x, v in enumerate(r):
                if v < 0:
                    raise ValueError(f"negative terrain code {v} at {(x, y)}")
        return cls(width, len(rows), cells, table)

    def in_bounds(self, c: Cell) -> bool:
        x, y = c
        return 0 <= x < self.width and 0 <= y < self.height

    def code_at(self, c: Cell) -> int:
        x, y = c
        return self.cells[y][x]

    def is_block(self, c: Cell) -> bool:
        return self.weights.get(str(self.code_at(c))) == BLOCK

    def add_on(self, c: Cell) -> float:
        """Extra cost for entering c on top of the step cost."""
        v = self.code_at(c)
        w = self.weights.get(str(v), v)
        if w == BLOCK:
            raise ValueError(f"Asked cost of a BLOCK cell {c}")
        return float(w)


@dataclass(frozen=True)
class SearchNode:
    position: Cell
    parent: Optional[int]  # index into the engine's node arena
    g: float
    h: float

    @property
    def f(self) -> float:
        return self.g + self.h


@dataclass
class StepResult:
    status: str                   # "idle" | "running" | "done" | "no_path" | "invalid"
    opened: List[Cell] = field(default_factory=list)
    closed: List[Cell] = field(default_factory=list)
    current: Optional[Cell] = None
    path: Optional[List[SearchNode]] = None
    metrics: Dict[str, Any] = field(default_factory=dict)


FOUND = "found"
NO_PATH = "no_path"
INVALID = "invalid"
CANCELLED = "cancelled"


@dataclass
class SearchResult:
    """Outcome of a full search: found / no_path / invalid / cancelled."""
    status: str
    path: Optional[List[SearchNode]] = None
    reason: Optional[str] = None
    metrics: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == FOUND

    @property
    def cells(self) -> List[Cell]:
        return [n.position for n in self.path] if self.path else []

    @property
    def cost(self) -> Optional[float]:
        return self.path[-1].g if self.path else None

    def waypoints(self) -> List[Tuple[Cell, float]]:
        return [(n.position, n.g) for n in self.path] if self.path else []
