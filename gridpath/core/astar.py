#!/usr/bin/env python3
"""
A* over a terrain-cost grid, one expansion per step().

API:
- AStarAlgo(grid, start, diag) - begin(end) - step() -> StepResult
- find_path(end) -> SearchResult, runs begin()/step() to completion

Costs:
- 1.0 per step, +0.4 for a diagonal step, + the terrain add-on of the cell entered.

Frontier order:
- (f, seq, node): lower f, then FIFO by discovery seq. Same order as re-sorting
  a list stably by f after every expansion.

Cells already in the open or closed set are skipped, never re-parented, so the
result is not guaranteed optimal when a cheaper route to a discovered cell
shows up later.

heuristic="reference" only swaps h for the historical estimate (measured from
the expanding node, |dx| - |dy| without diagonals). Costs are the same in both
modes: a code-2 cell costs 1 + 3 to enter, per the grid's weights table.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, Tuple, List, Optional, Set
import heapq
import logging
import math

from gridpath.core.settings import (
    DIAGONAL_EXTRA,
    HEURISTICS,
    STRAIGHT_COST,
    resolve_heuristic,
)
from gridpath.core.types import (
    CANCELLED,
    FOUND,
    INVALID,
    NO_PATH,
    Cell,
    SearchNode,
    SearchResult,
    StepResult,
    TerrainGrid,
)

logger = logging.getLogger(__name__)

OFFSETS = [(dx, dy) for dx in (-1, 0, 1) for dy in (-1, 0, 1) if (dx, dy) != (0, 0)]


@dataclass
class AStarAlgo:
    grid: TerrainGrid
    start: Cell
    diag: bool = False
    heuristic: Optional[str] = None
    name: str = "A*"

    # Internal state
    nodes: List[SearchNode] = field(default_factory=list)            # arena, parents are indices
    open_pq: List[Tuple[float, int, int]] = field(default_factory=list)  # (f, seq, node index)
    open_index: Dict[Cell, int] = field(default_factory=dict)
    closed_set: Set[Cell] = field(default_factory=set)
    current: Optional[int] = None
    goal_cell: Optional[Cell] = None
    popped_count: int = 0
    done: bool = False
    no_path: bool = False
    invalid_reason: Optional[str] = None
    start_error: Optional[str] = None
    seq: int = 0  # monotonic counter for PQ stability

    def __post_init__(self) -> None:
        self.start = (int(self.start[0]), int(self.start[1]))
        if self.heuristic is None:
            self.heuristic = resolve_heuristic()
        elif self.heuristic not in HEURISTICS:
            raise ValueError(f"unknown heuristic {self.heuristic!r}, expected one of {HEURISTICS}")

        self.start_error = self._check_cell(self.start, "source")
        if self.start_error:
            logger.warning(self.start_error)

    # -------------------- lifecycle --------------------

    def reset(self) -> None:
        """Drop every node and both sets; the engine can then begin() again."""
        self.nodes.clear()
        self.open_pq.clear()
        self.open_index.clear()
        self.closed_set.clear()
        self.current = None
        self.goal_cell = None
        self.popped_count = 0
        self.done = False
        self.no_path = False
        self.invalid_reason = None
        self.seq = 0

    def begin(self, end: Cell) -> StepResult:
        """Seed a search towards end: close the start cell and open its neighbors."""
        self.reset()
        end = (int(end[0]), int(end[1]))

        reason = self.start_error or self._check_cell(end, "destination")
        if reason:
            if reason is not self.start_error:
                logger.warning(reason)
            self.invalid_reason = reason
            return StepResult(status="invalid", metrics=self._metrics())

        self.goal_cell = end
        self.current = self._add_node(self.start, None, 0.0, 0.0)
        self.closed_set.add(self.start)
        self.popped_count = 1

        if self.start == end:
            self.done = True
            path = self._reconstruct_path(self.current)
            return StepResult(status="done", closed=[self.start], current=self.start, path=path,
                              metrics=self._metrics(path))

        opened = self._expand(self.current)
        return StepResult(status="running", opened=opened, closed=[self.start],
                          current=self.start, metrics=self._metrics())

    # -------------------- helpers --------------------

    def _bump(self) -> int:
        self.seq += 1
        return self.seq

    def _check_cell(self, c: Cell, label: str) -> Optional[str]:
        if not self.grid.in_bounds(c):
            return f"{label} {c} is invalid (outside {self.grid.width}x{self.grid.height} grid)"
        if self.grid.is_block(c):
            return f"{label} {c} is blocked"
        return None

    def _add_node(self, pos: Cell, parent: Optional[int], g: float, h: float) -> int:
        self.nodes.append(SearchNode(pos, parent, g, h))
        return len(self.nodes) - 1

    def _h(self, frm: Cell, cand: Cell) -> float:
        gx, gy = self.goal_cell
        x, y = frm if self.heuristic == "reference" else cand
        dx, dy = x - gx, y - gy
        if self.diag:
            return math.hypot(dx, dy)
        if self.heuristic == "reference":
            return abs(dx) - abs(dy)
        return abs(dx) + abs(dy)

    def _expand(self, idx: int) -> List[Cell]:
        """Open every admissible neighbor of nodes[idx]; returns the cells opened."""
        cur = self.nodes[idx]
        x, y = cur.position
        opened: List[Cell] = []
        for dx, dy in OFFSETS:
            diagonal = dx != 0 and dy != 0
            if diagonal and not self.diag:
                continue
            n = (x + dx, y + dy)
            if not self.grid.in_bounds(n) or self.grid.is_block(n):
                continue
            if n in self.open_index or n in self.closed_set:
                continue

            g = cur.g + STRAIGHT_COST + self.grid.add_on(n)
            if diagonal:
                g += DIAGONAL_EXTRA
            h = self._h(cur.position, n)

            node = self._add_node(n, idx, g, h)
            heapq.heappush(self.open_pq, (g + h, self._bump(), node))
            self.open_index[n] = node
            opened.append(n)
        return opened

    def _reconstruct_path(self, idx: int) -> List[SearchNode]:
        path: List[SearchNode] = []
        cur: Optional[int] = idx
        while cur is not None:
            node = self.nodes[cur]
            path.append(node)
            cur = node.parent
        path.reverse()
        return path

    # -------------------- main stepping logic --------------------

    def step(self) -> StepResult:
        """
        Run ONE expansion:
          - Pop the lowest (f, seq) node and close it.
          - If it is the goal, reconstruct and finish.
          - Else open its neighbors.
        """
        if self.invalid_reason:
            return StepResult(status="invalid", metrics=self._metrics())

        if self.goal_cell is None:
            return StepResult(status="idle", metrics={"algo": self.name})

        if self.done:
            path = self._reconstruct_path(self.current)
            return StepResult(status="done", path=path, metrics=self._metrics(path))

        if self.no_path:
            return StepResult(status="no_path", metrics=self._metrics())

        if not self.open_pq:
            self.no_path = True
            logger.debug("no path from %s to %s after %d expansions",
                         self.start, self.goal_cell, self.popped_count)
            return StepResult(status="no_path", metrics=self._metrics())

        _, _, idx = heapq.heappop(self.open_pq)
        u = self.nodes[idx].position
        del self.open_index[u]
        self.closed_set.add(u)
        self.current = idx
        self.popped_count += 1

        if u == self.goal_cell:
            self.done = True
            path = self._reconstruct_path(idx)
            logger.debug("path %s -> %s: %d nodes, cost %.2f",
                         self.start, u, len(path), path[-1].g)
            return StepResult(status="done", closed=[u], current=u, path=path,
                              metrics=self._metrics(path))

        opened = self._expand(idx)
        return StepResult(status="running", opened=opened, closed=[u], current=u,
                          metrics=self._metrics())

    def find_path(self, end: Cell,
                  should_stop: Optional[Callable[[], bool]] = None) -> SearchResult:
        """Search from start to end. should_stop is polled once per expansion."""
        res = self.begin(end)
        while res.status == "running":
            if should_stop is not None and should_stop():
                logger.debug("search %s -> %s cancelled", self.start, self.goal_cell)
                return SearchResult(CANCELLED, metrics=self._metrics())
            res = self.step()

        if res.status == "done":
            return SearchResult(FOUND, path=res.path, metrics=res.metrics)
        if res.status == "invalid":
            return SearchResult(INVALID, reason=self.invalid_reason, metrics=res.metrics)
        return SearchResult(NO_PATH, metrics=res.metrics)

    # -------------------- metrics --------------------

    def _metrics(self, path: Optional[List[SearchNode]] = None) -> dict:
        return {
            "algo": self.name,
            "popped": self.popped_count,
            "open_size": len(self.open_index),
            "closed_count": len(self.closed_set),
            "path_len": len(path) if path else 0,
            "total_cost": path[-1].g if path else None,
        }
