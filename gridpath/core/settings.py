#!/usr/bin/env python3
# gridpath/core/settings.py
import os
from typing import Dict, Union

# Terrain codes
FREE = 0
BLOCKED = 1
PENALIZED = 2

BLOCK = "BLOCK"  # weights marker for impassable cells
DEFAULT_WEIGHTS: Dict[str, Union[int, str]] = {
    str(BLOCKED): BLOCK,
    str(PENALIZED): 3,
}

# Movement costs
STRAIGHT_COST = 1.0
DIAGONAL_EXTRA = 0.4  # 1.0 + 0.4 ~ sqrt(2)

# Heuristic modes:
#   admissible -> measured from the candidate; Euclidean (diag) / Manhattan (4-dir)
#   reference  -> measured from the expanding node; Euclidean (diag) / |dx| - |dy| (4-dir)
# Only h changes between modes. Step costs always come from the weights table,
# so a code-2 cell costs 1 + 3 to enter in both.
HEURISTICS = ("admissible", "reference")
DEFAULT_HEURISTIC = "admissible"

ENV_HEURISTIC = "GRIDPATH_HEURISTIC"


def resolve_heuristic() -> str:
    """ENV: GRIDPATH_HEURISTIC=admissible|reference. Unknown values fall back to admissible."""
    mode = os.getenv(ENV_HEURISTIC, DEFAULT_HEURISTIC).lower()
    return mode if mode in HEURISTICS else DEFAULT_HEURISTIC
