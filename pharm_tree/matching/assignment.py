"""
Maximum-weight assignment between the child subtrees of two extension cuts.
"""

from typing import List, Tuple

import numpy as np
from scipy.optimize import linear_sum_assignment


def solve_assignment(scores) -> List[Tuple[int, int]]:
    """
    Pair rows with columns so that the summed score is maximal.

    The solver is fed a matrix with no more rows than columns; wider inputs
    are transposed and the pairs mapped back, so callers can pass either
    orientation.

    Args:
        scores: 2D array-like of pair scores (R x C)

    Returns:
        List of (row, column) pairs, min(R, C) of them, sorted by row
    """
    matrix = np.asarray(scores, dtype=float)
    if matrix.ndim != 2 or matrix.shape[0] == 0 or matrix.shape[1] == 0:
        return []

    transpose = matrix.shape[0] > matrix.shape[1]
    if transpose:
        matrix = matrix.T

    rows, cols = linear_sum_assignment(matrix, maximize=True)
    if transpose:
        rows, cols = cols, rows
    return sorted(zip(rows.tolist(), cols.tolist()))
