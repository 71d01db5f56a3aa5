from __future__ import annotations
from typing import List, Sequence, Tuple

import numpy as np


def ratio_out_of_bounds(size1: float, size2: float, bound: float) -> bool:
    """
    Check whether size1/size2 lies outside [1/bound, bound].

    A positive size against a zero size is out of bounds, two zero sizes
    are not (they compare as undefined rather than imbalanced).
    """
    if size2 == 0.0:
        return size1 > 0.0
    ratio = size1 / size2
    return ratio > bound or ratio < 1.0 / bound


def retrieve_highest_values(scores, k: int) -> List[Tuple[float, int, int]]:
    """
    Find the k highest entries of a 2D score array without sorting all of it.

    Entries are kept in a fixed-size buffer ordered from best to worst; every
    candidate better than the current worst is placed by binary search and
    the tail is shifted down by one. Equal values keep row-major order.

    Args:
        scores: 2D array-like of scores (R x C)
        k: Number of entries to retrieve

    Returns:
        List of (value, row, column) tuples, highest first. Holds
        min(k, R*C) entries.
    """
    if k < 0:
        raise ValueError(f"k must be non-negative, got {k}")
    matrix = np.asarray(scores, dtype=float)
    if matrix.size == 0 or k == 0:
        return []
    matrix = matrix.reshape(matrix.shape[0], -1)

    k = min(k, matrix.size)
    values = np.full(k, -np.inf)
    cells: List[Tuple[int, int]] = [(-1, -1)] * k
    filled = 0

    for row in range(matrix.shape[0]):
        for col in range(matrix.shape[1]):
            value = matrix[row, col]
            if filled == k and value <= values[k - 1]:
                continue
            pos = _insertion_point(values, filled, value)
            last = min(filled, k - 1)
            # shift the tail down, dropping the worst entry when full
            values[pos + 1:last + 1] = values[pos:last]
            cells[pos + 1:last + 1] = cells[pos:last]
            values[pos] = value
            cells[pos] = (row, col)
            filled = min(filled + 1, k)

    return [(float(values[i]), cells[i][0], cells[i][1]) for i in range(filled)]


def _insertion_point(values: Sequence[float], filled: int, value: float) -> int:
    # first position holding a strictly smaller value
    lo, hi = 0, filled
    while lo < hi:
        mid = (lo + hi) // 2
        if values[mid] >= value:
            lo = mid + 1
        else:
            hi = mid
    return lo
