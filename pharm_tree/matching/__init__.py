"""
Recursive match-search between pharmacophore trees
--------------------------------------------------

* Initial splits scored by similarity and cut balance
* Extension matches explored best-first, child subtrees paired optimally
* Memoized per (edge, direction) pair of the two trees
"""

from .assignment import solve_assignment
from .matches import FeatureMatch, TreeMatching
from .core import TreeMatcher

__all__ = [
    'TreeMatcher',
    'FeatureMatch',
    'TreeMatching',
    'solve_assignment'
]
