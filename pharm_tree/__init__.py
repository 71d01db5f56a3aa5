"""
Pharmacophore Tree Similarity Package

Compares molecules reduced to trees of pharmacophoric feature nodes and
scores how closely their shape and chemistry correspond.
"""

from .feature_node import FeatureNode, aggregate_similarity
from .tree import PharmacophoreTree, SubTree
from .matching import TreeMatcher, FeatureMatch, TreeMatching
from .main import PharmacophoreTreeComparator, similarity

__version__ = "1.0.0"

__all__ = [
    'FeatureNode',
    'PharmacophoreTree',
    'SubTree',
    'TreeMatcher',
    'FeatureMatch',
    'TreeMatching',
    'PharmacophoreTreeComparator',
    'aggregate_similarity',
    'similarity'
]
