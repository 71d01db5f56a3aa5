"""
Results of a tree match: node-set correspondences and their aggregation.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Collection, List, Sequence, Tuple

from ..config import NULL_MATCH_SCALING
from ..feature_node import FeatureNode, aggregate_similarity


@dataclass(frozen=True)
class FeatureMatch:
    """
    A correspondence between a node set of the first tree and a node set
    of the second tree. One side may be empty (a null match), in which case
    the similarity is 0.
    """

    nodes1: Tuple[int, ...]
    nodes2: Tuple[int, ...]
    sim: float
    sizes: Tuple[float, float]

    @property
    def size(self) -> float:
        return self.sizes[0] + self.sizes[1]

    @property
    def is_null_match(self) -> bool:
        return not self.nodes1 or not self.nodes2

    @classmethod
    def create(
        cls,
        nodes1: Collection[int],
        nodes2: Collection[int],
        tree_nodes1: Sequence[FeatureNode],
        tree_nodes2: Sequence[FeatureNode],
    ) -> "FeatureMatch":
        """
        Score a correspondence between two node index sets.

        Args:
            nodes1: Node indices in the first tree
            nodes2: Node indices in the second tree
            tree_nodes1: Nodes of the first tree
            tree_nodes2: Nodes of the second tree

        Returns:
            FeatureMatch with similarity and summed sizes of both sides
        """
        members1 = [tree_nodes1[i] for i in nodes1]
        members2 = [tree_nodes2[i] for i in nodes2]
        if not members1 or not members2:
            sim = 0.0
        else:
            sim = aggregate_similarity(members1, members2)
        sizes = (sum(n.size for n in members1), sum(n.size for n in members2))
        return cls(tuple(sorted(nodes1)), tuple(sorted(nodes2)), sim, sizes)


class TreeMatching:
    """
    A collection of FeatureMatches covering (parts of) two trees.

    The similarity follows Langer and Hoffmann, Pharmacophores and
    Pharmacophore Searches, p. 86: matches contribute in proportion to the
    mass they cover and a size mismatch between the trees is penalised.
    Call ``calculate`` after adding matches before reading ``sim``.
    """

    def __init__(self, matches: Sequence[FeatureMatch] = ()):
        self.matches: List[FeatureMatch] = list(matches)
        self.sim = 0.0
        self.size1 = 0.0
        self.size2 = 0.0

    def add_feature_match(self, match: FeatureMatch) -> None:
        self.matches.append(match)

    def add_matching(self, matching: "TreeMatching") -> None:
        self.matches.extend(matching.matches)

    def calculate(self) -> float:
        weighted = 0.0
        self.size1 = 0.0
        self.size2 = 0.0
        for match in self.matches:
            weighted += match.size * match.sim
            self.size1 += match.sizes[0]
            self.size2 += match.sizes[1]
        denom = (NULL_MATCH_SCALING * max(self.size1, self.size2)
                 + (1.0 - NULL_MATCH_SCALING) * min(self.size1, self.size2))
        self.sim = 0.5 * weighted / denom if denom > 0 else 0.0
        return self.sim

    def __len__(self) -> int:
        return len(self.matches)

    def __repr__(self) -> str:
        return f"TreeMatching(matches={len(self.matches)}, sim={self.sim:.4f})"
