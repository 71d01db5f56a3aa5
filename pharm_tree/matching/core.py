"""
Match-search between two PharmacophoreTrees.
"""

from __future__ import annotations
from typing import Collection, List, Optional, Sequence, Set, Tuple
import logging

import numpy as np

from ..config import (
    ALPHA,
    CUT_LEFT,
    CUT_RIGHT,
    EXTENSION_MATCHES,
    INITIAL_SPLITS,
    MATCH_BALANCE,
    MATCH_NODE_NR_LIMIT,
    MATCH_SIZE_LIMIT,
    SIMILARITY_SCALING_SPLIT_SCORE,
)
from ..feature_node import get_similarity
from ..tree import PharmacophoreTree, SubTree
from ..utils import ratio_out_of_bounds, retrieve_highest_values
from .assignment import solve_assignment
from .matches import FeatureMatch, TreeMatching

logger = logging.getLogger(__name__)

# memo marker for a subtree pair whose extension cuts could not be matched
_NO_MATCH = object()


def _memo_index(subtree: SubTree) -> int:
    return 2 * subtree.cut_edge + (0 if subtree.direction == CUT_LEFT else 1)


class TreeMatcher:
    """
    Finds a high-scoring matching of nodes between two PharmacophoreTrees
    with the "match-search" algorithm of Rarey and Dixon
    (DOI:10.1023/a:1008068904628).

    A set of initial splits (one edge cut in each tree) is chosen by a cheap
    score. Both subtree pairs of a split go into the recursive extension
    match: starting from the subtree heads, small extension matches are
    enumerated, the best scoring ones are explored, and the child subtrees
    they leave behind are matched recursively and paired up by an optimal
    assignment. Small or lopsided subtree pairs end the recursion. Results
    are memoized per (edge, direction) pair, so one matcher serves exactly
    one ordered pair of trees.
    """

    def __init__(
        self,
        query_tree: PharmacophoreTree,
        base_tree: PharmacophoreTree,
        initial_splits: int = INITIAL_SPLITS,
        extension_matches: int = EXTENSION_MATCHES,
        alpha: float = ALPHA,
        split_score_beta: float = SIMILARITY_SCALING_SPLIT_SCORE,
        match_balance: float = MATCH_BALANCE,
        match_size_limit: float = MATCH_SIZE_LIMIT,
        match_node_nr_limit: int = MATCH_NODE_NR_LIMIT,
    ):
        """
        Args:
            query_tree: First tree of the pair
            base_tree: Second tree of the pair
            initial_splits: Number of initial splits explored
            extension_matches: Extension matches explored per recursion step (plus one)
            alpha: Weight of extension-node vs source-node similarity of a cut pair
            split_score_beta: Weight of size balance vs similarity of a split
            match_balance: Maximum size ratio of a directly matched subtree pair
            match_size_limit: Subtrees smaller than this are matched directly
            match_node_nr_limit: Subtrees with fewer nodes are matched directly;
                also bounds the extension match region
        """
        self.query_tree = query_tree
        self.base_tree = base_tree
        self.query_nodes = query_tree.nodes
        self.base_nodes = base_tree.nodes

        self.initial_splits = initial_splits
        self.extension_matches = extension_matches
        self.alpha = alpha
        self.split_score_beta = split_score_beta
        self.match_balance = match_balance
        self.match_size_limit = match_size_limit
        self.match_node_nr_limit = match_node_nr_limit

        self.reset()
        logger.debug("TreeMatcher for %r vs %r (initial_splits=%d, extension_matches=%d)",
                     query_tree, base_tree, initial_splits, extension_matches)

    def reset(self) -> None:
        """Drop all memoized subtree matchings."""
        self.memo: List[list] = [
            [None] * (2 * len(self.base_tree.edges))
            for _ in range(2 * len(self.query_tree.edges))
        ]

    # ───────────────────────── public API ──────────────────────────
    def match_search(self) -> TreeMatching:
        """
        Match the two trees.

        Returns:
            The best TreeMatching found, its similarity in ``sim``
        """
        if not self.query_tree.edges or not self.base_tree.edges:
            return self._direct_matching()

        best_score = 0.0
        best_matching = TreeMatching()
        for _, edge1, column in self.find_initial_splits():
            edge2 = column // 2
            cut2 = CUT_LEFT if column % 2 == 0 else CUT_RIGHT
            source1, target1 = self.query_tree.initial_cut(CUT_LEFT, edge1)
            source2, target2 = self.base_tree.initial_cut(cut2, edge2)

            source_matching = self.extension_match(source1, source2)
            target_matching = self.extension_match(target1, target2)
            if source_matching is None or target_matching is None:
                logger.warning("No extension match for split (%d, %d), skipping", edge1, column)
                continue

            matching = TreeMatching()
            matching.add_matching(source_matching)
            matching.add_matching(target_matching)
            matching.calculate()
            if matching.sim > best_score:
                best_score = matching.sim
                best_matching = matching
                logger.debug("Split (edge1=%d, edge2=%d, cut2=%d) scores %.4f",
                             edge1, edge2, cut2, matching.sim)

        best_matching.calculate()
        return best_matching

    def find_initial_splits(self) -> List[Tuple[float, int, int]]:
        """
        Score every pair of cuts (query edge cut left, base edge cut either
        way) and keep the best ones.

        Returns:
            List of (score, query edge, 2 * base edge + direction bit)
        """
        n1 = len(self.query_tree.edges)
        n2 = len(self.base_tree.edges)
        scores = np.zeros((n1, 2 * n2))
        for i in range(n1):
            source1, target1 = self.query_tree.initial_cut(CUT_LEFT, i)
            query_source = self.query_tree.subtree_nodes(source1)
            query_target = self.query_tree.subtree_nodes(target1)
            for j in range(n2):
                for bit, cut2 in enumerate((CUT_LEFT, CUT_RIGHT)):
                    source2, target2 = self.base_tree.initial_cut(cut2, j)
                    scores[i, 2 * j + bit] = self.get_split_score(
                        query_source, self.base_tree.subtree_nodes(source2),
                        query_target, self.base_tree.subtree_nodes(target2),
                    )
        return retrieve_highest_values(scores, self.initial_splits)

    def extension_match(self, subtree1: SubTree, subtree2: SubTree) -> Optional[TreeMatching]:
        """
        Recursively match two subtrees.

        Args:
            subtree1: Subtree of the query tree
            subtree2: Subtree of the base tree

        Returns:
            Best TreeMatching of the pair, None if no extension cut pair
            could be matched
        """
        index1 = _memo_index(subtree1)
        index2 = _memo_index(subtree2)
        cached = self.memo[index1][index2]
        if cached is _NO_MATCH:
            return None
        if cached is not None:
            return cached

        nodes1 = self.query_tree.subtree_nodes(subtree1)
        nodes2 = self.base_tree.subtree_nodes(subtree2)
        matches = self._assess_match(nodes1, nodes2)
        if matches is not None:
            matching = TreeMatching(matches)
            matching.calculate()
        else:
            matching = self._match_extension_cuts(subtree1, subtree2)

        self.memo[index1][index2] = matching if matching is not None else _NO_MATCH
        return matching

    # ───────────────────────── recursion ──────────────────────────
    def _match_extension_cuts(self, subtree1: SubTree, subtree2: SubTree) -> Optional[TreeMatching]:
        tree1 = self.query_tree
        tree2 = self.base_tree
        cuts1 = tree1.get_extension_cuts(subtree1.edges, subtree1.parents, self.match_node_nr_limit)
        cuts2 = tree2.get_extension_cuts(subtree2.edges, subtree2.parents, self.match_node_nr_limit)
        fast1 = [tree1.enumerate_extension_cut_fast(cut, subtree1.edges) for cut in cuts1]
        fast2 = [tree2.enumerate_extension_cut_fast(cut, subtree2.edges) for cut in cuts2]

        scores = np.zeros((len(cuts1), len(cuts2)))
        for i, (extension1, source1) in enumerate(fast1):
            for j, (extension2, source2) in enumerate(fast2):
                scores[i, j] = self.score_extension_match(extension1, extension2, source1, source2)

        best_score = -np.inf
        best_matching = None
        explored = 0
        # ranks every cut pair, not only extension_matches + 1 of them: pairs
        # failing assess_extension_match are skipped without counting
        for _, i, j in retrieve_highest_values(scores, scores.size):
            if explored > self.extension_matches:
                break
            extension1, children1 = tree1.enumerate_extension_cut_full(
                subtree1.head, cuts1[i], subtree1.edges, subtree1.parents)
            extension2, children2 = tree2.enumerate_extension_cut_full(
                subtree2.head, cuts2[j], subtree2.edges, subtree2.parents)
            extension_match = self._assess_extension_match(extension1, extension2)
            if extension_match is None:
                continue
            explored += 1

            matching = self._match_children(extension_match, children1, children2)
            if matching is None:
                logger.warning("Abandoning extension cut pair (%d, %d) below edges (%d, %d)",
                               i, j, subtree1.cut_edge, subtree2.cut_edge)
                continue
            if matching.sim >= best_score:
                best_score = matching.sim
                best_matching = matching

        return best_matching

    def _match_children(
        self,
        extension_match: FeatureMatch,
        children1: Sequence[SubTree],
        children2: Sequence[SubTree],
    ) -> Optional[TreeMatching]:
        child_matchings = [[None] * len(children2) for _ in children1]
        child_scores = np.zeros((len(children1), len(children2)))
        for a, child1 in enumerate(children1):
            for b, child2 in enumerate(children2):
                m = self.extension_match(child1, child2)
                if m is None:
                    return None
                child_matchings[a][b] = m
                child_scores[a, b] = m.sim

        matching = TreeMatching([extension_match])
        paired1: Set[int] = set()
        paired2: Set[int] = set()
        for a, b in solve_assignment(child_scores):
            paired1.add(a)
            paired2.add(b)
            matching.add_matching(child_matchings[a][b])

        # children left without a partner are null matches
        for a, child1 in enumerate(children1):
            if a not in paired1:
                matching.add_feature_match(self._create_match(
                    self.query_tree.subtree_nodes(child1), ()))
        for b, child2 in enumerate(children2):
            if b not in paired2:
                matching.add_feature_match(self._create_match(
                    (), self.base_tree.subtree_nodes(child2)))

        matching.calculate()
        return matching

    # ───────────────────────── scoring ──────────────────────────
    def _assess_match(self, nodes1: Collection[int], nodes2: Collection[int]) -> Optional[List[FeatureMatch]]:
        """
        End the recursion for small subtree pairs: a single match if the
        pair is balanced, otherwise one null match per side. Returns None
        if the pair is too large to be matched directly.
        """
        size1 = self._size_of(nodes1, self.query_nodes)
        size2 = self._size_of(nodes2, self.base_nodes)
        if not self._is_small(nodes1, nodes2, size1, size2):
            return None
        if self._is_balanced(size1, size2):
            return [self._create_match(nodes1, nodes2)]
        return [self._create_match(nodes1, ()), self._create_match((), nodes2)]

    def _assess_extension_match(self, nodes1: Collection[int], nodes2: Collection[int]) -> Optional[FeatureMatch]:
        if not nodes1 or not nodes2:
            return None
        size1 = self._size_of(nodes1, self.query_nodes)
        size2 = self._size_of(nodes2, self.base_nodes)
        if not self._is_small(nodes1, nodes2, size1, size2):
            return None
        return self._create_match(nodes1, nodes2)

    def _is_small(self, nodes1, nodes2, size1: float, size2: float) -> bool:
        return (size1 < self.match_size_limit or size2 < self.match_size_limit
                or len(nodes1) < self.match_node_nr_limit
                or len(nodes2) < self.match_node_nr_limit)

    def _is_balanced(self, size1: float, size2: float) -> bool:
        return not ratio_out_of_bounds(size1, size2, self.match_balance)

    def score_extension_match(
        self,
        extension_nodes1: Collection[int],
        extension_nodes2: Collection[int],
        source_nodes1: Collection[int],
        source_nodes2: Collection[int],
    ) -> float:
        extension_score = get_similarity(extension_nodes1, extension_nodes2,
                                         self.query_nodes, self.base_nodes)
        source_score = get_similarity(source_nodes1, source_nodes2,
                                      self.query_nodes, self.base_nodes)
        return self.alpha * extension_score + (1 - self.alpha) * source_score

    def get_split_score(
        self,
        query_source: Collection[int],
        base_source: Collection[int],
        query_target: Collection[int],
        base_target: Collection[int],
    ) -> float:
        """
        Score a split by the similarity of the matched halves and by how
        evenly the smaller tree is divided.

        Args:
            query_source: Nodes of the query source subtree
            base_source: Nodes of the base source subtree
            query_target: Nodes of the query target subtree
            base_target: Nodes of the base target subtree

        Returns:
            (1 - beta) * similarity + beta * balance
        """
        n_query = len(query_source) + len(query_target)
        n_base = len(base_source) + len(base_target)
        if n_query < n_base:
            balance = self.get_cut_balance(len(query_source), len(query_target))
        elif n_query == n_base:
            balance = (0.5 * self.get_cut_balance(len(query_source), len(query_target))
                       + 0.5 * self.get_cut_balance(len(base_source), len(base_target)))
        else:
            balance = self.get_cut_balance(len(base_source), len(base_target))

        matching = TreeMatching([self._create_match(query_source, base_source),
                                 self._create_match(query_target, base_target)])
        matching.calculate()
        return (1 - self.split_score_beta) * matching.sim + self.split_score_beta * balance

    @staticmethod
    def get_cut_balance(n1: int, n2: int) -> float:
        """1.0 for node counts differing by at most 2, decreasing beyond."""
        diff = abs(n1 - n2)
        if diff > 2:
            return 1.0 - (diff - 2.0) / (n1 + n2 - 2.0)
        return 1.0

    # ───────────────────────── helpers ──────────────────────────
    def _direct_matching(self) -> TreeMatching:
        nodes1 = range(len(self.query_nodes))
        nodes2 = range(len(self.base_nodes))
        matching = TreeMatching(self._assess_match(nodes1, nodes2) or [])
        matching.calculate()
        return matching

    def _create_match(self, nodes1: Collection[int], nodes2: Collection[int]) -> FeatureMatch:
        return FeatureMatch.create(nodes1, nodes2, self.query_nodes, self.base_nodes)

    @staticmethod
    def _size_of(nodes: Collection[int], tree_nodes) -> float:
        return sum(tree_nodes[i].size for i in nodes)
