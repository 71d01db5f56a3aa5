import logging

from .matching import TreeMatcher

logger = logging.getLogger(__name__)


def similarity(query, base, **params):
    """
    Similarity of two pharmacophore trees.

    Args:
        query: Query PharmacophoreTree
        base: Base PharmacophoreTree
        **params: Keyword overrides passed on to TreeMatcher

    Returns:
        Similarity in [0, 1]
    """
    return TreeMatcher(query, base, **params).match_search().sim


class PharmacophoreTreeComparator:
    """
    Main class for comparing and ranking pharmacophore trees.
    """
    def __init__(self, **params):
        """
        Initialize the comparator.

        Args:
            **params: Keyword overrides for every TreeMatcher it creates
                (initial_splits, extension_matches, alpha, ...)
        """
        self.params = params

    def match(self, query, base):
        """
        Match two trees.

        Args:
            query: Query tree
            base: Base tree

        Returns:
            Best TreeMatching found
        """
        # a matcher memoizes subtree results for one tree pair only
        matcher = TreeMatcher(query, base, **self.params)
        return matcher.match_search()

    def similarity(self, query, base):
        return self.match(query, base).sim

    def rank(self, query, bases, top_n=None, threshold=None):
        """
        Rank base trees by their similarity to a query tree.

        Args:
            query: Query tree
            bases: Sequence of base trees
            top_n: Maximum number of results (all if None)
            threshold: Minimum similarity of a result (optional)

        Returns:
            List of (index into bases, similarity), most similar first
        """
        if top_n is not None and top_n < 0:
            raise ValueError(f"top_n must be non-negative, got {top_n}")

        logger.info("Ranking %d trees against %r", len(bases), query)
        results = []
        for i, base in enumerate(bases):
            sim = self.similarity(query, base)
            logger.debug("Tree %d: similarity %.4f", i, sim)
            if threshold is None or sim >= threshold:
                results.append((i, sim))

        results.sort(key=lambda r: r[1], reverse=True)
        if top_n is not None:
            results = results[:top_n]

        logger.info("Selected %d trees (threshold=%s)", len(results), threshold)
        return results
