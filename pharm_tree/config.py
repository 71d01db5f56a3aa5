"""
Tuned constants for pharmacophore tree matching.

The values follow the feature-tree match-search of Rarey and Dixon
(DOI:10.1023/a:1008068904628) with the similarity normalisation of
Langer and Hoffmann. The match-search values are defaults for the keyword
arguments of ``TreeMatcher``.
"""

from typing import Tuple

# ─────────────────────────── node model ────────────────────────────
# donor, acceptor, negative-ionizable, positive-ionizable, lipophilic, aromatic
FUNCTIONALITY_WEIGHTS: Tuple[int, ...] = (3, 3, 3, 3, 1, 1)
N_FUNCTIONALITIES = len(FUNCTIONALITY_WEIGHTS)
CHEM_SIM_WEIGHT = 0.7

# if aggregated sizes differ by more than this factor, similarity is zero
SIZE_RATIO = 2.0

# ─────────────────────────── node roles ────────────────────────────
ZERO_NODE = 1
LINK_NODE = 6

# ─────────────────────────── tree cuts ─────────────────────────────
CUT_NONE = 0
CUT_RIGHT = 1
CUT_LEFT = -1

MAX_EXTENSION_CUTS = 500

# ─────────────────────────── match search ──────────────────────────
EXTENSION_MATCHES = 3                  # extension matches explored per recursion step
ALPHA = 0.8                            # extension-node vs source-node weighting
NULL_MATCH_SCALING = 0.5
SIMILARITY_SCALING_SPLIT_SCORE = 0.6   # beta: size balance vs similarity of a split
MATCH_BALANCE = 2.0
MATCH_SIZE_LIMIT = 3.0
MATCH_NODE_NR_LIMIT = 2
INITIAL_SPLITS = 5
