import os
import sys
import argparse
import logging

# Add parent directory to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pharm_tree import FeatureNode, PharmacophoreTree, PharmacophoreTreeComparator
from pharm_tree.config import LINK_NODE


def parse_args():
    parser = argparse.ArgumentParser(description='Rank pharmacophore trees by similarity to a query')
    parser.add_argument('--query', type=str, default='paracetamol',
                        help='Predefined query tree (paracetamol, aspirin, ibuprofen, phenol)')
    parser.add_argument('--top_n', type=int, default=None,
                        help='Maximum number of ranked trees to print')
    parser.add_argument('--threshold', type=float, default=None,
                        help='Minimum similarity of a ranked tree (default: None)')
    parser.add_argument('--initial_splits', type=int, default=5,
                        help='Number of initial splits explored per comparison')
    parser.add_argument('--extension_matches', type=int, default=3,
                        help='Extension matches explored per recursion step')
    parser.add_argument('--verbose', action='store_true',
                        help='Log matcher decisions')

    return parser.parse_args()


def node(n_atoms, donor=0, acceptor=0, negative=0, positive=0, lipophilic=0, aromatic=0,
         volume=10.0, role=0, is_ring=False):
    return FeatureNode(
        list(range(n_atoms)),
        [donor, acceptor, negative, positive, lipophilic, aromatic],
        volumes=[volume] * n_atoms,
        role=role,
        is_ring=is_ring,
        is_aromatic=is_ring and aromatic > 0,
    )


def get_example_trees():
    """Hand-reduced trees of a few small drugs."""
    ring = dict(n_atoms=6, lipophilic=6, aromatic=6, volume=12.0, is_ring=True)
    return {
        # acetamide - ring - hydroxyl
        'paracetamol': PharmacophoreTree(
            [node(4, donor=1, acceptor=1, lipophilic=1), node(**ring), node(1, donor=1, acceptor=1)],
            [[0, 1], [1, 2]],
        ),
        # ester - ring - carboxylic acid
        'aspirin': PharmacophoreTree(
            [node(4, acceptor=2, lipophilic=1), node(**ring), node(3, donor=1, acceptor=2, negative=1)],
            [[0, 1], [1, 2]],
        ),
        # isobutyl - ring - linker - propionic acid
        'ibuprofen': PharmacophoreTree(
            [node(4, lipophilic=4), node(**ring), node(1, role=LINK_NODE),
             node(3, donor=1, acceptor=2, negative=1, lipophilic=1)],
            [[0, 1], [1, 2], [2, 3]],
        ),
        # ring - hydroxyl
        'phenol': PharmacophoreTree(
            [node(**ring), node(1, donor=1, acceptor=1)],
            [[0, 1]],
        ),
    }


def main():
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    )

    trees = get_example_trees()
    if args.query not in trees:
        print(f"Error: Unknown query tree: {args.query}")
        return

    query = trees[args.query]
    names = [name for name in trees if name != args.query]
    comparator = PharmacophoreTreeComparator(
        initial_splits=args.initial_splits,
        extension_matches=args.extension_matches,
    )

    print(f"Query: {args.query} {query}")
    print(f"Self-similarity: {comparator.similarity(query, query):.4f}")

    ranking = comparator.rank(query, [trees[name] for name in names],
                              top_n=args.top_n, threshold=args.threshold)

    print(f"\nResults:")
    for rank, (i, sim) in enumerate(ranking):
        print(f"{rank + 1}. {names[i]:<12} {sim:.4f}")

    print(f"\nDone!")


if __name__ == '__main__':
    main()
