import pytest

from pharm_tree import PharmacophoreTree, SubTree
from pharm_tree.config import (
    CUT_LEFT,
    CUT_NONE,
    CUT_RIGHT,
    LINK_NODE,
    MATCH_NODE_NR_LIMIT,
    MAX_EXTENSION_CUTS,
)


def test_initial_cut_directions(chain4):
    source, target = chain4.initial_cut(CUT_LEFT, 1)
    assert source == SubTree(1, (1, 0), (-1, 0), CUT_LEFT)
    assert target == SubTree(2, (1, 2), (-1, 0), CUT_RIGHT)
    assert chain4.subtree_nodes(source) == {0, 1}
    assert chain4.subtree_nodes(target) == {2, 3}

    source, target = chain4.initial_cut(CUT_RIGHT, 1)
    assert source.head == 2
    assert source.direction == CUT_RIGHT
    assert target.head == 1
    assert target.direction == CUT_LEFT


def test_initial_cut_rejects_no_direction(chain4):
    with pytest.raises(ValueError):
        chain4.initial_cut(CUT_NONE, 0)


def test_tree_walk_bfs_reports_parent_positions(chain4, star):
    edges, parents = chain4.tree_walk_bfs(1, 0)
    assert edges == [0, 1, 2]
    assert parents == [-1, 0, 1]

    edges, parents = star.tree_walk_bfs(1, 0)
    assert edges == [0]
    assert parents == [-1]

    edges, parents = star.tree_walk_bfs(0, 0)
    assert edges == [0, 1, 2]
    assert parents == [-1, 0, 0]


def test_extension_cuts_on_chain(chain4):
    source, _ = chain4.initial_cut(CUT_LEFT, 1)
    cuts = chain4.get_extension_cuts(source.edges, source.parents)
    assert cuts == [[0, 1], [0, 0]]


def test_extension_cuts_on_star(star):
    source, _ = star.initial_cut(CUT_LEFT, 0)
    cuts = star.get_extension_cuts(source.edges, source.parents)
    assert cuts == [[0, 1, 1], [0, 1, 0], [0, 0, 1]]


def test_extension_cuts_stop_at_node_limit(chain4):
    source, target = chain4.initial_cut(CUT_LEFT, 0)
    cuts = chain4.get_extension_cuts(target.edges, target.parents)
    assert cuts == [[0, 1, -1], [0, 0, 1]]


@pytest.mark.parametrize("n_leaves", [1, 8, 40])
def test_extension_cuts_terminate(make_node, n_leaves):
    nodes = [make_node(1, [0, 0, 0, 0, 1, 0]) for _ in range(n_leaves + 1)]
    tree = PharmacophoreTree(nodes, [[0, i] for i in range(1, n_leaves + 1)])
    source, _ = tree.initial_cut(CUT_LEFT, 0)
    cuts = tree.get_extension_cuts(source.edges, source.parents)
    assert 0 < len(cuts) <= MAX_EXTENSION_CUTS + 1
    assert len({tuple(c) for c in cuts}) == len(cuts)


def test_long_chain_extension_cuts_terminate(make_node):
    nodes = [make_node(1, [1, 0, 0, 0, 0, 0]) for _ in range(30)]
    tree = PharmacophoreTree(nodes, [[i, i + 1] for i in range(29)])
    source, _ = tree.initial_cut(CUT_RIGHT, 0)
    cuts = tree.get_extension_cuts(source.edges, source.parents)
    assert 0 < len(cuts) <= MAX_EXTENSION_CUTS + 1


def _branched_tree(make_node):
    nodes = [make_node(2, [0, 1, 0, 0, 1, 0]) for _ in range(7)]
    return PharmacophoreTree(nodes, [[0, 1], [1, 2], [1, 3], [3, 4], [3, 5], [6, 5]])


def _wide_star(make_node):
    nodes = [make_node(1, [0, 0, 0, 0, 1, 0]) for _ in range(9)]
    return PharmacophoreTree(nodes, [[0, i] for i in range(1, 9)])


def _chain(make_node):
    nodes = [make_node(1, [1, 0, 0, 0, 0, 0]) for _ in range(12)]
    return PharmacophoreTree(nodes, [[i, i + 1] for i in range(11)])


@pytest.mark.parametrize("build", [_branched_tree, _wide_star, _chain])
@pytest.mark.parametrize("direction", [CUT_LEFT, CUT_RIGHT])
def test_last_extension_cut_is_exhausted(make_node, build, direction):
    tree = build(make_node)
    for edge in range(len(tree.edges)):
        for subtree in tree.initial_cut(direction, edge):
            cuts = tree.get_extension_cuts(subtree.edges, subtree.parents)
            last = cuts[-1]
            ones = [i for i, c in enumerate(last) if c == 1]
            if not ones:
                # every edge joined the extension match
                continue
            region = set()
            for i in range(ones[0]):
                region.update(tree.edges[subtree.edges[i]])
            assert len(region) > MATCH_NODE_NR_LIMIT or ones[-1] == len(last) - 1


def test_enumerate_extension_cut_fast(star):
    source, _ = star.initial_cut(CUT_LEFT, 0)
    extension, sources = star.enumerate_extension_cut_fast([0, 1, 1], source.edges)
    assert extension == {0, 1}
    assert sources == {2, 3}


def test_enumerate_extension_cut_full(star):
    source, _ = star.initial_cut(CUT_LEFT, 0)

    extension, children = star.enumerate_extension_cut_full(
        source.head, [0, 1, 1], source.edges, source.parents)
    assert extension == {0}
    assert children == [SubTree(2, (1,), (-1,), CUT_RIGHT),
                        SubTree(3, (2,), (-1,), CUT_RIGHT)]

    extension, children = star.enumerate_extension_cut_full(
        source.head, [0, 1, 0], source.edges, source.parents)
    assert extension == {0, 3}
    assert children == [SubTree(2, (1,), (-1,), CUT_RIGHT)]


def test_enumerate_extension_cut_full_builds_child_walks(chain4):
    _, target = chain4.initial_cut(CUT_LEFT, 0)
    extension, children = chain4.enumerate_extension_cut_full(
        target.head, [0, 1, -1], target.edges, target.parents)
    assert extension == {1}
    assert children == [SubTree(2, (1, 2), (-1, 0), CUT_RIGHT)]
    assert chain4.subtree_nodes(children[0]) == {2, 3}


def test_get_nodes_from_edges_skips_cut_edge(chain4):
    assert chain4.get_nodes_from_edges([1, 0]) == {0, 1}
    assert chain4.get_nodes_from_edges([1]) == set()


def test_remove_node_compacts_indices(chain4):
    removed = chain4.nodes[1]
    chain4.remove_node(1)
    assert len(chain4) == 3
    assert removed not in chain4.nodes
    assert chain4.edges == [[1, 2]]
    assert chain4.adjacency == {0: [], 1: [0], 2: [0]}

    with pytest.raises(ValueError):
        chain4.remove_node(3)


def test_sizes_and_link_nodes(make_node):
    tree = PharmacophoreTree(
        [make_node(2, [1, 0, 0, 0, 0, 0]), make_node(1, [0] * 6, role=LINK_NODE)],
        [[0, 1]],
    )
    assert tree.size == pytest.approx(3.0)
    assert tree.link_nodes == 1
    assert tree.get_subtree_size((0,), 1) == pytest.approx(1.0)
    assert tree.get_nodes([1])[0].is_link_node


def test_direct_sim_of_identical_trees(chain4):
    assert chain4.get_direct_sim(chain4) == pytest.approx(1.0)


def test_get_all_subtrees(donor_pair, star):
    assert sorted(map(sorted, donor_pair.get_all_subtrees())) == [[0], [1]]
    subtrees = {frozenset(s) for s in star.get_all_subtrees()}
    assert frozenset({0}) in subtrees
    assert all(len(s) <= 3 for s in subtrees)
