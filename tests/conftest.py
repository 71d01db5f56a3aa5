import pytest

from pharm_tree import FeatureNode, PharmacophoreTree
from pharm_tree.config import ZERO_NODE


def _make_node(n_atoms, functionalities, volume=0.0, role=0):
    return FeatureNode(list(range(n_atoms)), functionalities,
                       volumes=[volume] * n_atoms, role=role)


@pytest.fixture
def make_node():
    return _make_node


@pytest.fixture
def donor_pair():
    """Two single-atom donor nodes joined by one edge."""
    return PharmacophoreTree(
        [_make_node(1, [1, 0, 0, 0, 0, 0]), _make_node(1, [1, 0, 0, 0, 0, 0])],
        [[0, 1]],
    )


@pytest.fixture
def chain4():
    """0 - 1 - 2 - 3 with distinct features, three atoms per node."""
    return PharmacophoreTree(
        [
            _make_node(3, [1, 0, 0, 0, 1, 0], volume=8.0),
            _make_node(3, [0, 0, 0, 0, 3, 3], volume=12.0),
            _make_node(3, [0, 1, 0, 0, 1, 0], volume=9.0),
            _make_node(3, [0, 0, 1, 0, 0, 0], volume=7.0),
        ],
        [[0, 1], [1, 2], [2, 3]],
    )


@pytest.fixture
def chain4_reversed():
    """chain4 with node indices reversed."""
    return PharmacophoreTree(
        [
            _make_node(3, [0, 0, 1, 0, 0, 0], volume=7.0),
            _make_node(3, [0, 1, 0, 0, 1, 0], volume=9.0),
            _make_node(3, [0, 0, 0, 0, 3, 3], volume=12.0),
            _make_node(3, [1, 0, 0, 0, 1, 0], volume=8.0),
        ],
        [[0, 1], [1, 2], [2, 3]],
    )


@pytest.fixture
def star():
    """Centre node 0 with three distinct leaves."""
    return PharmacophoreTree(
        [
            _make_node(3, [0, 0, 0, 0, 3, 3], volume=12.0),
            _make_node(3, [1, 1, 0, 0, 0, 0], volume=8.0),
            _make_node(3, [0, 0, 0, 1, 1, 0], volume=9.0),
            _make_node(3, [0, 2, 1, 0, 0, 0], volume=7.0),
        ],
        [[0, 1], [0, 2], [0, 3]],
    )


@pytest.fixture
def single_node():
    return PharmacophoreTree([_make_node(2, [0, 1, 0, 0, 1, 0], volume=5.0)], [])


@pytest.fixture
def zero_tree():
    return PharmacophoreTree([FeatureNode([], [0] * 6, role=ZERO_NODE)], [])
