"""
Feature nodes of a pharmacophore tree and the node similarity model.
"""

from __future__ import annotations
from typing import Collection, Dict, Iterable, List, Optional, Sequence

import numpy as np

from .config import (
    CHEM_SIM_WEIGHT,
    FUNCTIONALITY_WEIGHTS,
    LINK_NODE,
    N_FUNCTIONALITIES,
    SIZE_RATIO,
    ZERO_NODE,
)
from .utils import ratio_out_of_bounds

_WEIGHTS = np.asarray(FUNCTIONALITY_WEIGHTS, dtype=float)


class FeatureNode:
    """
    A node of a PharmacophoreTree: a group of atoms summarised by its
    chemical features (hbond donor, hbond acceptor, negative charge,
    positive charge, lipophilic, aromatic) and its steric size.

    The size of a node is the sum of its atom weights, its volume the
    weighted sum of the atom volumes. Both are recomputed whenever weights
    or volumes are replaced.
    """

    def __init__(
        self,
        atoms: Sequence[int],
        functionalities: Sequence[int],
        volumes: Optional[Sequence[float]] = None,
        weights: Optional[Sequence[float]] = None,
        role: int = 0,
        is_ring: bool = False,
        is_aromatic: bool = False,
    ):
        """
        Args:
            atoms: Indices of the source atoms (empty for a zero node)
            functionalities: Feature counts, one per functionality category
            volumes: Steric volume per atom (defaults to 0.0 per atom)
            weights: Contribution per atom (defaults to 1.0 per atom)
            role: Bit flags, ZERO_NODE and/or LINK_NODE
            is_ring: Whether the node stems from a ring system
            is_aromatic: Whether the node stems from an aromatic ring
        """
        if len(functionalities) != N_FUNCTIONALITIES:
            raise ValueError(
                f"Expected {N_FUNCTIONALITIES} functionalities, got {len(functionalities)}"
            )
        self.atoms = list(atoms)
        self.functionalities = np.asarray(functionalities, dtype=int)
        self.role = role
        self.is_ring = is_ring
        self.is_aromatic = is_aromatic
        if role & ZERO_NODE:
            self.atoms = []
            volumes = []
            weights = []
        self._volumes = np.asarray(
            volumes if volumes is not None else [0.0] * len(self.atoms), dtype=float
        )
        self._weights = np.asarray(
            weights if weights is not None else [1.0] * len(self.atoms), dtype=float
        )
        self._calculate()

    @classmethod
    def from_atoms(
        cls,
        atoms: Sequence[int],
        atom_functionalities: Sequence[Sequence[int]],
        atom_volumes: Sequence[float],
        role: int = 0,
        is_ring: bool = False,
        is_aromatic: bool = False,
    ) -> "FeatureNode":
        """
        Build a node from per-atom tables of a molecule.

        Args:
            atoms: Atom indices grouped into this node
            atom_functionalities: Feature vector of every atom of the molecule
            atom_volumes: Steric volume of every atom of the molecule
            role: Bit flags of the node
            is_ring: Ring flag
            is_aromatic: Aromaticity flag

        Returns:
            FeatureNode with summed functionalities and unit atom weights
        """
        functionalities = np.zeros(N_FUNCTIONALITIES, dtype=int)
        volumes: List[float] = []
        if not role & ZERO_NODE:
            for a in atoms:
                functionalities += np.asarray(atom_functionalities[a], dtype=int)
                volumes.append(atom_volumes[a])
        return cls(atoms, functionalities, volumes=volumes, role=role,
                   is_ring=is_ring, is_aromatic=is_aromatic)

    # ───────────────────────── derived state ──────────────────────────
    @property
    def weights(self) -> np.ndarray:
        return self._weights

    @weights.setter
    def weights(self, weights: Sequence[float]) -> None:
        weights = np.asarray(weights, dtype=float)
        if len(weights) != len(self._volumes):
            raise ValueError("weights and volumes must have the same length")
        self._weights = weights
        self._calculate()

    @property
    def volumes(self) -> np.ndarray:
        return self._volumes

    @volumes.setter
    def volumes(self, volumes: Sequence[float]) -> None:
        volumes = np.asarray(volumes, dtype=float)
        if len(volumes) != len(self._weights):
            raise ValueError("weights and volumes must have the same length")
        self._volumes = volumes
        self._calculate()

    @property
    def size(self) -> float:
        return self._size

    @property
    def volume(self) -> float:
        return self._volume

    @property
    def is_zero_node(self) -> bool:
        return bool(self.role & ZERO_NODE)

    @property
    def is_link_node(self) -> bool:
        return bool(self.role & LINK_NODE)

    def _calculate(self) -> None:
        if len(self._weights) != len(self._volumes):
            raise ValueError("weights and volumes must have the same length")
        self._size = float(self._weights.sum())
        self._volume = float((self._weights * self._volumes).sum())

    def update_weights(self, atom_to_nodes: Dict[int, Collection[int]]) -> None:
        """
        Rescale atom weights so that an atom shared by several nodes counts
        once in total.

        Args:
            atom_to_nodes: For every atom, the nodes it belongs to
        """
        if self.is_zero_node:
            return
        self.weights = [1.0 / len(atom_to_nodes[a]) for a in self.atoms]

    def similarity(self, other: "FeatureNode") -> float:
        """Similarity between this node and another one."""
        return aggregate_similarity([self], [other])

    def __repr__(self) -> str:
        return (f"FeatureNode(atoms={self.atoms}, functionalities={self.functionalities.tolist()}, "
                f"size={self._size:.3f}, role={self.role})")


# ───────────────────────── similarity model ──────────────────────────
def steric_similarity(sum1: float, sum2: float) -> float:
    """Ratio similarity of two sizes or volumes, 1.0 for two zero nodes."""
    if sum1 + sum2 < 0.001:
        return 1.0
    return 2 * min(sum1, sum2) / (sum1 + sum2)


def feature_similarity(features1: Sequence[int], features2: Sequence[int]) -> float:
    """
    Weighted overlap of two feature count vectors.

    Args:
        features1: Feature counts of the first node set
        features2: Feature counts of the second node set

    Returns:
        Similarity in [0, 1], 0 if neither set carries any feature
    """
    f1 = np.asarray(features1, dtype=float)
    f2 = np.asarray(features2, dtype=float)
    nom = float((_WEIGHTS * np.minimum(f1, f2)).sum())
    denom = float((_WEIGHTS * (f1 + f2)).sum())
    if denom == 0:
        return 0.0
    return 2 * nom / denom


def aggregate_similarity(nodes1: Collection[FeatureNode], nodes2: Collection[FeatureNode]) -> float:
    """
    Similarity of two node sets, each merged into a single pseudo node.

    Sizes, volumes and feature vectors are summed over each set. Sets whose
    sizes differ by more than SIZE_RATIO are not comparable and score 0.
    Two single link nodes always score 1.

    Args:
        nodes1: Nodes of the first tree
        nodes2: Nodes of the second tree

    Returns:
        0.3 * steric similarity + 0.7 * chemical similarity
    """
    size1, vol1, features1 = _merge(nodes1)
    size2, vol2, features2 = _merge(nodes2)

    if ratio_out_of_bounds(size1, size2, SIZE_RATIO):
        ster_sim = 0.0
        chem_sim = 0.0
    else:
        ster_sim = 0.5 * steric_similarity(size1, size2) + 0.5 * steric_similarity(vol1, vol2)
        chem_sim = feature_similarity(features1, features2)

    if len(nodes1) == 1 and len(nodes2) == 1:
        n1 = next(iter(nodes1))
        n2 = next(iter(nodes2))
        if n1.is_link_node and n2.is_link_node:
            ster_sim = 1.0
            chem_sim = 1.0

    return (1.0 - CHEM_SIM_WEIGHT) * ster_sim + CHEM_SIM_WEIGHT * chem_sim


def get_similarity(
    indices1: Collection[int],
    indices2: Collection[int],
    all_nodes1: Sequence[FeatureNode],
    all_nodes2: Sequence[FeatureNode],
) -> float:
    """Aggregate similarity of two node index collections of two trees."""
    return aggregate_similarity([all_nodes1[i] for i in indices1],
                                [all_nodes2[i] for i in indices2])


def _merge(nodes: Iterable[FeatureNode]):
    size = 0.0
    vol = 0.0
    features = np.zeros(N_FUNCTIONALITIES, dtype=int)
    for node in nodes:
        size += node.size
        vol += node.volume
        features += node.functionalities
    return size, vol, features
