"""
PharmacophoreTree: an undirected, acyclic graph of FeatureNodes.

Closely follows the FeatureTrees of Rarey and Dixon
(DOI:10.1023/a:1008068904628). Subtrees are produced by cutting edges and are
decomposed further by extension cuts, which split off a small region around
the subtree head (the extension match) from the remaining child subtrees.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .config import (
    CUT_LEFT,
    CUT_RIGHT,
    MATCH_NODE_NR_LIMIT,
    MAX_EXTENSION_CUTS,
)
from .feature_node import FeatureNode, aggregate_similarity


@dataclass(frozen=True)
class SubTree:
    """
    A rooted subtree left over by a cut.

    ``edges`` are in breadth-first order starting with the cut edge,
    ``parents`` holds for every edge the position of its parent edge in
    ``edges`` (-1 for the cut edge). ``direction`` is the cut direction for
    which ``head`` is the source node of the cut edge.
    """

    head: int
    edges: Tuple[int, ...]
    parents: Tuple[int, ...]
    direction: int

    @property
    def cut_edge(self) -> int:
        return self.edges[0]


class PharmacophoreTree:
    """
    A tree of feature nodes. Edges are pairs of node indices; their order
    fixes the meaning of a cut direction:

        CUT_LEFT   a -->-- b   (a is the source node, b the target node)
        CUT_RIGHT  a --<-- b   (b is the source node, a the target node)
    """

    def __init__(self, nodes: List[FeatureNode], edges: Sequence[Sequence[int]]):
        self.nodes = nodes
        self.edges: List[List[int]] = [list(e) for e in edges]
        self.update()

    def update(self) -> None:
        """Rebuild the adjacency list and the link node count."""
        self.link_nodes = sum(1 for node in self.nodes if node.is_link_node)
        self.adjacency: Dict[int, List[int]] = {i: [] for i in range(len(self.nodes))}
        for e, (a, b) in enumerate(self.edges):
            self.adjacency[a].append(e)
            if b != a:
                self.adjacency[b].append(e)

    # ───────────────────────── cuts and walks ─────────────────────────
    def initial_cut(self, direction: int, edge: int) -> Tuple[SubTree, SubTree]:
        """
        Split the tree at one edge.

        Args:
            direction: CUT_LEFT or CUT_RIGHT
            edge: Index of the edge to cut

        Returns:
            (source subtree, target subtree)
        """
        if direction == CUT_LEFT:
            source, target = self.edges[edge]
        elif direction == CUT_RIGHT:
            target, source = self.edges[edge]
        else:
            raise ValueError(f"Invalid cut direction: {direction}")

        source_edges, source_parents = self.tree_walk_bfs(source, edge)
        target_edges, target_parents = self.tree_walk_bfs(target, edge)
        return (SubTree(source, tuple(source_edges), tuple(source_parents), direction),
                SubTree(target, tuple(target_edges), tuple(target_parents), -direction))

    def tree_walk_bfs(self, head: int, deleted_edge: int) -> Tuple[List[int], List[int]]:
        """
        Walk the subtree hanging off ``head`` once ``deleted_edge`` is removed.

        Args:
            head: Head node of the subtree
            deleted_edge: The cut edge, reported first with parent -1

        Returns:
            (edges in BFS order, position of each edge's parent edge)
        """
        n_edges = len(self.edges)
        edges = [deleted_edge]
        parents = [-1]
        visited = [False] * n_edges
        visited[deleted_edge] = True

        # queue of (node, position of the edge that led to it)
        queue: List[Tuple[int, int]] = [(head, 0)]
        q = 0
        while q < len(queue):
            node, parent_pos = queue[q]
            q += 1
            for e in self.adjacency[node]:
                if visited[e]:
                    continue
                visited[e] = True
                a, b = self.edges[e]
                next_node = b if a == node else a
                queue.append((next_node, len(edges)))
                edges.append(e)
                parents.append(parent_pos)
        return edges, parents

    def get_extension_cuts(
        self,
        edges: Sequence[int],
        parents: Sequence[int],
        node_limit: int = MATCH_NODE_NR_LIMIT,
    ) -> List[List[int]]:
        """
        Enumerate the extension cuts of a subtree.

        A cut string assigns every subtree edge a status: 0 (part of the
        extension match), 1 (cut, starts a child subtree) or -1 (inside a
        cut child subtree). Starting from a cut right at the head, the
        extension match grows until it would hold more than ``node_limit``
        nodes.

        Args:
            edges: Subtree edges in BFS order, cut edge first
            parents: Parent positions of the edges
            node_limit: Maximum node count of the region in front of a cut

        Returns:
            Distinct cut strings, in order of generation
        """
        cuts: List[List[int]] = []
        seen: Set[Tuple[int, ...]] = set()
        previous = [-1] * len(edges)
        previous[0] = 1
        while True:
            if len(cuts) > MAX_EXTENSION_CUTS:
                return cuts
            current = self._next_cut(previous, edges, parents, node_limit)
            if current is None:
                break
            key = tuple(current)
            # the successor only depends on its predecessor: a repeat would cycle
            if key in seen:
                break
            seen.add(key)
            cuts.append(current)
            previous = current
        return cuts

    def _next_cut(
        self,
        previous: List[int],
        edges: Sequence[int],
        parents: Sequence[int],
        node_limit: int,
    ) -> Optional[List[int]]:
        # INCREASE_CUTSTRING, DOI:10.1023/a:1008068904628 Fig. 25
        cut_positions = [i for i, c in enumerate(previous) if c == 1]
        if not cut_positions:
            return None
        head, tail = cut_positions[0], cut_positions[-1]

        region: Set[int] = set()
        for i in range(head):
            region.update(self.edges[edges[i]])
        if len(region) > node_limit:
            return None

        current = list(previous)
        current[tail] = 0
        for i in range(tail + 1, len(current)):
            current[i] = 1 if current[parents[i]] == 0 else -1
        return current

    def enumerate_extension_cut_fast(
        self, cut: Sequence[int], edges: Sequence[int]
    ) -> Tuple[Set[int], Set[int]]:
        """
        Collect the nodes of the extension match and of the cut subtrees.

        Args:
            cut: Cut string
            edges: Subtree edges the cut string refers to

        Returns:
            (extension nodes, source nodes)
        """
        extension_nodes: Set[int] = set()
        source_nodes: Set[int] = set()
        for status, e in zip(cut, edges):
            a, b = self.edges[e]
            if status == 0:
                extension_nodes.add(a)
                extension_nodes.add(b)
            elif status == 1:
                source_nodes.add(b if a in extension_nodes else a)
            elif status == -1:
                source_nodes.add(a)
                source_nodes.add(b)
        return extension_nodes, source_nodes

    def enumerate_extension_cut_full(
        self,
        head: int,
        cut: Sequence[int],
        edges: Sequence[int],
        parents: Sequence[int],
    ) -> Tuple[Set[int], List[SubTree]]:
        """
        Materialise an extension cut: the extension match nodes and every
        cut child subtree with its own BFS edge and parent lists.

        Args:
            head: Head node of the subtree
            cut: Cut string
            edges: Subtree edges in BFS order, cut edge first
            parents: Parent positions of the edges

        Returns:
            (extension nodes, child subtrees in order of their cut edges)
        """
        extension_nodes = {head}
        children: List[Tuple[int, List[int], List[int], int]] = []
        # subtree position -> (child index, position within the child)
        owner: Dict[int, Tuple[int, int]] = {}

        # the cut edge itself never joins the extension match
        for i in range(1, len(cut)):
            e = edges[i]
            a, b = self.edges[e]
            if cut[i] == 0:
                extension_nodes.add(a)
                extension_nodes.add(b)
            elif cut[i] == 1:
                if a in extension_nodes:
                    child_head, direction = b, CUT_RIGHT
                else:
                    child_head, direction = a, CUT_LEFT
                owner[i] = (len(children), 0)
                children.append((child_head, [e], [-1], direction))
            elif cut[i] == -1:
                child, parent_pos = owner[parents[i]]
                child_edges, child_parents = children[child][1], children[child][2]
                owner[i] = (child, len(child_edges))
                child_edges.append(e)
                child_parents.append(parent_pos)

        return extension_nodes, [
            SubTree(child_head, tuple(child_edges), tuple(child_parents), direction)
            for child_head, child_edges, child_parents, direction in children
        ]

    def get_nodes_from_edges(self, edges: Sequence[int]) -> Set[int]:
        """Nodes of all edges but the first (the cut edge)."""
        nodes: Set[int] = set()
        for e in edges[1:]:
            nodes.update(self.edges[e])
        return nodes

    def subtree_nodes(self, subtree: SubTree) -> Set[int]:
        """All nodes of a subtree, head included."""
        nodes = self.get_nodes_from_edges(subtree.edges)
        nodes.add(subtree.head)
        return nodes

    # ───────────────────────── mutation ─────────────────────────
    def remove_node(self, node_index: int) -> None:
        """
        Delete a node together with its incident edges and shift all higher
        node indices down by one.
        """
        if not 0 <= node_index < len(self.nodes):
            raise ValueError(f"No node with index {node_index}")
        del self.nodes[node_index]
        remaining = []
        for a, b in self.edges:
            if a == node_index or b == node_index:
                continue
            remaining.append([a - 1 if a > node_index else a,
                              b - 1 if b > node_index else b])
        self.edges = remaining
        self.update()

    # ───────────────────────── queries ─────────────────────────
    def get_nodes(self, indices: Optional[Sequence[int]] = None) -> List[FeatureNode]:
        if indices is None:
            return self.nodes
        return [self.nodes[i] for i in indices]

    @property
    def size(self) -> float:
        return sum(node.size for node in self.nodes)

    def get_subtree_size(self, edges: Sequence[int], head: int) -> float:
        nodes = self.get_nodes_from_edges(edges)
        nodes.add(head)
        return sum(self.nodes[i].size for i in nodes)

    def get_direct_sim(self, other: "PharmacophoreTree") -> float:
        """Similarity of the two trees merged into one node each."""
        return aggregate_similarity(self.nodes, other.nodes)

    def get_all_subtrees(self) -> List[Set[int]]:
        """
        Distinct extension-match node sets reachable from any edge in either
        direction.
        """
        subtrees: List[Set[int]] = []
        seen: Set[frozenset] = set()
        for e in range(len(self.edges)):
            for direction in (CUT_LEFT, CUT_RIGHT):
                subtree = self.initial_cut(direction, e)[0]
                for cut in self.get_extension_cuts(subtree.edges, subtree.parents):
                    extension_nodes, _ = self.enumerate_extension_cut_full(
                        subtree.head, cut, subtree.edges, subtree.parents)
                    key = frozenset(extension_nodes)
                    if key not in seen:
                        seen.add(key)
                        subtrees.append(extension_nodes)
        return subtrees

    def __len__(self) -> int:
        return len(self.nodes)

    def __repr__(self) -> str:
        return f"PharmacophoreTree(nodes={len(self.nodes)}, edges={len(self.edges)})"
