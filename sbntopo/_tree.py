"""
_tree.py
========
A topology decorated with branch lengths.

Public API
----------
  Tree(topology, branch_lengths)
      ``branch_lengths`` is either a mapping tag -> length (the topology is
      reindexed and tags without a length get 0.0) or a sequence indexed by
      ``node.index`` of length ``topology.index + 1``.

  .newick(node_labels=None)
  .branch_length(node)
  .detrifurcate()
  Tree.unit_branch_length_tree_of(topology)   [classmethod]
  Tree.example_trees()                         [classmethod]

Branch lengths live in a read-only float64 numpy array, ``branch_lengths``,
whose entry ``i`` is the length of the edge above the node with index ``i``.
The topology is shared and never modified by a Tree, apart from the
reindexing done by the tag-keyed constructor.
"""

import logging
from collections.abc import Mapping
from typing import List, Optional

import numpy as np

from sbntopo._errors import FatalTopologyError, IndexOutOfRangeError, LengthMismatchError
from sbntopo._node import Node


logger = logging.getLogger(__name__)


class Tree:
    """
    A rooted topology with one branch length per node.

    Attributes (all read-only after construction)
    ----------------------------------------------
    topology       : Node               Root of the topology.
    branch_lengths : float64[n_nodes]   Indexed by ``node.index``.
    n_nodes        : int                ``topology.index + 1``.
    """

    # ================================================================== #
    # Construction                                                         #
    # ================================================================== #

    def __init__(self, topology: Node, branch_lengths) -> None:
        if isinstance(branch_lengths, Mapping):
            lengths = Tree._lengths_from_tag_map(topology, branch_lengths)
        else:
            lengths = np.array(branch_lengths, dtype=np.float64)
            if lengths.ndim != 1 or lengths.shape[0] != topology.index + 1:
                raise LengthMismatchError(
                    f"Topology with root index {topology.index} needs "
                    f"{topology.index + 1} branch lengths, got shape {lengths.shape}."
                )
        lengths.flags.writeable = False

        self.topology: Node = topology
        self.branch_lengths: np.ndarray = lengths
        self.n_nodes: int = int(lengths.shape[0])

    @staticmethod
    def _lengths_from_tag_map(topology: Node, tag_lengths: Mapping) -> np.ndarray:
        tag_index_map = topology.reindex()
        lengths = np.zeros(topology.index + 1, dtype=np.float64)
        n_missing = 0
        for tag, index in tag_index_map.items():
            if tag in tag_lengths:
                lengths[index] = float(tag_lengths[tag])
            else:
                n_missing += 1
        if n_missing:
            logger.debug(
                "%d of %d nodes had no branch length; set to 0.0",
                n_missing,
                len(tag_index_map),
            )
        return lengths

    @classmethod
    def unit_branch_length_tree_of(cls, topology: Node) -> "Tree":
        """Reindex *topology* and give every edge length 1.0."""
        topology.reindex()
        return cls(topology, np.ones(topology.index + 1, dtype=np.float64))

    @classmethod
    def example_trees(cls) -> List["Tree"]:
        return [
            cls.unit_branch_length_tree_of(topology)
            for topology in Node.example_topologies()
        ]

    # ================================================================== #
    # Public methods                                                       #
    # ================================================================== #

    @property
    def children(self):
        return self.topology.children

    @property
    def index(self) -> int:
        return self.topology.index

    def __eq__(self, other) -> bool:
        if not isinstance(other, Tree):
            return NotImplemented
        return self.topology == other.topology and bool(
            np.array_equal(self.branch_lengths, other.branch_lengths)
        )

    def __ne__(self, other) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    __hash__ = None

    def __repr__(self) -> str:
        return f"Tree({self.newick()!r})"

    def newick(self, node_labels: Optional[Mapping] = None) -> str:
        return self.topology.newick(self.branch_lengths, node_labels)

    def branch_length(self, node: Node) -> float:
        """
        Return the length of the edge above *node*.

        *node* must belong to this tree's indexing.

        Raises
        ------
        IndexOutOfRangeError   if ``node.index`` is outside the vector.
        """
        if node.index < 0 or node.index >= self.n_nodes:
            raise IndexOutOfRangeError(
                f"Node {node.tag_string} has index {node.index}; this tree "
                f"has {self.n_nodes} branch lengths."
            )
        return float(self.branch_lengths[node.index])

    def detrifurcate(self) -> "Tree":
        """
        Turn a trifurcating root into a bifurcation.

        Given ``(s0:b0,s1:b1,s2:b2):b3`` return a new tree
        ``(s0:b0,(s1:b1,s2:b2):0):0``.  The new internal node ``(s1,s2)``
        takes the old root's index and the new root gets the next one; both
        edges have length 0.  Every other node keeps its index and length.
        The root's children are shared with this tree, which is left
        untouched.

        Raises
        ------
        FatalTopologyError   if the root does not have exactly 3 children.
        """
        if len(self.children) != 3:
            message = (
                f"Detrifurcate given a non-trifurcating tree: the root has "
                f"{len(self.children)} children."
            )
            logger.critical(message)
            raise FatalTopologyError(message)

        # The new internal node takes over the root's index and the new root
        # is appended, so the shared subtrees are never reindexed.
        our_index = self.index
        child0, child1, child2 = self.children
        root12 = Node.join_pair(child1, child2, our_index)
        topology = Node.join_pair(child0, root12, our_index + 1)

        lengths = np.append(self.branch_lengths, 0.0)
        lengths[our_index] = 0.0
        logger.debug(
            "Detrifurcated root %s: new internal node %s at index %d",
            self.topology.tag_string,
            root12.tag_string,
            our_index,
        )
        return Tree(topology, lengths)
