"""
_node.py
========
Immutable rooted topologies with a canonical structural hash.

A Node is either a leaf, holding a taxon id, or an internal node owning an
ordered tuple of children.  Children are shared: the same subtree object may
hang under several parents or several trees, so a subtree must never be
modified once it has been attached.  The only mutation is the one-time index
assignment done by ``reindex``.

Public API
----------
  Node.leaf(leaf_id)
  Node.join(children, index=-1)
  Node.join_pair(left, right, index=-1)
  Node.example_topologies()

  .pre_order(f) / .post_order(f) / .level_order(f)
  .triple_pre_order_internal(f)
  .triple_pre_order(f_root, f_internal)
  .pcss_pre_order(f)
  .reindex()
  .newick(branch_lengths=None, node_labels=None)
  .leaves(width=None)

Identity
--------
tag    ``(max_leaf_id << 32) | leaf_count``.  Unique among the nodes of one
       tree and independent of indexing, so it keys branch-length and label
       maps.
hash   64-bit structural hash.  Leaves hash their id with a 32-bit integer
       mix; internal nodes XOR their children's hashes and rotate the result
       left by one bit.  XOR alone is blind to the level at which a tip was
       combined, so ``(0,1,(2,3))`` and ``(0,2,(1,3))`` would collide; the
       rotation ties each contribution to its depth.
index  Offset into a branch-length vector, assigned by ``reindex``.

Children are sorted by max leaf id before tag and hash are computed, so the
order in which children are supplied does not matter.
"""

import logging
from collections import deque
from typing import Callable, Dict, List, Mapping, Optional, Sequence

import numpy as np

from sbntopo._bitset import Bitset
from sbntopo._errors import FatalTopologyError, IndexOutOfRangeError
from sbntopo._utils import (
    format_branch_length,
    pack_ints,
    string_of_packed_int,
    unpack_first_int,
    unpack_second_int,
)


logger = logging.getLogger(__name__)

_UINT32_MASK = 0xFFFFFFFF
_UINT64_MASK = 0xFFFFFFFFFFFFFFFF
_SO_HASH_MULTIPLIER = 0x45D9F3B

NodeVisitor = Callable[["Node"], None]
TripleVisitor = Callable[["Node", "Node", "Node"], None]
PCSSVisitor = Callable[
    ["Node", bool, "Node", bool, "Node", bool, "Node", bool], None
]


def _fatal(message: str) -> None:
    logger.critical(message)
    raise FatalTopologyError(message)


class Node:
    """
    A node of an immutable rooted topology.

    Use the factories ``Node.leaf`` and ``Node.join`` rather than calling
    the constructor directly.

    Attributes (read-only)
    ----------------------
    children    : tuple[Node, ...]   Empty for leaves; sorted by max leaf id.
    index       : int                Assigned by ``reindex``; -1 before that
                                     for internal nodes built without one.
    tag         : int                Packed (max_leaf_id, leaf_count).
    hash        : int                64-bit structural hash.
    max_leaf_id : int
    leaf_count  : int
    is_leaf     : bool
    """

    # ================================================================== #
    # Construction                                                         #
    # ================================================================== #

    def __init__(self, leaf_id: Optional[int] = None, children=None, index: int = -1):
        if children is None:
            if leaf_id is None:
                raise TypeError("Node needs either a leaf id or a list of children.")
            leaf_id = int(leaf_id)
            if leaf_id < 0 or leaf_id > _UINT32_MASK:
                raise ValueError(f"Leaf ids are unsigned 32-bit integers, got {leaf_id}.")
            self._children = ()
            self._index = leaf_id
            self._tag = pack_ints(leaf_id, 1)
            self._hash = Node._so_hash(leaf_id)
            return

        children = list(children)
        if len(children) == 0:
            _fatal("Called internal node constructor with no children.")

        children.sort(key=lambda child: child.max_leaf_id)
        for left, right in zip(children, children[1:]):
            # Sibling leaf sets are disjoint, so max leaf ids never tie.
            if left.max_leaf_id == right.max_leaf_id:
                _fatal(
                    f"Tie observed between {left.newick()} and {right.newick()}. "
                    f"Do you have a taxon name repeated?"
                )

        leaf_count = 0
        node_hash = 0
        for child in children:
            leaf_count += child.leaf_count
            node_hash ^= child.hash

        self._children = tuple(children)
        self._index = int(index)
        self._tag = pack_ints(children[-1].max_leaf_id, leaf_count)
        self._hash = Node._so_rotate(node_hash, 1)

    @classmethod
    def leaf(cls, leaf_id: int) -> "Node":
        return cls(leaf_id=leaf_id)

    @classmethod
    def join(cls, children: Sequence["Node"], index: int = -1) -> "Node":
        return cls(children=children, index=index)

    @classmethod
    def join_pair(cls, left: "Node", right: "Node", index: int = -1) -> "Node":
        return cls.join([left, right], index)

    @classmethod
    def example_topologies(cls) -> List["Node"]:
        """
        Return four small reindexed topologies used as fixtures.

          0: (0,1,(2,3))
          1: (0,1,(2,3)) again, built from children given in another order
          2: (0,2,(1,3))
          3: (0,(1,(2,3)))
        """
        leaf, join, join_pair = cls.leaf, cls.join, cls.join_pair
        topologies = [
            join([leaf(0), leaf(1), join_pair(leaf(2), leaf(3))]),
            join([leaf(1), leaf(0), join_pair(leaf(3), leaf(2))]),
            join([leaf(0), leaf(2), join_pair(leaf(1), leaf(3))]),
            join([leaf(0), join_pair(leaf(1), join_pair(leaf(2), leaf(3)))]),
        ]
        for topology in topologies:
            topology.reindex()
        return topologies

    # ================================================================== #
    # Accessors                                                            #
    # ================================================================== #

    @property
    def children(self):
        return self._children

    @property
    def index(self) -> int:
        return self._index

    @property
    def tag(self) -> int:
        return self._tag

    @property
    def hash(self) -> int:
        return self._hash

    @property
    def max_leaf_id(self) -> int:
        return unpack_first_int(self._tag)

    @property
    def leaf_count(self) -> int:
        return unpack_second_int(self._tag)

    @property
    def is_leaf(self) -> bool:
        return len(self._children) == 0

    @property
    def tag_string(self) -> str:
        return string_of_packed_int(self._tag)

    def leaves(self, width: Optional[int] = None) -> Bitset:
        """
        Return a Bitset of length *width* (default ``max_leaf_id + 1``) with
        the bits of this subtree's leaf ids set.
        """
        if width is None:
            width = self.max_leaf_id + 1
        bits = np.zeros(width, dtype=np.bool_)

        def mark(node: "Node") -> None:
            if node.is_leaf:
                if node.max_leaf_id >= width:
                    raise IndexOutOfRangeError(
                        f"Leaf id {node.max_leaf_id} does not fit in a Bitset of "
                        f"length {width}."
                    )
                bits[node.max_leaf_id] = True

        self.pre_order(mark)
        return Bitset(bits)

    # ================================================================== #
    # Equality and hashing                                                 #
    # ================================================================== #

    def __eq__(self, other) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        if self._hash != other._hash:
            return False
        if len(self._children) != len(other._children):
            return False
        if self.is_leaf:
            return self._tag == other._tag
        for mine, theirs in zip(self._children, other._children):
            if not mine == theirs:
                return False
        return True

    def __ne__(self, other) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self) -> int:
        return self._hash

    def __repr__(self) -> str:
        return f"Node({self.newick()!r})"

    # ================================================================== #
    # Traversals                                                           #
    # ================================================================== #

    def pre_order(self, f: NodeVisitor) -> None:
        f(self)
        for child in self._children:
            child.pre_order(f)

    def post_order(self, f: NodeVisitor) -> None:
        for child in self._children:
            child.post_order(f)
        f(self)

    def level_order(self, f: NodeVisitor) -> None:
        to_visit = deque([self])
        while to_visit:
            node = to_visit.popleft()
            f(node)
            to_visit.extend(node._children)

    def _mutable_post_order(self, f: NodeVisitor) -> None:
        for child in self._children:
            child._mutable_post_order(f)
        f(self)

    def triple_pre_order_internal(self, f: TripleVisitor) -> None:
        """
        Call ``f(parent, sister, node)`` for each child of every internal
        node of a strictly bifurcating subtree, in preorder.
        """
        if self.is_leaf:
            return
        if len(self._children) != 2:
            _fatal(
                f"triple_pre_order_internal needs a bifurcating subtree; "
                f"node {self.tag_string} has {len(self._children)} children."
            )
        child0, child1 = self._children
        f(self, child1, child0)
        child0.triple_pre_order_internal(f)
        f(self, child0, child1)
        child1.triple_pre_order_internal(f)

    def triple_pre_order(self, f_root: TripleVisitor, f_internal: TripleVisitor) -> None:
        """
        Traverse a trifurcating root as an unrooted tree.

        ``f_root`` is called on the rotations (c0, c1, c2), (c1, c2, c0) and
        (c2, c0, c1) of the root's children.  It is assumed symmetric in its
        last two arguments, so these three calls cover every way of picking
        one subtree against the other two.  ``f_internal`` then receives the
        (parent, sister, node) triples below each child.
        """
        if len(self._children) != 3:
            _fatal(
                f"triple_pre_order needs a trifurcating root; node "
                f"{self.tag_string} has {len(self._children)} children."
            )
        c0, c1, c2 = self._children
        f_root(c0, c1, c2)
        f_root(c1, c2, c0)
        f_root(c2, c0, c1)
        for child in self._children:
            child.triple_pre_order_internal(f_internal)

    def pcss_pre_order(self, f: PCSSVisitor) -> None:
        """
        Emit every parent-child subsplit record of an unrooted binary tree.

        ``f`` is called as::

            f(sister, sister_dir, focal, focal_dir,
              child0, child0_dir, child1, child1_dir)

        where a ``True`` direction means "the complement of this node's
        clade", i.e. the clade seen looking rootward across the node's edge.
        (sister, focal) is the parent subsplit and (child0, child1) splits
        the focal clade.

        Each edge contributes one record with the virtual root on the edge
        and the subsplit pointing up.  An edge above an internal node adds
        five more: virtual root above it (through each neighbour), on the
        edge pointing down, and in each of its two children.  A binary tree
        with n >= 4 leaves therefore yields ``7 * n - 18`` records.
        """

        def f_root(node0: "Node", node1: "Node", node2: "Node") -> None:
            # Virtual root on node2's edge, subsplit pointing up.
            f(node2, False, node2, True, node0, False, node1, False)
            if not node2.is_leaf:
                child0, child1 = Node._binary_children(node2)
                # Virtual root in node1.
                f(node0, False, node2, False, child0, False, child1, False)
                # Virtual root in node0.
                f(node1, False, node2, False, child0, False, child1, False)
                # Virtual root on node2's edge, subsplit pointing down.
                f(node2, True, node2, False, child0, False, child1, False)
                # Virtual root in child0.
                f(child1, False, node2, True, node0, False, node1, False)
                # Virtual root in child1.
                f(child0, False, node2, True, node0, False, node1, False)

        def f_internal(parent: "Node", sister: "Node", node: "Node") -> None:
            # Virtual root on node's edge, subsplit pointing up.
            f(node, False, node, True, parent, True, sister, False)
            if not node.is_leaf:
                child0, child1 = Node._binary_children(node)
                # Virtual root up the tree.
                f(sister, False, node, False, child0, False, child1, False)
                # Virtual root in sister.
                f(parent, True, node, False, child0, False, child1, False)
                # Virtual root on node's edge, subsplit pointing down.
                f(node, True, node, False, child0, False, child1, False)
                # Virtual root in child0.
                f(child1, False, node, True, sister, False, parent, True)
                # Virtual root in child1.
                f(child0, False, node, True, sister, False, parent, True)

        self.triple_pre_order(f_root, f_internal)

    @staticmethod
    def _binary_children(node: "Node"):
        if len(node._children) != 2:
            _fatal(
                f"pcss_pre_order needs non-root internal nodes with two "
                f"children; node {node.tag_string} has {len(node._children)}."
            )
        return node._children

    # ================================================================== #
    # Indexing                                                             #
    # ================================================================== #

    def reindex(self) -> Dict[int, int]:
        """
        Assign indices to every node of this topology and return a dict
        mapping each tag to its new index.

        Leaves get their leaf id, so leaf indices are 0 … leaf_count-1 when
        the ids are contiguous.  Internal nodes are numbered in postorder
        starting at ``max_leaf_id + 1``, so the root always receives the
        largest index.  Running it twice yields the same mapping.
        """
        tag_index_map: Dict[int, int] = {}
        next_index = 1 + self.max_leaf_id

        def assign(node: "Node") -> None:
            nonlocal next_index
            if node.is_leaf:
                node._index = node.max_leaf_id
            else:
                node._index = next_index
                next_index += 1
            if node._tag in tag_index_map:
                _fatal(
                    f"Tag {node.tag_string} appears twice while reindexing; "
                    f"the topology repeats a leaf or a subtree."
                )
            tag_index_map[node._tag] = node._index

        self._mutable_post_order(assign)
        logger.debug(
            "Reindexed topology %s: %d nodes, root index %d",
            self.tag_string,
            len(tag_index_map),
            self._index,
        )
        return tag_index_map

    # ================================================================== #
    # Newick output                                                        #
    # ================================================================== #

    def newick(
        self,
        branch_lengths: Optional[Sequence[float]] = None,
        node_labels: Optional[Mapping[int, str]] = None,
    ) -> str:
        """
        Return the Newick text of this topology, terminated by ``;``.

        Parameters
        ----------
        branch_lengths : sequence of float, optional
            Indexed by ``node.index``; when given every node is suffixed with
            ``:<length>``.
        node_labels : mapping tag -> str, optional
            Labels for leaves (required for every leaf) and, where present,
            internal nodes.  Without it leaves and internal nodes are labelled
            by their tag string, which exposes the discrete structure.
        """
        return self._newick_aux(branch_lengths, node_labels) + ";"

    def _newick_aux(self, branch_lengths, node_labels) -> str:
        if self.is_leaf:
            if node_labels is not None:
                text = node_labels[self._tag]
            else:
                text = self.tag_string
        else:
            text = (
                "("
                + ",".join(
                    child._newick_aux(branch_lengths, node_labels)
                    for child in self._children
                )
                + ")"
            )
            if node_labels is None:
                text += self.tag_string
            elif self._tag in node_labels:
                text += node_labels[self._tag]
        if branch_lengths is not None:
            if self._index < 0 or self._index >= len(branch_lengths):
                raise IndexOutOfRangeError(
                    f"Node {self.tag_string} has index {self._index}, outside "
                    f"a branch-length vector of length {len(branch_lengths)}."
                )
            text += ":" + format_branch_length(branch_lengths[self._index])
        return text

    # ================================================================== #
    # Private static methods (hash kernels)                                #
    # ================================================================== #

    @staticmethod
    def _so_hash(x: int) -> int:
        """
        **Private static.**  32-bit integer mix applied to leaf ids.

        Every multiplication wraps at 32 bits, so the values match the
        unsigned 32-bit arithmetic of other implementations bit for bit.
        """
        x &= _UINT32_MASK
        x = (((x >> 16) ^ x) * _SO_HASH_MULTIPLIER) & _UINT32_MASK
        x = (((x >> 16) ^ x) * _SO_HASH_MULTIPLIER) & _UINT32_MASK
        x = (x >> 16) ^ x
        return x

    @staticmethod
    def _so_rotate(n: int, c: int) -> int:
        """**Private static.**  Rotate the 64-bit value *n* left by *c* bits."""
        c &= 63
        n &= _UINT64_MASK
        if c == 0:
            return n
        return ((n << c) | (n >> (64 - c))) & _UINT64_MASK
