"""
tests/test_tree.py
==================
Pytest test suite for the Tree class.

Tree fixtures
-------------
``Tree.example_trees()`` wraps each of ``Node.example_topologies()`` with unit
branch lengths:

  (0_1:1,1_1:1,(2_1:1,3_1:1)3_2:1)3_4:1;          6 nodes, root index 5
  (0_1:1,1_1:1,(2_1:1,3_1:1)3_2:1)3_4:1;          same, built in another order
  (0_1:1,2_1:1,(1_1:1,3_1:1)3_2:1)3_4:1;          6 nodes
  (0_1:1,(1_1:1,(2_1:1,3_1:1)3_2:1)3_3:1)3_4:1;   7 nodes, root index 6

Detrifurcating the first gives
  (0_1:1,(1_1:1,(2_1:1,3_1:1)3_2:1)3_3:0)3_4:0;
"""

import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from sbntopo._errors import FatalTopologyError, IndexOutOfRangeError, LengthMismatchError
from sbntopo._node import Node
from sbntopo._tree import Tree
from sbntopo._utils import pack_ints


leaf = Node.leaf
join = Node.join
join_pair = Node.join_pair


def weighted_trifurcation() -> Tree:
    """(0:0.1,1:0.2,(2:0.3,3:0.4):0.5):0.9 keyed by tag."""
    topology = join([leaf(0), leaf(1), join_pair(leaf(2), leaf(3))])
    lengths = {
        pack_ints(0, 1): 0.1,
        pack_ints(1, 1): 0.2,
        pack_ints(2, 1): 0.3,
        pack_ints(3, 1): 0.4,
        pack_ints(3, 2): 0.5,
        pack_ints(3, 4): 0.9,
    }
    return Tree(topology, lengths)


def lengths_by_tag(tree: Tree) -> dict:
    out = {}
    tree.topology.pre_order(lambda node: out.__setitem__(node.tag, tree.branch_length(node)))
    return out


# ======================================================================== #
# Fixtures                                                                  #
# ======================================================================== #


@pytest.fixture(scope="module")
def examples():
    return Tree.example_trees()


@pytest.fixture
def weighted():
    return weighted_trifurcation()


# ======================================================================== #
# 1. Construction                                                           #
# ======================================================================== #


class TestConstruction:
    def test_tag_keyed(self, weighted):
        assert weighted.n_nodes == 6
        np.testing.assert_allclose(weighted.branch_lengths, [0.1, 0.2, 0.3, 0.4, 0.5, 0.9])

    def test_tag_keyed_fills_missing_with_zero(self):
        topology = join([leaf(0), leaf(1), join_pair(leaf(2), leaf(3))])
        tree = Tree(topology, {pack_ints(2, 1): 2.5})
        np.testing.assert_array_equal(tree.branch_lengths, [0, 0, 2.5, 0, 0, 0])

    def test_tag_keyed_reindexes(self):
        topology = join([leaf(0), leaf(1), join_pair(leaf(2), leaf(3))])
        assert topology.index == -1
        Tree(topology, {})
        assert topology.index == 5

    def test_index_keyed(self, examples):
        topology = examples[0].topology
        tree = Tree(topology, [1, 2, 3, 4, 5, 6])
        assert tree.branch_lengths.dtype == np.float64
        assert tree.branch_length(topology.children[2]) == 5.0

    def test_index_keyed_wrong_length(self, examples):
        with pytest.raises(LengthMismatchError):
            Tree(examples[0].topology, [1.0, 2.0])

    def test_branch_lengths_read_only(self, weighted):
        with pytest.raises(ValueError):
            weighted.branch_lengths[0] = 3.0

    def test_index_keyed_copies_input(self, examples):
        source = np.ones(6)
        tree = Tree(examples[0].topology, source)
        source[0] = 7.0
        assert tree.branch_lengths[0] == 1.0

    def test_unit_branch_lengths(self, examples):
        for tree in examples:
            assert tree.n_nodes == tree.index + 1
            assert np.all(tree.branch_lengths == 1.0)

    def test_example_node_counts(self, examples):
        assert [tree.n_nodes for tree in examples] == [6, 6, 6, 7]


class TestEquality:
    def test_twins_equal(self, examples):
        assert examples[0] == examples[1]

    def test_different_topologies(self, examples):
        assert examples[0] != examples[2]

    def test_different_lengths(self, examples):
        topology = examples[0].topology
        assert Tree(topology, np.ones(6)) != Tree(topology, np.full(6, 2.0))

    def test_unhashable(self, examples):
        with pytest.raises(TypeError):
            hash(examples[0])


# ======================================================================== #
# 2. Lookups and output                                                     #
# ======================================================================== #


class TestBranchLength:
    def test_lookup(self, weighted):
        assert weighted.branch_length(weighted.children[2]) == 0.5
        assert weighted.branch_length(weighted.topology) == 0.9

    def test_out_of_range(self, weighted):
        stranger = join_pair(leaf(0), leaf(1), 42)
        with pytest.raises(IndexOutOfRangeError):
            weighted.branch_length(stranger)

    def test_unindexed_node(self, weighted):
        with pytest.raises(IndexOutOfRangeError):
            weighted.branch_length(join_pair(leaf(0), leaf(1)))


class TestNewick:
    def test_unit_lengths(self, examples):
        assert examples[0].newick() == "(0_1:1,1_1:1,(2_1:1,3_1:1)3_2:1)3_4:1;"
        assert examples[3].newick() == "(0_1:1,(1_1:1,(2_1:1,3_1:1)3_2:1)3_3:1)3_4:1;"

    def test_fractional_lengths(self, weighted):
        assert weighted.newick() == (
            "(0_1:0.1,1_1:0.2,(2_1:0.3,3_1:0.4)3_2:0.5)3_4:0.9;"
        )

    def test_labels(self, weighted):
        labels = {pack_ints(i, 1): name for i, name in enumerate("ABCD")}
        assert weighted.newick(labels) == "(A:0.1,B:0.2,(C:0.3,D:0.4):0.5):0.9;"

    def test_scientific(self):
        tree = Tree(join_pair(leaf(0), leaf(1)), {pack_ints(0, 1): 1e-05, pack_ints(1, 1): 1e20})
        assert tree.newick() == "(0_1:1e-05,1_1:1e+20)1_2:0;"


# ======================================================================== #
# 3. Detrifurcation                                                         #
# ======================================================================== #


class TestDetrifurcate:
    def test_newick(self, examples):
        assert examples[0].detrifurcate().newick() == (
            "(0_1:1,(1_1:1,(2_1:1,3_1:1)3_2:1)3_3:0)3_4:0;"
        )

    def test_one_more_node(self, examples):
        tree = examples[0]
        assert tree.detrifurcate().n_nodes == tree.n_nodes + 1

    def test_new_edges_zeroed(self, weighted):
        result = weighted.detrifurcate()
        assert result.branch_length(result.topology) == 0.0
        new_internal = result.children[1]
        assert new_internal.tag == pack_ints(3, 3)
        assert result.branch_length(new_internal) == 0.0

    def test_other_lengths_carried_by_tag(self, weighted):
        before = lengths_by_tag(weighted)
        after = lengths_by_tag(weighted.detrifurcate())
        for tag, length in before.items():
            if tag != weighted.topology.tag:
                assert after[tag] == length

    def test_original_untouched(self, weighted):
        newick_before = weighted.newick()
        lengths_before = weighted.branch_lengths.copy()
        weighted.detrifurcate()
        assert weighted.newick() == newick_before
        np.testing.assert_array_equal(weighted.branch_lengths, lengths_before)
        assert len(weighted.children) == 3

    def test_subtrees_are_shared(self, weighted):
        result = weighted.detrifurcate()
        assert result.children[0] is weighted.children[0]
        assert result.children[1].children[1] is weighted.children[2]

    def test_non_canonical_indexing_untouched(self):
        # Index-keyed tree whose internal nodes are not in reindex order.
        a = join_pair(leaf(1), leaf(2), 6)
        b = join_pair(leaf(3), leaf(4), 5)
        topology = join([leaf(0), a, b], 7)
        tree = Tree(topology, [0.1, 0.2, 0.3, 0.4, 0.5, 0.55, 0.66, 0.9])

        result = tree.detrifurcate()

        assert (a.index, b.index, topology.index) == (6, 5, 7)
        assert (tree.branch_length(a), tree.branch_length(b)) == (0.66, 0.55)
        assert (result.branch_length(a), result.branch_length(b)) == (0.66, 0.55)
        assert result.n_nodes == 9
        assert result.index == 8
        assert result.children[1].index == 7
        assert result.branch_length(result.children[1]) == 0.0
        assert result.branch_length(result.topology) == 0.0

    def test_result_is_bifurcating(self, examples):
        result = examples[2].detrifurcate()
        assert len(result.children) == 2
        assert result.topology == join_pair(
            leaf(0), join_pair(leaf(2), join_pair(leaf(1), leaf(3)))
        )

    def test_non_trifurcating_is_fatal(self, examples):
        with pytest.raises(FatalTopologyError):
            examples[3].detrifurcate()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
