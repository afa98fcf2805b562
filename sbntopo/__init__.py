"""
sbntopo
=======

Immutable phylogenetic topologies with canonical structural hashes, and the
subsplit bitsets used by subsplit Bayesian network models.

Main Classes
------------
Bitset : Fixed-length boolean vector with subsplit and PCSS helpers
Node : Immutable rooted topology with traversals and canonical hashing
Tree : Topology decorated with a branch-length vector

PCSS Encoding
-------------
pcss_records : Table of the records emitted by Node.pcss_pre_order
pcss_matrix : Boolean matrix with one PCSS bitset per record
pcss_bitsets : The same rows as Bitset objects
clade_matrix : Leaf-membership matrix indexed by node index

Context Managers
----------------
quiet : Suppress logging during operations
suppress_logger : Suppress specific logger
suppress_warnings : Suppress specific warnings
use_backend : Force specific PCSS encoding backend
silent_benchmark : Combine quiet + backend selection + warning suppression

Errors
------
FatalTopologyError : A structural contract was violated by the caller
LengthMismatchError : Operands of incompatible lengths
IndexOutOfRangeError : Index outside a bitset or branch-length vector

Examples
--------
>>> from sbntopo import Node, Tree
>>> topology = Node.join([Node.leaf(0), Node.leaf(1),
...                       Node.join_pair(Node.leaf(2), Node.leaf(3))])
>>> tree = Tree.unit_branch_length_tree_of(topology)
>>> tree.newick()
'(0_1:1,1_1:1,(2_1:1,3_1:1)3_2:1)3_4:1;'

>>> from sbntopo import pcss_bitsets
>>> [b.pcss_to_string() for b in pcss_bitsets(topology)][:2]
['0011|1100|0100', '1000|0011|0001']
"""

__version__ = "0.1.0"
__license__ = "MIT"

# Main classes
from ._bitset import Bitset
from ._node import Node
from ._tree import Tree

# PCSS encoding
from ._pcss import clade_matrix, pcss_bitsets, pcss_matrix, pcss_records

# Errors
from ._errors import FatalTopologyError, IndexOutOfRangeError, LengthMismatchError

# Context managers (user-facing utilities)
from ._context import (
    suppress_logger,
    quiet,
    suppress_warnings,
    use_backend,
    silent_benchmark,
)

# Utilities (generally useful functions)
from ._utils import (
    pack_ints,
    unpack_first_int,
    unpack_second_int,
    string_of_packed_int,
    format_branch_length,
)

# Backend information (useful for checking capabilities)
from ._backend import (
    get_available_backends,
    get_backend_info,
    check_numba_available,
)

# Public API
__all__ = [
    # Main classes
    "Bitset",
    "Node",
    "Tree",
    # PCSS encoding
    "clade_matrix",
    "pcss_bitsets",
    "pcss_matrix",
    "pcss_records",
    # Errors
    "FatalTopologyError",
    "IndexOutOfRangeError",
    "LengthMismatchError",
    # Context managers
    "suppress_logger",
    "quiet",
    "suppress_warnings",
    "use_backend",
    "silent_benchmark",
    # Utilities
    "pack_ints",
    "unpack_first_int",
    "unpack_second_int",
    "string_of_packed_int",
    "format_branch_length",
    # Backend information
    "get_available_backends",
    "get_backend_info",
    "check_numba_available",
    # Version info
    "__version__",
]
