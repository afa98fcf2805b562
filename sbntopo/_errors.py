"""
_errors.py
==========
Error conditions raised by sbntopo.

Two tiers
---------
FatalTopologyError
    A caller broke a hard structural contract (empty child list, a taxon
    repeated under one parent, a non-trifurcating root passed to
    ``detrifurcate``, a tag collision while reindexing, a non-binary node in
    a triple traversal).  It is logged at CRITICAL before being raised and is
    not meant to be caught and recovered from.

LengthMismatchError, IndexOutOfRangeError
    Operation errors on otherwise well-formed objects.  They subclass the
    builtin ``ValueError`` and ``IndexError`` so callers that validate their
    own input can catch them in the usual way.
"""


class FatalTopologyError(RuntimeError):
    """A structural invariant of a topology was violated by the caller."""


class LengthMismatchError(ValueError):
    """Operands or buffers have incompatible lengths."""


class IndexOutOfRangeError(IndexError):
    """An index lies outside a bitset or branch-length vector."""
