"""
_utils.py
=========
General-purpose helpers for sbntopo.

These are standalone functions that don't depend on the main classes: the
packing of a (max leaf id, leaf count) pair into a single 64-bit tag, and the
formatting of branch lengths in Newick output.
"""

_UINT32_MASK = 0xFFFFFFFF


def pack_ints(first: int, second: int) -> int:
    """
    Pack two unsigned 32-bit integers into one 64-bit integer.

    The first integer occupies the high 32 bits, so ordering packed values
    orders primarily by *first*.

    Examples
    --------
    >>> pack_ints(3, 4)
    12884901892
    >>> unpack_first_int(pack_ints(3, 4)), unpack_second_int(pack_ints(3, 4))
    (3, 4)
    """
    return ((first & _UINT32_MASK) << 32) | (second & _UINT32_MASK)


def unpack_first_int(packed: int) -> int:
    """Return the high 32 bits of a value built by :func:`pack_ints`."""
    return (packed >> 32) & _UINT32_MASK


def unpack_second_int(packed: int) -> int:
    """Return the low 32 bits of a value built by :func:`pack_ints`."""
    return packed & _UINT32_MASK


def string_of_packed_int(packed: int) -> str:
    """
    Render a packed tag as ``"<first>_<second>"``.

    For node tags this reads ``"<max_leaf_id>_<leaf_count>"``, which is the
    default label used in Newick output.

    Examples
    --------
    >>> string_of_packed_int(pack_ints(3, 2))
    '3_2'
    """
    return f"{unpack_first_int(packed)}_{unpack_second_int(packed)}"


def format_branch_length(value: float) -> str:
    """
    Format a branch length for Newick output.

    Uses the shortest string that round-trips to the same double, with a
    trailing ``.0`` removed so integral lengths print as integers. The
    result does not depend on the locale.

    Examples
    --------
    >>> format_branch_length(1.0)
    '1'
    >>> format_branch_length(0.25)
    '0.25'
    >>> format_branch_length(1e-05)
    '1e-05'
    >>> format_branch_length(0.0)
    '0'
    """
    text = repr(float(value))
    if text.endswith(".0"):
        text = text[:-2]
    return text
