"""
_bitset.py
==========
A fixed-length vector of booleans backed by a numpy ``bool_`` array.

Public API
----------
  Bitset(value, initial_value=False)
      ``value`` may be a "0101" string, an integer length, another Bitset,
      or any 1-D sequence of truth values.

  Element access     : b[i], len(b), b.set(i), b.reset(i), b.flip(i=None)
  Ordering           : ==, !=, <, <=, >, >=   (lexicographic, index 0 first)
  Set algebra        : &, |, ^, ~, &=, |=     (equal lengths only)
  Hashing            : hash(b)                (polynomial over the bits)
  Subsplits          : b.any(), b.minorize(), b.copy_from(other, begin, flip)
  PCSS records       : b.pcss_chunk(i), b.pcss_is_valid(), b.pcss_to_string()

PCSS layout
-----------
A parent-child subsplit support record over ``n`` taxa is a Bitset of length
``3 * n`` made of three equal chunks:

  chunk 0   sister clade   (the half of the parent subsplit not being split)
  chunk 1   focal clade    (the half of the parent subsplit being split)
  chunk 2   child clade    (one side of the split of the focal clade)

Mutability
----------
Bitsets are mutable (``set``, ``flip``, ``minorize``, ``copy_from``, the
augmented operators) and also hashable.  Do not mutate a Bitset while it is
used as a dict key or set member.
"""

import numpy as np

from sbntopo._errors import IndexOutOfRangeError, LengthMismatchError


_HASH_BASE = 31
_HASH_MASK = 0xFFFFFFFFFFFFFFFF


class Bitset:
    """
    A fixed-length sequence of booleans with subsplit-specific helpers.

    The length is fixed at construction; no operation changes it.
    """

    # ================================================================== #
    # Construction                                                         #
    # ================================================================== #

    def __init__(self, value, initial_value: bool = False) -> None:
        if isinstance(value, Bitset):
            bits = value._bits.copy()
        elif isinstance(value, str):
            bits = Bitset._parse_string(value)
        elif isinstance(value, (int, np.integer)) and not isinstance(value, bool):
            if value < 0:
                raise ValueError(f"Bitset length must be non-negative, got {value}.")
            bits = np.full(int(value), bool(initial_value), dtype=np.bool_)
        else:
            bits = np.array(value, dtype=np.bool_)
            if bits.ndim != 1:
                raise ValueError(
                    f"Bitset needs a 1-D sequence, got shape {bits.shape}."
                )
        self._bits = bits

    @staticmethod
    def _parse_string(text: str) -> np.ndarray:
        bits = np.empty(len(text), dtype=np.bool_)
        for i, c in enumerate(text):
            if c == "1":
                bits[i] = True
            elif c == "0":
                bits[i] = False
            else:
                raise ValueError(
                    f"Bitset strings may only contain '0' and '1'; "
                    f"found {c!r} at position {i} in {text!r}."
                )
        return bits

    def copy(self) -> "Bitset":
        return Bitset(self)

    def to_numpy(self) -> np.ndarray:
        """Return a copy of the bits as a 1-D numpy bool array."""
        return self._bits.copy()

    # ================================================================== #
    # Element access                                                       #
    # ================================================================== #

    def __len__(self) -> int:
        return int(self._bits.shape[0])

    def __getitem__(self, i: int) -> bool:
        self._check_index(i)
        return bool(self._bits[i])

    def __iter__(self):
        for bit in self._bits:
            yield bool(bit)

    def set(self, i: int, value: bool = True) -> None:
        self._check_index(i)
        self._bits[i] = bool(value)

    def reset(self, i: int) -> None:
        self.set(i, False)

    def flip(self, i=None) -> None:
        """Flip bit *i*, or every bit when *i* is omitted."""
        if i is None:
            np.logical_not(self._bits, out=self._bits)
        else:
            self._check_index(i)
            self._bits[i] = not self._bits[i]

    def _check_index(self, i) -> None:
        if not isinstance(i, (int, np.integer)) or isinstance(i, bool):
            raise TypeError(f"Bitset indices must be integers, not {type(i).__name__}.")
        if i < 0 or i >= len(self):
            raise IndexOutOfRangeError(
                f"Bitset index {i} out of range for length {len(self)}."
            )

    # ================================================================== #
    # Comparison and hashing                                               #
    # ================================================================== #

    def _compare(self, other: "Bitset") -> int:
        """Return -1, 0 or 1 for lexicographic order, ``False < True``."""
        n = min(len(self), len(other))
        diff = np.flatnonzero(self._bits[:n] != other._bits[:n])
        if diff.shape[0] > 0:
            return 1 if self._bits[diff[0]] else -1
        if len(self) == len(other):
            return 0
        return -1 if len(self) < len(other) else 1

    def __eq__(self, other) -> bool:
        if not isinstance(other, Bitset):
            return NotImplemented
        return len(self) == len(other) and bool(np.array_equal(self._bits, other._bits))

    def __ne__(self, other) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __lt__(self, other: "Bitset") -> bool:
        if not isinstance(other, Bitset):
            return NotImplemented
        return self._compare(other) < 0

    def __le__(self, other: "Bitset") -> bool:
        if not isinstance(other, Bitset):
            return NotImplemented
        return self._compare(other) <= 0

    def __gt__(self, other: "Bitset") -> bool:
        if not isinstance(other, Bitset):
            return NotImplemented
        return self._compare(other) > 0

    def __ge__(self, other: "Bitset") -> bool:
        if not isinstance(other, Bitset):
            return NotImplemented
        return self._compare(other) >= 0

    def hash_value(self) -> int:
        """
        Polynomial hash of the bits: ``h = h * 31 + bit`` modulo 2**64,
        seeded with the length so that leading zeros are not ignored.
        """
        h = len(self) & _HASH_MASK
        for bit in self._bits:
            h = (h * _HASH_BASE + int(bit)) & _HASH_MASK
        return h

    def __hash__(self) -> int:
        return self.hash_value()

    # ================================================================== #
    # Set algebra                                                          #
    # ================================================================== #

    def _check_same_length(self, other: "Bitset", op: str) -> None:
        if len(self) != len(other):
            raise LengthMismatchError(
                f"Bitset operator {op} needs equal lengths, "
                f"got {len(self)} and {len(other)}."
            )

    def __and__(self, other: "Bitset") -> "Bitset":
        self._check_same_length(other, "&")
        return Bitset(self._bits & other._bits)

    def __or__(self, other: "Bitset") -> "Bitset":
        self._check_same_length(other, "|")
        return Bitset(self._bits | other._bits)

    def __xor__(self, other: "Bitset") -> "Bitset":
        self._check_same_length(other, "^")
        return Bitset(self._bits ^ other._bits)

    def __invert__(self) -> "Bitset":
        return Bitset(~self._bits)

    def __iand__(self, other: "Bitset") -> "Bitset":
        self._check_same_length(other, "&=")
        self._bits &= other._bits
        return self

    def __ior__(self, other: "Bitset") -> "Bitset":
        self._check_same_length(other, "|=")
        self._bits |= other._bits
        return self

    # ================================================================== #
    # Subsplit helpers                                                     #
    # ================================================================== #

    def any(self) -> bool:
        return bool(self._bits.any())

    def minorize(self) -> None:
        """
        Flip every bit in place if the first bit is set.

        A bipartition and its complement minorize to the same Bitset, so the
        result is a canonical representative of the unordered split.
        """
        if len(self) > 0 and self._bits[0]:
            self.flip()

    def copy_from(self, other: "Bitset", begin: int, flip: bool) -> None:
        """
        Overwrite ``self[begin : begin + len(other)]`` with *other*'s bits,
        complemented when *flip* is true.
        """
        end = begin + len(other)
        if begin < 0 or end > len(self):
            raise IndexOutOfRangeError(
                f"Cannot copy {len(other)} bits at offset {begin} into a "
                f"Bitset of length {len(self)}."
            )
        if flip:
            self._bits[begin:end] = ~other._bits
        else:
            self._bits[begin:end] = other._bits

    def to_string(self) -> str:
        return "".join("1" if bit else "0" for bit in self._bits)

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"Bitset('{self.to_string()}')"

    # ================================================================== #
    # PCSS records                                                         #
    # ================================================================== #

    def _pcss_chunk_size(self) -> int:
        if len(self) % 3 != 0:
            raise LengthMismatchError(
                f"PCSS Bitsets have a length divisible by 3, got {len(self)}."
            )
        return len(self) // 3

    def pcss_chunk(self, i: int) -> "Bitset":
        """Return chunk *i* (0 = sister, 1 = focal, 2 = child) of a PCSS Bitset."""
        chunk_size = self._pcss_chunk_size()
        if i < 0 or i > 2:
            raise IndexOutOfRangeError(f"PCSS chunk index must be 0, 1 or 2, got {i}.")
        return Bitset(self._bits[i * chunk_size : (i + 1) * chunk_size])

    def pcss_to_string(self) -> str:
        chunk_size = self._pcss_chunk_size()
        text = self.to_string()
        return "|".join(
            text[i * chunk_size : (i + 1) * chunk_size] for i in range(3)
        )

    def pcss_is_valid(self) -> bool:
        """
        Return True if this Bitset is a well-formed PCSS record.

        The sister and focal chunks must be disjoint (together they are the
        parent subsplit), and the child chunk must be a non-empty subset of
        the focal chunk.  Malformed input yields False, never an exception.
        """
        if len(self) % 3 != 0:
            return False
        sister = self.pcss_chunk(0)
        focal = self.pcss_chunk(1)
        child = self.pcss_chunk(2)
        if (sister & focal).any():
            return False
        if (child & ~focal).any():
            return False
        return child.any()
