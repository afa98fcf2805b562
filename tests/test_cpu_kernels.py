"""
test_cpu_kernels.py
===================
Tests for CPU kernels (_cpu_kernels.py).

The kernel is called directly on hand-built record tables and clade
matrices.  Without numba the same function runs as plain Python, so these
tests run either way; the compiled path is additionally compared against the
python backend in test_pcss.py.
"""

import sys
from pathlib import Path

# Add parent directory to path so we can import the kernel modules
sys.path.insert(0, str(Path(__file__).parent.parent))

import numpy as np
import pytest

from sbntopo._cpu_kernels import _NUMBA_AVAILABLE, _pcss_fill_njit


# Clades of (0,1,(2,3)): leaves 0-3, cherry at index 4, root at index 5.
CLADES = np.array(
    [
        [1, 0, 0, 0],
        [0, 1, 0, 0],
        [0, 0, 1, 0],
        [0, 0, 0, 1],
        [0, 0, 1, 1],
        [1, 1, 1, 1],
    ],
    dtype=np.bool_,
)


def fill(records):
    records = np.asarray(records, dtype=np.int64).reshape(-1, 8)
    out = np.zeros((records.shape[0], 3 * CLADES.shape[1]), dtype=np.bool_)
    _pcss_fill_njit(records, CLADES, out)
    return out


def as_string(row):
    text = "".join("1" if bit else "0" for bit in row)
    return "|".join(text[i : i + 4] for i in range(0, 12, 4))


class TestKernelImports:
    def test_numba_availability_flag_exists(self):
        assert isinstance(_NUMBA_AVAILABLE, bool)

    def test_kernel_is_callable(self):
        assert callable(_pcss_fill_njit)


class TestPCSSFill:
    def test_virtual_root_on_cherry_edge(self):
        out = fill([4, 0, 4, 1, 0, 0, 1, 0])
        assert as_string(out[0]) == "0011|1100|0100"

    def test_complemented_sister(self):
        out = fill([3, 1, 3, 0, 2, 0, 4, 0])
        assert as_string(out[0]) == "1110|0001|0010"

    def test_smaller_child_chosen(self):
        # Child order in the record does not matter.
        a = fill([0, 0, 0, 1, 1, 0, 4, 0])
        b = fill([0, 0, 0, 1, 4, 0, 1, 0])
        np.testing.assert_array_equal(a, b)
        assert as_string(a[0]) == "1000|0111|0011"

    def test_complemented_child(self):
        # The complement of the root clade is empty and sorts first.
        out = fill([0, 0, 0, 1, 4, 0, 5, 1])
        assert as_string(out[0]) == "1000|0111|0000"

    def test_rows_independent(self):
        records = [
            [4, 0, 4, 1, 0, 0, 1, 0],
            [0, 0, 4, 0, 2, 0, 3, 0],
            [4, 1, 4, 0, 2, 0, 3, 0],
        ]
        out = fill(records)
        assert [as_string(row) for row in out] == [
            "0011|1100|0100",
            "1000|0011|0001",
            "1100|0011|0001",
        ]

    def test_writes_in_place(self):
        records = np.array([[4, 0, 4, 1, 0, 0, 1, 0]], dtype=np.int64)
        out = np.ones((1, 12), dtype=np.bool_)
        result = _pcss_fill_njit(records, CLADES, out)
        assert result is None
        assert as_string(out[0]) == "0011|1100|0100"

    def test_empty_record_table(self):
        out = fill(np.zeros((0, 8), dtype=np.int64))
        assert out.shape == (0, 12)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
