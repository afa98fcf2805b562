"""
_cpu_kernels.py
===============
CPU-accelerated PCSS encoding kernels using Numba.

This module contains ONLY numba-accelerated code and should not import other
project modules to avoid import-time complications.  The module-level
functions are JIT-compiled by numba when available, or run as pure Python
when numba is not installed.

Exported Functions
------------------
_pcss_fill_njit : njit function
    Parallel fill of a PCSS matrix from a record table and a clade matrix.

Notes
-----
- Functions use prange for parallel execution when numba is available
- cache=True persists compiled binary to disk for faster subsequent runs
"""

import numpy as np

# ── Optional numba acceleration ──────────────────────────────────────────────
try:
    from numba import njit, prange
    _NUMBA_AVAILABLE = True
except ImportError:
    _NUMBA_AVAILABLE = False

    def njit(*args, **kwargs):
        """Identity decorator; stands in for numba.njit when numba is absent."""
        if args and callable(args[0]):   # @njit without arguments
            return args[0]
        return lambda fn: fn             # @njit(parallel=True, ...) with arguments

    prange = range  # serial fallback for prange


# ======================================================================== #
# CPU Kernels                                                               #
# ======================================================================== #


@njit(parallel=True, cache=True)
def _pcss_fill_njit(records, clades, out):
    """
    Fill one PCSS row per record.

    Parameters
    ----------
    records : int64[n_records, 8]
        (sister, sister_dir, focal, focal_dir,
         child0, child0_dir, child1, child1_dir); node entries are row
        indices into *clades*, direction entries are 0 or 1.
    clades  : bool[n_nodes, width]
        Row ``i`` marks the leaves below the node with index ``i``.
    out     : bool[n_records, 3 * width]
        Output buffer, written in place.

    Row layout
    ----------
    [0, width)            sister clade, complemented when sister_dir
    [width, 2 * width)    focal clade, complemented when focal_dir
    [2 * width, 3 * width)  lexicographically smaller child clade
    """
    n_records = records.shape[0]
    width = clades.shape[1]

    for r in prange(n_records):
        sister = records[r, 0]
        sister_flip = records[r, 1] != 0
        focal = records[r, 2]
        focal_flip = records[r, 3] != 0
        child0 = records[r, 4]
        child0_flip = records[r, 5] != 0
        child1 = records[r, 6]
        child1_flip = records[r, 7] != 0

        for k in range(width):
            out[r, k] = clades[sister, k] != sister_flip
            out[r, width + k] = clades[focal, k] != focal_flip

        # Index 0 is most significant and False < True.
        use_child0 = True
        for k in range(width):
            a = clades[child0, k] != child0_flip
            b = clades[child1, k] != child1_flip
            if a != b:
                use_child0 = b
                break

        if use_child0:
            for k in range(width):
                out[r, 2 * width + k] = clades[child0, k] != child0_flip
        else:
            for k in range(width):
                out[r, 2 * width + k] = clades[child1, k] != child1_flip
