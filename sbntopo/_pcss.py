"""
_pcss.py
========
Bulk encoding of the PCSS records of one unrooted topology.

``Node.pcss_pre_order`` streams records as node objects plus direction
flags.  This module turns that stream into flat numpy arrays and then into
PCSS bitsets, one row of ``3 * width`` bits per record.

Public API
----------
  clade_matrix(topology, width=None)      -> bool[n_nodes, width]
  pcss_records(topology)                  -> int64[n_records, 8]
  pcss_matrix(topology, backend='best')   -> bool[n_records, 3 * width]
  pcss_bitsets(topology, backend='best')  -> list[Bitset]

The topology must already be indexed (``reindex`` or a Tree built from it),
and ``width`` defaults to ``max_leaf_id + 1``.

Logging
-------
The module uses ``logging.getLogger('sbntopo._pcss')``.  On first import it
logs system and backend status at INFO level; every ``pcss_matrix`` call logs
the selected backend.  Silence it with ``sbntopo.quiet()``.
"""

import logging
from typing import List, Optional

import numpy as np

from sbntopo._backend import (
    check_numba_available,
    get_available_backends,
    get_best_backend,
    import_cpu_kernels,
    resolve_backend,
)
from sbntopo._bitset import Bitset
from sbntopo._context import get_backend_override
from sbntopo._logging import (
    install_numba_warning_filter,
    log_backend_availability,
    log_optimization_status,
    log_pcss_summary,
)
from sbntopo._node import Node


logger = logging.getLogger(__name__)

# ── Optional numba acceleration ──────────────────────────────────────────────
_NUMBA_AVAILABLE = check_numba_available()
_, _pcss_fill_njit = import_cpu_kernels()

_BACKENDS_AVAILABLE = get_available_backends()

# Track first calls to kernels for compilation logging
_kernel_first_call = {"cpu-parallel-pcss": True}

# Log system info and backend availability on module import
log_optimization_status(_NUMBA_AVAILABLE)
log_backend_availability(_BACKENDS_AVAILABLE, _NUMBA_AVAILABLE)
install_numba_warning_filter(_NUMBA_AVAILABLE)


# ======================================================================== #
# Record tables                                                             #
# ======================================================================== #


def clade_matrix(topology: Node, width: Optional[int] = None) -> np.ndarray:
    """
    Return the leaf-membership matrix of *topology*.

    Row ``node.index`` has ``True`` at each leaf id below ``node``.  Built in
    one postorder pass: a leaf sets its own bit, an internal node ORs its
    children's rows.
    """
    if width is None:
        width = topology.max_leaf_id + 1
    clades = np.zeros((topology.index + 1, width), dtype=np.bool_)

    def fill(node: Node) -> None:
        if node.is_leaf:
            clades[node.index, node.max_leaf_id] = True
        else:
            for child in node.children:
                clades[node.index] |= clades[child.index]

    topology.post_order(fill)
    return clades


def pcss_records(topology: Node) -> np.ndarray:
    """
    Return the ``pcss_pre_order`` stream of *topology* as an int64 table.

    Columns: sister index, sister direction, focal index, focal direction,
    child0 index, child0 direction, child1 index, child1 direction.
    """
    rows = []

    def record(sister, sister_dir, focal, focal_dir, child0, child0_dir, child1, child1_dir):
        rows.append(
            (
                sister.index,
                int(sister_dir),
                focal.index,
                int(focal_dir),
                child0.index,
                int(child0_dir),
                child1.index,
                int(child1_dir),
            )
        )

    topology.pcss_pre_order(record)
    return np.array(rows, dtype=np.int64).reshape(len(rows), 8)


# ======================================================================== #
# Encoding                                                                  #
# ======================================================================== #


def pcss_matrix(topology: Node, backend: str = "best") -> np.ndarray:
    """
    Encode every PCSS record of *topology* as one boolean row.

    Parameters
    ----------
    topology : Node
        An indexed topology with a trifurcating root and bifurcating
        internal nodes below it.
    backend : str, default 'best'
        'python', 'cpu-parallel' or 'best'.  A ``use_backend`` block
        overrides this argument.  An unavailable backend falls back to the
        best available one with a warning.

    Returns
    -------
    np.ndarray
        bool array of shape ``(7 * n - 18, 3 * width)`` for a tree with
        ``n`` leaves.  Each row passes ``Bitset.pcss_is_valid``.
    """
    backend_override = get_backend_override()
    if backend_override is not None:
        backend = backend_override

    try:
        resolved_backend = resolve_backend(backend)
    except ValueError as e:
        logger.warning(str(e))
        resolved_backend = get_best_backend()

    clades = clade_matrix(topology)
    records = pcss_records(topology)
    width = clades.shape[1]
    log_pcss_summary(
        topology.tag_string,
        topology.leaf_count,
        records.shape[0],
        width,
        resolved_backend,
    )

    if resolved_backend == "cpu-parallel":
        if _kernel_first_call.get("cpu-parallel-pcss", False):
            logger.info("  Compiling cpu-parallel-pcss kernel (cached for future calls)")
            _kernel_first_call["cpu-parallel-pcss"] = False
        out = np.zeros((records.shape[0], 3 * width), dtype=np.bool_)
        _pcss_fill_njit(records, clades, out)
        return out

    elif resolved_backend == "python":
        bitsets = _pcss_bitsets_python(records, clades)
        out = np.zeros((records.shape[0], 3 * width), dtype=np.bool_)
        for r, bitset in enumerate(bitsets):
            out[r] = bitset.to_numpy()
        return out

    else:
        raise RuntimeError(f"Internal error: unhandled backend {resolved_backend!r}")


def pcss_bitsets(topology: Node, backend: str = "best") -> List[Bitset]:
    """Return the rows of ``pcss_matrix(topology, backend)`` as Bitsets."""
    return [Bitset(row) for row in pcss_matrix(topology, backend=backend)]


def _pcss_bitsets_python(records: np.ndarray, clades: np.ndarray) -> List[Bitset]:
    """
    **Private.**  Reference encoder: assemble each PCSS Bitset from the
    sister, focal and smaller child clade with ``Bitset.copy_from``.
    """
    width = clades.shape[1]
    node_bitsets = [Bitset(row) for row in clades]
    bitsets = []
    for row in records:
        sister, sister_dir, focal, focal_dir, child0, child0_dir, child1, child1_dir = (
            int(v) for v in row
        )
        pcss = Bitset(3 * width)
        pcss.copy_from(node_bitsets[sister], 0, bool(sister_dir))
        pcss.copy_from(node_bitsets[focal], width, bool(focal_dir))
        child0_bitset = node_bitsets[child0].copy()
        if child0_dir:
            child0_bitset.flip()
        child1_bitset = node_bitsets[child1].copy()
        if child1_dir:
            child1_bitset.flip()
        pcss.copy_from(min(child0_bitset, child1_bitset), 2 * width, False)
        bitsets.append(pcss)
    return bitsets
