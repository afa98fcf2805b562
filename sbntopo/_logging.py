"""
_logging.py
===========
Report formatting for sbntopo.

The functions here receive values that were already computed elsewhere and
only turn them into log records on the ``sbntopo._logging`` logger.  The
import-time reports (system status, backends) and the per-call PCSS summary
both live here so ``_pcss`` keeps to encoding.
"""

import logging
from typing import List


logger = logging.getLogger(__name__)


# ============================================================================ #
# Import-time reports
# ============================================================================ #


def log_optimization_status(numba_available: bool) -> None:
    """
    Report the machine and the numba toolchain at INFO level.

    Runs once, when ``_pcss`` is first imported: architecture, core count,
    Python version, memory (if psutil is installed), then the numba and
    llvmlite versions and threading layer, or a hint to install numba.
    """
    import os
    import platform

    cpu_count = os.cpu_count() or 1
    logger.info(
        "System: %s (%s), %d CPU cores, Python %s",
        platform.machine(),
        platform.system(),
        cpu_count,
        platform.python_version(),
    )

    try:
        import psutil

        mem = psutil.virtual_memory()
        logger.info(
            "Memory: %.1f GB total, %.1f GB available",
            mem.total / (1024**3),
            mem.available / (1024**3),
        )
    except ImportError:
        pass  # psutil not required

    if numba_available:
        import numba

        logger.info("Numba %s loaded successfully", numba.__version__)

        # numba compiles through llvmlite
        try:
            import llvmlite

            logger.info("LLVM backend: llvmlite %s", llvmlite.__version__)
        except (ImportError, AttributeError):
            pass  # LLVM version unavailable

        try:
            logger.info(
                "Numba threading: %s layer, %d threads active",
                numba.threading_layer(),
                numba.get_num_threads(),
            )
        except Exception:
            pass  # threading layer is only known after the first parallel call
    else:
        logger.info("Numba not installed; PCSS kernels will run as pure Python")
        logger.info("Install numba for a compiled encoder: pip install numba")


def install_numba_warning_filter(numba_available: bool) -> None:
    """
    Capture NumbaPerformanceWarning and route it through our logger.

    numba issues performance warnings (e.g., "parallel=True but no prange
    found") via Python's warnings module. This filter intercepts them and
    logs them at WARNING level so they appear in the same stream as other
    sbntopo diagnostics.

    Parameters
    ----------
    numba_available : bool
        Whether numba was successfully imported.
    """
    import warnings

    if not numba_available:
        return  # No numba, no warnings to capture

    try:
        from numba.core.errors import NumbaPerformanceWarning
    except ImportError:
        return  # NumbaPerformanceWarning not available in this numba version

    original_showwarning = warnings.showwarning

    def custom_showwarning(message, category, filename, lineno, file=None, line=None):
        if issubclass(category, NumbaPerformanceWarning):
            logger.warning("Numba performance issue: %s", message)
            logger.warning("  at %s:%s", filename, lineno)
            return
        original_showwarning(message, category, filename, lineno, file, line)

    warnings.showwarning = custom_showwarning


def log_backend_availability(backends_available: List[str], numba_available: bool) -> None:
    """
    Log which execution backends are available for PCSS encoding.

    Parameters
    ----------
    backends_available : List[str]
        List of available backends (e.g., ['python', 'cpu-parallel'])
    numba_available : bool
        Whether numba was successfully imported.
    """
    logger.info("Available backends: %s", ", ".join(backends_available))

    if "cpu-parallel" in backends_available:
        logger.info("  cpu-parallel: LLVM-compiled parallel code (numba.njit + prange)")
    elif numba_available:
        logger.info("  cpu-parallel: unavailable (kernel import failed)")

    if "python" in backends_available:
        logger.info("  python: Bitset-based reference implementation")

    best = backends_available[-1]  # Last in list is most optimized
    logger.info("Default backend='best' will use: %s", best)


# ============================================================================ #
# Encoding Logging (called per operation)
# ============================================================================ #


def log_pcss_summary(
    topology_tag: str, n_leaves: int, n_records: int, width: int, backend: str
) -> None:
    """
    Log the shape of one PCSS encoding.

    Parameters
    ----------
    topology_tag : str
        Tag string of the encoded topology's root.
    n_leaves : int
        Number of leaves in the topology.
    n_records : int
        Number of PCSS records emitted by the traversal.
    width : int
        Bits per chunk (taxon count of the encoding).
    backend : str
        Backend that filled the matrix.
    """
    logger.info(
        "pcss_matrix(topology=%s, backend=%r): %d leaves, %d records",
        topology_tag,
        backend,
        n_leaves,
        n_records,
    )
    logger.debug(
        "  PCSS matrix shape (%d, %d): %.1f KB",
        n_records,
        3 * width,
        n_records * 3 * width / 1024,
    )
