"""
_backend.py
===========
Which PCSS encoders can run on this machine, and which one to use.

Two backends exist:

  python        Bitset-based reference encoder.  Always present.
  cpu-parallel  ``_cpu_kernels._pcss_fill_njit`` compiled by numba.

The functions here only inspect the environment.  Reporting is left to
``_logging`` so that importing this module stays silent.
"""

from typing import List, Optional, Tuple


# ============================================================================ #
# Detection
# ============================================================================ #


def check_numba_available() -> bool:
    """True if ``import numba`` succeeds."""
    try:
        import numba  # noqa: F401

        return True
    except ImportError:
        return False


def get_available_backends() -> List[str]:
    """
    Return the usable backend names, slowest first.

    ``'python'`` is always the first entry; ``'cpu-parallel'`` is appended
    when numba imports and the PCSS kernel module loads.
    """
    backends = ["python"]
    if check_numba_available() and import_cpu_kernels()[0]:
        backends.append("cpu-parallel")
    return backends


def get_best_backend() -> str:
    """The fastest usable backend: the last entry of ``get_available_backends()``."""
    return get_available_backends()[-1]


def resolve_backend(backend: str) -> str:
    """
    Map a requested backend name to the one that will run.

    ``'best'`` becomes ``get_best_backend()``; any other name is returned
    unchanged if it is usable.

    Raises
    ------
    ValueError
        If *backend* is neither ``'best'`` nor an available backend.
    """
    if backend == "best":
        return get_best_backend()

    available = get_available_backends()
    if backend not in available:
        raise ValueError(
            f"Backend '{backend}' not available. "
            f"Available backends: {', '.join(available)}"
        )
    return backend


# ============================================================================ #
# Kernel import
# ============================================================================ #


def import_cpu_kernels() -> Tuple[bool, Optional[object]]:
    """
    Import the PCSS fill kernel.

    Returns ``(True, _pcss_fill_njit)`` on success and ``(False, None)`` if
    the kernel module fails to import.  Without numba the kernel is still
    importable and runs as plain Python.
    """
    try:
        from sbntopo._cpu_kernels import _pcss_fill_njit

        return (True, _pcss_fill_njit)
    except ImportError:
        return (False, None)


def get_backend_info() -> dict:
    """
    Summarise the backend state in one dict.

    Keys: ``numba_available`` (bool), ``backends`` (list of names, slowest
    first), ``best_backend`` (str) and ``cpu_kernels_available`` (bool).
    """
    cpu_kernels_ok, _ = import_cpu_kernels()
    return {
        "numba_available": check_numba_available(),
        "backends": get_available_backends(),
        "best_backend": get_best_backend(),
        "cpu_kernels_available": cpu_kernels_ok,
    }
