"""
_context.py
===========
Context managers that change sbntopo state for the length of a ``with``
block and put it back afterwards, also when the block raises.

Logging    : suppress_logger(name, level), quiet(level)
Warnings   : suppress_warnings(category)
Backends   : use_backend(name), get_backend_override()
Combined   : silent_benchmark(backend)
"""

import logging
import warnings
from contextlib import contextmanager
from typing import Optional, Type


# Backend forced by the innermost active ``use_backend`` block.
_backend_override = None

_PACKAGE_LOGGER = "sbntopo"


# ============================================================================ #
# Logging
# ============================================================================ #


@contextmanager
def suppress_logger(logger_name: str, level: int = logging.CRITICAL):
    """
    Set the level of logger *logger_name* to *level* inside the block.

    Examples
    --------
    >>> with suppress_logger('sbntopo._pcss'):
    ...     matrix = pcss_matrix(topology)

    >>> with suppress_logger('sbntopo._node', logging.WARNING):
    ...     topology.reindex()
    """
    logger = logging.getLogger(logger_name)
    saved_level = logger.level
    try:
        logger.setLevel(level)
        yield
    finally:
        logger.setLevel(saved_level)


@contextmanager
def quiet(level: int = logging.CRITICAL):
    """
    Silence the whole package below *level*.

    Every module logger is a child of ``sbntopo``, so raising that one level
    covers them all unless a module logger carries an explicit level of its
    own.  The default still lets the CRITICAL record that precedes a
    ``FatalTopologyError`` through.

    >>> with quiet():
    ...     bitsets = pcss_bitsets(topology)
    """
    with suppress_logger(_PACKAGE_LOGGER, level):
        yield


# ============================================================================ #
# Warnings
# ============================================================================ #


@contextmanager
def suppress_warnings(category: Optional[Type[Warning]] = None):
    """
    Ignore warnings of *category* (all warnings when None) inside the block.

    >>> from numba.core.errors import NumbaPerformanceWarning
    >>> with suppress_warnings(NumbaPerformanceWarning):
    ...     matrix = pcss_matrix(topology, backend='cpu-parallel')
    """
    with warnings.catch_warnings():
        if category is None:
            warnings.simplefilter("ignore")
        else:
            warnings.filterwarnings("ignore", category=category)
        yield


# ============================================================================ #
# Backends
# ============================================================================ #


@contextmanager
def use_backend(backend: str):
    """
    Make every ``pcss_matrix`` / ``pcss_bitsets`` call inside the block use
    *backend*, whatever its ``backend=`` argument says.

    *backend* is 'python', 'cpu-parallel' or 'best' and is checked on entry
    (``ValueError`` if unavailable).  Blocks nest; leaving one restores the
    enclosing override.  The override is module state shared by all threads,
    so threads encoding concurrently should pass ``backend=`` instead.

    >>> with use_backend('python'):
    ...     matrix = pcss_matrix(topology)
    """
    global _backend_override

    from ._backend import get_available_backends

    available = get_available_backends()
    if backend != "best" and backend not in available:
        raise ValueError(
            f"Backend '{backend}' not available. "
            f"Available backends: {', '.join(available)}"
        )

    saved_override = _backend_override
    try:
        _backend_override = backend
        yield
    finally:
        _backend_override = saved_override


def get_backend_override() -> Optional[str]:
    """The backend forced by the innermost ``use_backend`` block, or None."""
    return _backend_override


# ============================================================================ #
# Combined
# ============================================================================ #


@contextmanager
def silent_benchmark(backend: str = "best"):
    """
    ``quiet()``, ``use_backend(backend)`` and ``suppress_warnings()`` in one
    block, for timing encoders without log noise.

    >>> for backend in ['python', 'cpu-parallel']:
    ...     try:
    ...         with silent_benchmark(backend):
    ...             start = time.time()
    ...             pcss_matrix(topology)
    ...             print(f"{backend}: {time.time() - start:.3f}s")
    ...     except ValueError:
    ...         print(f"{backend}: not available")
    """
    with quiet():
        with use_backend(backend):
            with suppress_warnings():
                yield
