"""
conftest.py
===========
Session-level pytest configuration for the test suite.

Custom marks
------------
numba
    Applied to tests that exercise the compiled cpu-parallel backend.  They
    skip themselves when numba is not installed; the mark lets them be
    selected or excluded with ``-m numba`` / ``-m "not numba"``.

Warning filters
---------------
NumbaPerformanceWarning messages are filtered out during tests.  Warnings
about parallel under-utilization are expected with the tiny example trees
and are not informative for correctness testing.
"""

import warnings


def pytest_configure(config):
    """
    Configure pytest before test collection begins.

    This runs before any test modules are imported, which is important for
    catching warnings from numba kernel compilation.
    """
    config.addinivalue_line(
        "markers",
        "numba: exercises the numba-compiled cpu-parallel backend",
    )

    try:
        from numba.core.errors import NumbaPerformanceWarning
        warnings.filterwarnings("ignore", category=NumbaPerformanceWarning)
    except ImportError:
        # Numba not available, no warnings to suppress
        pass


def pytest_unconfigure(config):
    """Restore default warning behavior after all tests complete."""
    warnings.resetwarnings()
