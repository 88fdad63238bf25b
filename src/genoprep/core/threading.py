"""BLAS thread limits for kinship eigendecomposition.

scipy's LAPACK calls use every core by default. ``blas_threads`` caps them
for the duration of a block; the cap comes from ``GENOPREP_BLAS_THREADS``
or, failing that, the number of physical cores.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager

import psutil
from loguru import logger
from threadpoolctl import threadpool_limits

THREADS_ENV_VAR = "GENOPREP_BLAS_THREADS"


def _threads_from_env() -> int | None:
    raw = os.environ.get(THREADS_ENV_VAR)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning(
            f"{THREADS_ENV_VAR}={raw!r} is not a valid integer; "
            "using the physical core count"
        )
        return None


def get_blas_thread_count() -> int:
    """Thread count for BLAS/LAPACK, clamped to [1, os.cpu_count()]."""
    cpu_limit = os.cpu_count() or 64
    requested = _threads_from_env()
    source = THREADS_ENV_VAR
    if requested is None:
        requested = psutil.cpu_count(logical=False) or cpu_limit
        source = "physical cores"
    n_threads = min(max(requested, 1), cpu_limit)
    logger.debug(f"BLAS threads: {n_threads} (from {source})")
    return n_threads


@contextmanager
def blas_threads(n_threads: int | None = None) -> Iterator[None]:
    """Limit BLAS threads inside the ``with`` block.

    Args:
        n_threads: Thread cap. None uses get_blas_thread_count().
    """
    limit = get_blas_thread_count() if n_threads is None else n_threads
    with threadpool_limits(limits=limit, user_api="blas"):
        yield
