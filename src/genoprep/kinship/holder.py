"""Deferred kinship loading for autosomal and X-chromosome kinship.

A KinshipHolder remembers where its kinship comes from (a raw matrix file or
a precomputed eigendecomposition) and loads it on first request. Once loaded
its arrays are read-only and sized to the sample list that was in effect at
load time. A failed load is logged and leaves the holder unloaded, so an
analysis can continue without relatedness correction.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import IntEnum
from pathlib import Path

import numpy as np
from loguru import logger as default_logger

from genoprep.kinship.eigen import eigendecompose_kinship
from genoprep.kinship.eigen_io import read_eigen_files
from genoprep.kinship.io import read_kinship_matrix

LOAD_OK = 0
NO_SOURCE = -2
NO_SAMPLES = -3
LOAD_FAILED = -4


class KinshipKind(IntEnum):
    AUTO = 0
    X = 1


def _frozen(array: np.ndarray) -> np.ndarray:
    array = np.array(array, dtype=np.float64, copy=True)
    array.setflags(write=False)
    return array


class KinshipHolder:
    """Kinship matrix K with optional eigenvectors U and eigenvalues S.

    Args:
        kind: Which kinship this holder serves (used in log messages).
        logger: Error sink; loguru's logger by default.

    Example:
        >>> holder = KinshipHolder(KinshipKind.AUTO)
        >>> holder.set_samples(["s1", "s2"])
        >>> holder.set_file(Path("study.cXX.txt"))
        >>> holder.load()
        0
        >>> holder.K.shape
        (2, 2)
    """

    def __init__(self, kind: KinshipKind = KinshipKind.AUTO, logger=default_logger):
        self.kind = KinshipKind(kind)
        self.logger = logger
        self.samples: list[str] = []
        self.matrix_file: Path | None = None
        self.eigen_prefix: Path | None = None
        self._K: np.ndarray | None = None
        self._U: np.ndarray | None = None
        self._S: np.ndarray | None = None
        self._loaded = False

    def set_samples(self, sample_ids: Sequence[str]) -> None:
        self.samples = [str(sid) for sid in sample_ids]

    def set_file(self, path: Path | str) -> None:
        self.matrix_file = Path(path)

    def set_eigen_file(self, prefix: Path | str) -> None:
        self.eigen_prefix = Path(prefix)

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def K(self) -> np.ndarray | None:
        return self._K

    @property
    def U(self) -> np.ndarray | None:
        return self._U

    @property
    def S(self) -> np.ndarray | None:
        return self._S

    def load(self, decompose: bool = True) -> int:
        """Load the registered source once.

        The eigendecomposition source wins when both are registered. A raw
        matrix is eigendecomposed unless ``decompose`` is False.

        Returns:
            0 on success (or if already loaded); -2 if no source is
            registered; -3 if no sample list is set; -4 if reading or
            validating the file failed.
        """
        if self._loaded:
            return LOAD_OK
        if self.matrix_file is None and self.eigen_prefix is None:
            self.logger.error(f"No {self.kind.name} kinship file registered")
            return NO_SOURCE
        if not self.samples:
            self.logger.error(
                f"Kinship samples must be set before loading {self.kind.name} kinship"
            )
            return NO_SAMPLES

        n_samples = len(self.samples)
        try:
            if self.eigen_prefix is not None:
                S, U = read_eigen_files(self.eigen_prefix, n_samples=n_samples)
                K = (U * S) @ U.T
                source = self.eigen_prefix
            else:
                K = read_kinship_matrix(
                    self.matrix_file, n_samples=n_samples, sample_ids=self.samples
                )
                S, U = eigendecompose_kinship(K) if decompose else (None, None)
                source = self.matrix_file
        except (OSError, ValueError, np.linalg.LinAlgError) as e:
            self.logger.error(f"Failed to load {self.kind.name} kinship: {e}")
            return LOAD_FAILED

        self._K = _frozen(K)
        self._U = _frozen(U) if U is not None else None
        self._S = _frozen(S) if S is not None else None
        self._loaded = True
        self.logger.info(
            f"Loaded {self.kind.name} kinship ({n_samples} samples) from {source}"
        )
        return LOAD_OK
