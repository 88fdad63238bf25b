"""Pytest fixtures for the genoprep test suite."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import numpy as np
import pytest
from loguru import logger

# =============================================================================
# Test Tier System
# =============================================================================
#
# tier0 - Fast unit tests (pure computation, no files)
#   - Run: pytest -m tier0
#
# tier1 - File-backed tests (PLINK fixtures written to tmp_path, CLI runs)
#   - Run: pytest -m tier1
#
# slow - property tests with many examples
#
# Quick reference:
#   pytest -m tier0             # Fast tests only
#   pytest -m "tier0 or tier1"  # Everything but slow
#   pytest                      # All tests
# =============================================================================


class RecordingLogger:
    """Stand-in for an injected logger that keeps every message by level."""

    def __init__(self) -> None:
        self.records: list[tuple[str, str]] = []

    def _record(self, level: str, message: str) -> None:
        self.records.append((level, str(message)))

    def debug(self, message: str) -> None:
        self._record("DEBUG", message)

    def info(self, message: str) -> None:
        self._record("INFO", message)

    def warning(self, message: str) -> None:
        self._record("WARNING", message)

    def error(self, message: str) -> None:
        self._record("ERROR", message)

    def messages(self, level: str) -> list[str]:
        return [message for lvl, message in self.records if lvl == level]


class ScriptedUniform:
    """Uniform source replaying fixed draws, for deterministic HWE imputation."""

    def __init__(self, draws: Sequence[float]) -> None:
        self.draws = list(draws)
        self.calls = 0

    def random(self) -> float:
        value = self.draws[self.calls]
        self.calls += 1
        return value


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def loguru_messages():
    """Capture loguru output (all levels) as a list of "LEVEL: message" strings."""
    messages: list[str] = []
    handler_id = logger.add(
        lambda m: messages.append(f"{m.record['level'].name}: {m.record['message']}"),
        level="DEBUG",
    )
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Create temporary output directory for test results."""
    out = tmp_path / "output"
    out.mkdir()
    return out


def write_plink(
    prefix: Path,
    genotypes: np.ndarray,
    *,
    iid: Sequence[str] | None = None,
    sex: Sequence[int] | None = None,
    pheno: Sequence[str] | None = None,
    chromosome: Sequence[str] | None = None,
    bp_position: Sequence[int] | None = None,
) -> Path:
    """Write a PLINK .bed/.bim/.fam triple with bed-reader.

    ``genotypes`` uses NaN for missing calls, as bed-reader expects.
    """
    n_samples, n_snps = genotypes.shape
    properties = {
        "iid": (
            list(iid) if iid is not None else [f"s{i + 1}" for i in range(n_samples)]
        ),
        "sid": [f"rs{j + 1}" for j in range(n_snps)],
        "chromosome": list(chromosome) if chromosome is not None else ["1"] * n_snps,
        "bp_position": (
            list(bp_position)
            if bp_position is not None
            else [1000 * (j + 1) for j in range(n_snps)]
        ),
        "sex": list(sex) if sex is not None else [1] * n_samples,
        "pheno": list(pheno) if pheno is not None else ["1.5"] * n_samples,
    }
    from bed_reader import to_bed

    to_bed(f"{prefix}.bed", genotypes.astype(np.float32), properties=properties)
    return prefix


@pytest.fixture
def small_plink(tmp_path: Path) -> Path:
    """Six samples x four markers with two missing calls and a case/control .fam.

    Sample s2 misses marker 0 and s5 misses marker 2. Sexes alternate
    male/female; s1-s3 are controls (PLINK 1) and s4-s6 cases (PLINK 2).
    """
    genotypes = np.array(
        [
            [0.0, 1.0, 2.0, 0.0],
            [np.nan, 1.0, 1.0, 0.0],
            [1.0, 0.0, 2.0, 0.0],
            [2.0, 2.0, 0.0, 0.0],
            [1.0, 1.0, np.nan, 0.0],
            [0.0, 2.0, 1.0, 0.0],
        ]
    )
    return write_plink(
        tmp_path / "small",
        genotypes,
        sex=[1, 2, 1, 2, 1, 2],
        pheno=["1", "1", "1", "2", "2", "2"],
        chromosome=["1", "1", "X", "X"],
        bp_position=[1000, 2000, 100_000, 5_000_000],
    )


@pytest.fixture
def plink_writer():
    """The ``write_plink`` helper, for tests that need custom PLINK data."""
    return write_plink


@pytest.fixture
def scripted_uniform():
    """Factory for ScriptedUniform sources."""
    return ScriptedUniform
