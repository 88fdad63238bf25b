"""Missing-data consolidation strategies.

A strategy is one of four small immutable types, each carrying only the state
it needs:

- Unset: no strategy chosen yet; consolidating with it is a configuration error.
- MeanImpute: missing calls become the marker mean 2p.
- HweImpute: missing calls are drawn from HWE genotype frequencies using its
  own random generator.
- Drop: samples with any missing call are removed from every matrix.

Integer codes (0-3) and names are accepted by ``parse_strategy`` so that
command-line and configuration layers can select a strategy.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, Union

import numpy as np


class UniformSource(Protocol):
    """Anything producing uniform draws in [0, 1), e.g. numpy's Generator."""

    def random(self) -> float: ...


@dataclass(frozen=True)
class Unset:
    code = 0
    name = "uninitialized"


@dataclass(frozen=True)
class MeanImpute:
    code = 1
    name = "mean"


@dataclass(frozen=True)
class HweImpute:
    """HWE-frequency imputation; ``rng`` is consumed marker by marker."""

    rng: UniformSource = field(default_factory=np.random.default_rng)
    code = 2
    name = "hwe"


@dataclass(frozen=True)
class Drop:
    code = 3
    name = "drop"


Strategy = Union[Unset, MeanImpute, HweImpute, Drop]

UNINITIALIZED = Unset.code
IMPUTE_MEAN = MeanImpute.code
IMPUTE_HWE = HweImpute.code
DROP = Drop.code

_BY_NAME = {
    "uninitialized": Unset,
    "unset": Unset,
    "mean": MeanImpute,
    "impute_mean": MeanImpute,
    "hwe": HweImpute,
    "impute_hwe": HweImpute,
    "drop": Drop,
}
_BY_CODE = {cls.code: cls for cls in (Unset, MeanImpute, HweImpute, Drop)}


def parse_strategy(value: int | str, seed: int | None = None) -> Strategy:
    """Build a strategy from an integer code or a name.

    Args:
        value: 0/1/2/3 or one of "uninitialized", "mean", "hwe", "drop"
            (case-insensitive; "impute_mean" and "impute_hwe" also accepted).
        seed: Seed for the HWE generator. Ignored by other strategies.

    Returns:
        The strategy instance.

    Raises:
        ValueError: If the code or name is unknown.
    """
    if isinstance(value, str) and not value.strip().lstrip("-").isdigit():
        cls = _BY_NAME.get(value.strip().lower())
        if cls is None:
            raise ValueError(
                f"Unknown missing-data strategy {value!r}; "
                f"expected one of: mean, hwe, drop"
            )
    else:
        cls = _BY_CODE.get(int(value))
        if cls is None:
            raise ValueError(
                f"Strategy code must be 0 (uninitialized), 1 (mean), 2 (hwe) "
                f"or 3 (drop), got {value}"
            )
    if cls is HweImpute:
        return HweImpute(rng=np.random.default_rng(seed))
    return cls()


def is_imputing(strategy: Strategy) -> bool:
    return isinstance(strategy, (MeanImpute, HweImpute))
