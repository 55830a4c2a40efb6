"""Configuration schemas for latent change score (LCS) model building.

Separates:
1. Enumerations shared by the registries, builder and exporters
2. LCSConfig - the structural parameters a caller supplies for one build
"""

import logging
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from lcs_spec.exceptions import ConfigError

logger = logging.getLogger(__name__)


class Role(StrEnum):
    """Role of a latent variable in the change score decomposition."""

    INITIAL_LEVEL = "initial_level"  # Level at the first occasion
    INITIAL_SLOPE = "initial_slope"  # Constant additive change component
    STATE = "state"  # Latent true score at t=1..T
    CHANGE = "change"  # Latent change score at t=2..T


class PathKind(StrEnum):
    """Single-headed (directed) or double-headed (symmetric) relationship."""

    REGRESSION = "regression"
    COVARIANCE = "covariance"

    @property
    def arrows(self) -> int:
        return 1 if self is PathKind.REGRESSION else 2


class Invariance(StrEnum):
    """Factorial invariance regime across measurement occasions."""

    CONFIGURAL = "configural"  # Same pattern, loadings untied
    WEAK = "weak"  # Loadings equated across time
    STRONG = "strong"  # Loadings and intercepts equated across time


class LevelMean(StrEnum):
    """How the mean of the initial level factor is treated."""

    AUTO = "auto"  # Fixed at 0 when the process's intercepts are estimated
    FREE = "free"
    FIXED = "fixed"


# ══════════════════════════════════════════════════════════════════════════════
# BUILD CONFIGURATION
# ══════════════════════════════════════════════════════════════════════════════


class LCSConfig(BaseModel):
    """Structural parameters for one LCS specification build.

    Only types are validated here. Structural consistency (horizon, process
    count, indicator counts) is checked when a build starts so that every
    structural failure surfaces as ConfigError.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    horizon: int = Field(description="Number of measurement occasions T (>= 2)")
    processes: tuple[str, ...] = Field(
        description="Ordered process identifiers, one (univariate) or two (bivariate)"
    )
    indicators: dict[str, int] = Field(
        default_factory=dict,
        description="Indicator count per process; missing processes default to 1",
    )
    coupled: bool = Field(
        default=False,
        description="Cross-process coupling paths (meaningful for two processes only)",
    )
    stochastic: bool = Field(
        default=False,
        description="Free innovation variances on every change score",
    )
    invariance: Invariance = Field(
        default=Invariance.STRONG,
        description="Factorial invariance regime for multiple-indicator processes",
    )
    level_mean: LevelMean = Field(
        default=LevelMean.AUTO,
        description="Identification rule for the initial level mean",
    )

    @classmethod
    def coerce(cls, raw: "LCSConfig | dict[str, Any]") -> "LCSConfig":
        """Return an LCSConfig, converting validation failures to ConfigError."""
        if isinstance(raw, cls):
            return raw
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            raise ConfigError(f"Invalid LCS configuration: {e}") from e

    def indicator_count(self, process: str) -> int:
        """Declared indicator count for a process (1 when not given)."""
        return self.indicators.get(process, 1)

    @property
    def is_bivariate(self) -> bool:
        return len(self.processes) > 1

    @property
    def is_coupled(self) -> bool:
        """Whether coupling paths are emitted (requires two processes)."""
        return self.coupled and self.is_bivariate

    def with_options(self, **changes: Any) -> "LCSConfig":
        """Copy of this config with the given fields replaced."""
        return LCSConfig.coerce({**self.model_dump(), **changes})
