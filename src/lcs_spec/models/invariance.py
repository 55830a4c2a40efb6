"""Factorial invariance policies for the measurement part of an LCS model.

A policy decides, per indicator and occasion, whether a loading or intercept
is fixed or free and which label ties it across time. It also decides whether
the initial level mean can be estimated alongside the intercepts.

Policies are looked up by Invariance value; register_policy adds new regimes
without touching the path builder.
"""

import logging
from dataclasses import dataclass

from lcs_spec.exceptions import ConfigError
from lcs_spec.schemas import Invariance, LevelMean

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PathParameter:
    """Fixed/free status, value and optional label for one path."""

    free: bool
    value: float
    label: str | None = None

    @classmethod
    def fixed(cls, value: float) -> "PathParameter":
        return cls(free=False, value=float(value))

    @classmethod
    def estimated(cls, label: str | None = None) -> "PathParameter":
        return cls(free=True, value=0.0, label=label)


# Process ids are alphanumeric, so the underscore keeps "X" indicator 11 and
# "X1" indicator 1 apart.


def loading_label(process: str, indicator: int) -> str:
    return f"lambda_{process}_{indicator}"


def intercept_label(process: str, indicator: int) -> str:
    return f"nu_{process}_{indicator}"


def error_label(process: str, indicator: int, n_indicators: int) -> str:
    """Measurement error variance label, one per indicator."""
    if n_indicators == 1:
        return f"varE_{process}"
    return f"varE_{process}_{indicator}"


class InvariancePolicy:
    """Base policy: loadings and intercepts of multi-indicator processes.

    Indicator 1 always carries the unit loading that scales State(t).
    Single-indicator processes always have loading 1 and intercept 0.
    """

    name: str = "base"
    ties_loadings: bool = True
    estimates_intercepts: bool = False

    def loading(self, process: str, indicator: int, time: int, n_indicators: int) -> PathParameter:
        if n_indicators == 1 or indicator == 1:
            return PathParameter.fixed(1.0)
        label = loading_label(process, indicator) if self.ties_loadings else None
        return PathParameter.estimated(label)

    def intercept(
        self, process: str, indicator: int, time: int, n_indicators: int
    ) -> PathParameter:
        if n_indicators == 1 or not self.estimates_intercepts:
            return PathParameter.fixed(0.0)
        return PathParameter.estimated(intercept_label(process, indicator))

    def level_mean_free(self, process: str, n_indicators: int, rule: LevelMean) -> bool:
        """Whether the initial level mean of a process is estimated.

        AUTO fixes it at 0 exactly when the process's intercepts are free,
        since both cannot be identified together.
        """
        intercepts_free = n_indicators > 1 and self.estimates_intercepts
        if rule is LevelMean.AUTO:
            return not intercepts_free
        free = rule is LevelMean.FREE
        if free and intercepts_free:
            logger.warning(
                "Process '%s': level mean estimated together with free intercepts; "
                "the mean structure is not identified without further constraints",
                process,
            )
        return free


class ConfiguralPolicy(InvariancePolicy):
    name = "configural"
    ties_loadings = False
    estimates_intercepts = False


class WeakPolicy(InvariancePolicy):
    name = "weak"
    ties_loadings = True
    estimates_intercepts = False


class StrongPolicy(InvariancePolicy):
    name = "strong"
    ties_loadings = True
    estimates_intercepts = True


_POLICIES: dict[str, InvariancePolicy] = {
    Invariance.CONFIGURAL: ConfiguralPolicy(),
    Invariance.WEAK: WeakPolicy(),
    Invariance.STRONG: StrongPolicy(),
}


def register_policy(key: str, policy: InvariancePolicy) -> None:
    """Register (or replace) the policy used for an invariance key."""
    _POLICIES[str(key)] = policy


def get_policy(key: str) -> InvariancePolicy:
    try:
        return _POLICIES[str(key)]
    except KeyError:
        available = ", ".join(sorted(_POLICIES))
        raise ConfigError(f"Unknown invariance policy '{key}'. Available: {available}") from None
