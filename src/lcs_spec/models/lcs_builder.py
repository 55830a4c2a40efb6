"""Latent change score path builder.

Builds the complete ModelSpecification for one configuration from a single
parametric routine. Univariate/bivariate, single/multiple indicator and
deterministic/stochastic variants are branches on LCSConfig fields.

Per process p the builder emits:
- means of the initial level and slope (mean<P>0, mean<P>a)
- level/slope variances and covariance, plus cross-process covariances
- the latent chain, additive (slope -> change), self-feedback (beta),
  coupling (gamma) and change-to-latent paths
- loadings, intercepts and error variances under an invariance policy
- optionally the stochastic innovation overlay (varDer, covDer)
"""

import logging
import re
from dataclasses import replace
from typing import Any

from lcs_spec.exceptions import ConfigError, ExportError
from lcs_spec.exporters.naming import NameMap
from lcs_spec.models.invariance import InvariancePolicy, PathParameter, error_label, get_policy
from lcs_spec.models.labels import LabelRegistry
from lcs_spec.models.paths import (
    INNOVATION_GROUPS,
    ModelSpecification,
    Path,
    normalize_covariance,
    start_value,
)
from lcs_spec.models.variables import MEAN_SOURCE, Variable, VariableRegistry, VariableSet
from lcs_spec.schemas import LCSConfig, PathKind
from lcs_spec.utils.config import NamingConfig
from lcs_spec.utils.structure import check_structure

logger = logging.getLogger(__name__)

_PROCESS_ID = re.compile(r"^[A-Za-z][A-Za-z0-9]*$")

UNIT = PathParameter.fixed(1.0)


def check_config(config: LCSConfig) -> None:
    """Validate structural consistency of a configuration.

    Raises:
        ConfigError: On any malformed or contradictory option
    """
    n = len(config.processes)
    if n not in (1, 2):
        raise ConfigError(f"Expected 1 or 2 processes, got {n}: {list(config.processes)}")
    for process in config.processes:
        if not _PROCESS_ID.match(process):
            raise ConfigError(
                f"Invalid process identifier '{process}': use letters and digits, "
                "starting with a letter"
            )
    lowered = [p.lower() for p in config.processes]
    if len(set(lowered)) != n:
        raise ConfigError(f"Process identifiers must differ case-insensitively: {lowered}")
    unknown = sorted(set(config.indicators) - set(config.processes))
    if unknown:
        raise ConfigError(f"Indicator counts given for unknown processes: {unknown}")
    if config.horizon < 2:
        raise ConfigError(
            f"horizon must be >= 2 for change scores to exist, got {config.horizon}"
        )
    for process in config.processes:
        if config.indicator_count(process) < 1:
            raise ConfigError(
                f"Process '{process}' needs at least one indicator, "
                f"got {config.indicator_count(process)}"
            )
    if config.coupled and n == 1:
        logger.warning("coupled=True has no effect with a single process; ignoring")


class LCSPathBuilder:
    """Builds an LCS ModelSpecification for one configuration.

    Each builder owns its own registries; builders share no mutable state.
    """

    def __init__(
        self,
        config: LCSConfig | dict[str, Any],
        policy: InvariancePolicy | None = None,
        naming: NamingConfig | None = None,
    ):
        """Initialize the builder.

        Args:
            config: Build configuration (dicts are validated into LCSConfig)
            policy: Explicit invariance policy (overrides config.invariance)
            naming: Naming templates the result must be exportable with
                (defaults to the configured settings)
        """
        self.config = LCSConfig.coerce(config)
        check_config(self.config)
        self.policy = policy if policy is not None else get_policy(self.config.invariance)
        self.naming = naming
        self.labels = LabelRegistry()
        self._owners: dict[str, frozenset[str]] = {}
        self._paths: list[Path] = []
        self._vars: VariableSet | None = None

    # ── emission helpers ──────────────────────────────────────────────────

    def _claim(self, path: Path) -> None:
        """Intern a path's label and pin it to the processes the path touches."""
        self.labels.intern(path.label, path.kind, path.free)
        if path.kind is PathKind.REGRESSION:
            owners = frozenset({path.target.process})
        else:
            owners = frozenset({path.source.process, path.target.process})
        known = self._owners.setdefault(path.label, owners)
        if known != owners:
            raise ConfigError(
                f"Label '{path.label}' is generated for processes {sorted(known)} and "
                f"{sorted(owners)}; choose process identifiers that do not produce "
                "the same parameter names"
            )

    def _emit(self, source, target: Variable, kind: PathKind, param: PathParameter) -> None:
        path = Path(source, target, kind, param.free, param.value, param.label)
        if path.label is not None:
            self._claim(path)
        if param.free:
            path = replace(path, value=start_value(path))
        self._paths.append(path)

    def _regress(self, source, target: Variable, param: PathParameter) -> None:
        self._emit(source, target, PathKind.REGRESSION, param)

    def _covary(
        self, a: Variable, b: Variable, param: PathParameter, *, variance: bool = False
    ) -> None:
        if (a == b) != variance:
            if variance:
                raise ConfigError(f"Variance term requested between distinct variables {a}, {b}")
            raise ConfigError(
                f"Covariance of {a} with itself; declare it as a variance term instead"
            )
        left, right = normalize_covariance(a, b)
        self._emit(left, right, PathKind.COVARIANCE, param)

    def _suffix(self, process: str) -> str:
        return f"_{process.lower()}" if self.config.is_bivariate else ""

    # ── structural part ───────────────────────────────────────────────────

    def _add_means(self, v: VariableSet) -> None:
        for p in v.processes:
            level_free = self.policy.level_mean_free(
                p, v.indicator_count(p), self.config.level_mean
            )
            level = PathParameter.estimated(f"mean{p}0") if level_free else PathParameter.fixed(0.0)
            self._regress(MEAN_SOURCE, v.level(p), level)
            self._regress(MEAN_SOURCE, v.slope(p), PathParameter.estimated(f"mean{p}a"))

    def _add_initial_covariances(self, v: VariableSet) -> None:
        for p in v.processes:
            level, slope = v.level(p), v.slope(p)
            self._covary(level, level, PathParameter.estimated(f"var{p}0"), variance=True)
            self._covary(slope, slope, PathParameter.estimated(f"var{p}a"), variance=True)
            self._covary(level, slope, PathParameter.estimated(f"cov{p}0a"))
        if not self.config.is_bivariate:
            return
        p, q = v.processes
        for tag_p, a in (("0", v.level(p)), ("a", v.slope(p))):
            for tag_q, b in (("0", v.level(q)), ("a", v.slope(q))):
                self._covary(a, b, PathParameter.estimated(f"cov{p}{tag_p}{q}{tag_q}"))

    def _add_dynamics(self, v: VariableSet) -> None:
        for p in v.processes:
            self._regress(v.level(p), v.state(p, 1), UNIT)
            for t in range(2, v.horizon + 1):
                self._regress(v.state(p, t - 1), v.state(p, t), UNIT)
            for t in range(2, v.horizon + 1):
                self._regress(v.slope(p), v.change(p, t), UNIT)
            beta = PathParameter.estimated(f"beta{self._suffix(p)}")
            for t in range(2, v.horizon + 1):
                self._regress(v.state(p, t - 1), v.change(p, t), beta)
        if self.config.is_coupled:
            for p in v.processes:
                gamma = PathParameter.estimated(f"gamma_{p.lower()}")
                (q,) = [other for other in v.processes if other != p]
                for t in range(2, v.horizon + 1):
                    self._regress(v.state(q, t - 1), v.change(p, t), gamma)
        for p in v.processes:
            for t in range(2, v.horizon + 1):
                self._regress(v.change(p, t), v.state(p, t), UNIT)

    # ── measurement part ──────────────────────────────────────────────────

    def _add_measurement(self, v: VariableSet) -> None:
        for p in v.processes:
            n = v.indicator_count(p)
            for t in range(1, v.horizon + 1):
                for m in v.manifests_at(p, t):
                    self._regress(v.state(p, t), m, self.policy.loading(p, m.indicator, t, n))
            for t in range(1, v.horizon + 1):
                for m in v.manifests_at(p, t):
                    self._regress(MEAN_SOURCE, m, self.policy.intercept(p, m.indicator, t, n))
            for t in range(1, v.horizon + 1):
                for m in v.manifests_at(p, t):
                    label = error_label(p, m.indicator, n)
                    self._covary(m, m, PathParameter.estimated(label), variance=True)
        single_indicator = all(v.indicator_count(p) == 1 for p in v.processes)
        if self.config.is_bivariate and single_indicator:
            p, q = v.processes
            for t in range(1, v.horizon + 1):
                self._covary(
                    v.manifest(p, 1, t), v.manifest(q, 1, t), PathParameter.estimated("covE")
                )

    # ── stochastic overlay ────────────────────────────────────────────────

    def _add_innovations(self, v: VariableSet) -> None:
        for p in v.processes:
            var_der = PathParameter.estimated(f"varDer{self._suffix(p)}")
            for t in range(2, v.horizon + 1):
                change = v.change(p, t)
                self._covary(change, change, var_der, variance=True)
        if self.config.is_coupled:
            p, q = v.processes
            for t in range(2, v.horizon + 1):
                self._covary(v.change(p, t), v.change(q, t), PathParameter.estimated("covDer"))

    # ── public API ────────────────────────────────────────────────────────

    def _finish(self, variables: VariableSet, config: LCSConfig) -> ModelSpecification:
        spec = ModelSpecification.assemble(variables, self._paths, self.labels, config)
        issues = check_structure(spec)
        if issues:
            raise ConfigError(
                "Configuration produced an inconsistent specification:\n  - "
                + "\n  - ".join(issues)
            )
        return spec

    def build(self) -> ModelSpecification:
        """Build the full specification.

        Returns:
            Frozen ModelSpecification with paths in canonical order

        Raises:
            ConfigError: If the configuration is structurally invalid
            LabelConflictError: If two paths claim one label inconsistently
        """
        if self._vars is not None:
            raise RuntimeError("LCSPathBuilder.build() may only be called once")
        config = self.config
        v = VariableRegistry().allocate(
            config.processes,
            config.horizon,
            {p: config.indicator_count(p) for p in config.processes},
        )
        self._vars = v
        try:
            NameMap(v, self.naming)
        except ExportError as e:
            raise ConfigError(f"Configuration cannot be exported: {e}") from e

        self._add_means(v)
        self._add_initial_covariances(v)
        self._add_dynamics(v)
        self._add_measurement(v)
        if config.stochastic:
            self._add_innovations(v)

        spec = self._finish(v, config)
        logger.info(
            "Built LCS specification: processes=%s T=%d coupled=%s stochastic=%s "
            "(%d paths, %d labels)",
            ",".join(config.processes),
            config.horizon,
            config.is_coupled,
            config.stochastic,
            len(spec.paths),
            len(spec.labels),
        )
        logger.debug(
            "Path counts by group: %s",
            {g.name: n for g, n in spec.group_counts().items()},
        )
        return spec

    def overlay_innovations(self, spec: ModelSpecification) -> ModelSpecification:
        """Add the stochastic innovation paths to an existing specification."""
        if self._vars is not None:
            raise RuntimeError("LCSPathBuilder instances are single-use")
        self._vars = spec.variables
        for path in spec.paths:
            if path.label is not None:
                self._claim(path)
            self._paths.append(path)
        self._add_innovations(spec.variables)
        return self._finish(spec.variables, self.config)


def build_lcs(
    config: LCSConfig | dict[str, Any],
    policy: InvariancePolicy | None = None,
    naming: NamingConfig | None = None,
) -> ModelSpecification:
    """Build the LCS specification for a configuration."""
    return LCSPathBuilder(config, policy, naming).build()


def add_innovations(spec: ModelSpecification) -> ModelSpecification:
    """Apply the stochastic overlay to a deterministic specification.

    The existing paths are kept as they are, so the result equals a direct
    build with ``stochastic=True`` under whatever policy produced ``spec``.
    A specification that already carries innovation paths is returned
    unchanged.
    """
    if spec.in_group(*INNOVATION_GROUPS):
        return spec
    config = spec.config.with_options(stochastic=True)
    return LCSPathBuilder(config).overlay_innovations(spec)
