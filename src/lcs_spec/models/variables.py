"""Variable registry: allocation of latent and manifest variables.

Variables are typed entities keyed by small integer ids. Ids are assigned in a
fixed order so that they double as the canonical sort key used for paths:

    per process: InitialLevel, InitialSlope, State(1..T), Change(2..T),
                 Manifest(t=1..T, indicator=1..k)

Names are never stored on variables; they are produced by the naming layer
at export time.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from lcs_spec.exceptions import ConfigError
from lcs_spec.schemas import Role


@dataclass(frozen=True)
class LatentVariable:
    id: int
    role: Role
    process: str
    time: int | None = None

    @property
    def is_initial(self) -> bool:
        return self.role in (Role.INITIAL_LEVEL, Role.INITIAL_SLOPE)


@dataclass(frozen=True)
class ManifestVariable:
    id: int
    process: str
    indicator: int
    time: int


@dataclass(frozen=True)
class MeanSource:
    """The constant from which mean and intercept paths start."""

    id: int = -1


MEAN_SOURCE = MeanSource()

Variable = LatentVariable | ManifestVariable


@dataclass(frozen=True)
class VariableSet:
    """All variables allocated for one configuration, with typed lookups."""

    processes: tuple[str, ...]
    horizon: int
    indicators: tuple[int, ...]
    variables: tuple[Variable, ...]
    _index: dict[tuple, Variable] = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self):
        for v in self.variables:
            if isinstance(v, LatentVariable):
                key = (v.role, v.process, v.time)
            else:
                key = ("manifest", v.process, v.indicator, v.time)
            self._index[key] = v

    def _get(self, key: tuple) -> Variable:
        try:
            return self._index[key]
        except KeyError:
            raise KeyError(f"No variable allocated for {key}") from None

    def level(self, process: str) -> LatentVariable:
        return self._get((Role.INITIAL_LEVEL, process, None))

    def slope(self, process: str) -> LatentVariable:
        return self._get((Role.INITIAL_SLOPE, process, None))

    def state(self, process: str, time: int) -> LatentVariable:
        return self._get((Role.STATE, process, time))

    def change(self, process: str, time: int) -> LatentVariable:
        return self._get((Role.CHANGE, process, time))

    def manifest(self, process: str, indicator: int, time: int) -> ManifestVariable:
        return self._get(("manifest", process, indicator, time))

    def manifests_at(self, process: str, time: int) -> list[ManifestVariable]:
        """Manifests of a process at one occasion, in indicator order."""
        return [
            self.manifest(process, i, time) for i in range(1, self.indicator_count(process) + 1)
        ]

    def indicator_count(self, process: str) -> int:
        return self.indicators[self.processes.index(process)]

    def by_id(self, variable_id: int) -> Variable:
        return self.variables[variable_id]

    def of_role(self, role: Role, process: str | None = None) -> list[LatentVariable]:
        return [
            v
            for v in self.latents
            if v.role == role and (process is None or v.process == process)
        ]

    @property
    def latents(self) -> list[LatentVariable]:
        return [v for v in self.variables if isinstance(v, LatentVariable)]

    @property
    def manifests(self) -> list[ManifestVariable]:
        return [v for v in self.variables if isinstance(v, ManifestVariable)]

    def __contains__(self, item: object) -> bool:
        return isinstance(item, LatentVariable | ManifestVariable) and (
            0 <= item.id < len(self.variables) and self.variables[item.id] == item
        )

    def __len__(self) -> int:
        return len(self.variables)


class VariableRegistry:
    """Allocates the variables of an LCS model for a horizon and variant."""

    def __init__(self):
        self._variables: list[Variable] = []

    def _latent(self, role: Role, process: str, time: int | None = None) -> None:
        self._variables.append(LatentVariable(len(self._variables), role, process, time))

    def _manifest(self, process: str, indicator: int, time: int) -> None:
        self._variables.append(ManifestVariable(len(self._variables), process, indicator, time))

    def allocate(
        self,
        processes: Sequence[str],
        horizon: int,
        indicators: Mapping[str, int],
    ) -> VariableSet:
        """Allocate every variable for the given processes and horizon.

        Args:
            processes: Ordered process identifiers
            horizon: Number of occasions T
            indicators: Indicator count per process (missing -> 1)

        Returns:
            VariableSet with ids assigned in canonical order

        Raises:
            ConfigError: If T < 2 or a process has no indicators
        """
        if horizon < 2:
            raise ConfigError(
                f"horizon must be >= 2 for change scores to exist, got {horizon}"
            )
        counts = tuple(indicators.get(p, 1) for p in processes)
        for process, count in zip(processes, counts, strict=True):
            if count < 1:
                raise ConfigError(f"Process '{process}' needs at least one indicator, got {count}")

        self._variables = []
        for process, count in zip(processes, counts, strict=True):
            self._latent(Role.INITIAL_LEVEL, process)
            self._latent(Role.INITIAL_SLOPE, process)
            for t in range(1, horizon + 1):
                self._latent(Role.STATE, process, t)
            for t in range(2, horizon + 1):
                self._latent(Role.CHANGE, process, t)
            for t in range(1, horizon + 1):
                for i in range(1, count + 1):
                    self._manifest(process, i, t)

        return VariableSet(
            processes=tuple(processes),
            horizon=horizon,
            indicators=counts,
            variables=tuple(self._variables),
        )
