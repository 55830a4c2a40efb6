"""Paths, canonical ordering, and the frozen ModelSpecification.

Every path belongs to exactly one PathGroup, derived from its endpoints. The
group rank plus endpoint ids form the canonical sort key, so any collection of
paths (built or parsed) sorts into the same order.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from lcs_spec.exceptions import ExportError
from lcs_spec.models.labels import LabelRegistry, ParameterLabel
from lcs_spec.models.variables import (
    LatentVariable,
    ManifestVariable,
    MeanSource,
    Variable,
    VariableSet,
)
from lcs_spec.schemas import PathKind, Role

if TYPE_CHECKING:
    from lcs_spec.schemas import LCSConfig


class PathGroup(Enum):
    """Canonical emission groups, in output order."""

    MEAN = 0
    INITIAL_COVARIANCE = 1
    CROSS_INITIAL_COVARIANCE = 2
    LATENT_CHAIN = 3
    ADDITIVE = 4
    SELF_FEEDBACK = 5
    COUPLING = 6
    CHANGE_TO_LATENT = 7
    MEASUREMENT = 8
    INTERCEPT = 9
    MEASUREMENT_ERROR = 10
    MEASUREMENT_ERROR_COVARIANCE = 11
    INNOVATION = 12
    INNOVATION_COVARIANCE = 13

    @property
    def rank(self) -> int:
        return self.value


INNOVATION_GROUPS = frozenset({PathGroup.INNOVATION, PathGroup.INNOVATION_COVARIANCE})


class UnclassifiablePathError(ExportError):
    """Endpoints do not form any relationship of an LCS model."""


@dataclass(frozen=True)
class Path:
    source: Variable | MeanSource
    target: Variable
    kind: PathKind
    free: bool
    value: float
    label: str | None = None

    @property
    def is_variance(self) -> bool:
        return self.kind is PathKind.COVARIANCE and self.source == self.target

    @property
    def group(self) -> PathGroup:
        return classify(self)

    @property
    def sort_key(self) -> tuple[int, int, int]:
        if self.kind is PathKind.REGRESSION:
            return (self.group.rank, self.target.id, self.source.id)
        return (self.group.rank, self.source.id, self.target.id)


def _is(var: object, role: Role) -> bool:
    return isinstance(var, LatentVariable) and var.role == role


def _classify_regression(source: object, target: object) -> PathGroup | None:
    if isinstance(source, MeanSource):
        if isinstance(target, ManifestVariable):
            return PathGroup.INTERCEPT
        if isinstance(target, LatentVariable) and target.is_initial:
            return PathGroup.MEAN
        return None
    if source.process != target.process and not (
        _is(source, Role.STATE) and _is(target, Role.CHANGE)
    ):
        return None
    if _is(target, Role.STATE):
        if _is(source, Role.INITIAL_LEVEL) and target.time == 1:
            return PathGroup.LATENT_CHAIN
        if _is(source, Role.STATE) and source.time == target.time - 1:
            return PathGroup.LATENT_CHAIN
        if _is(source, Role.CHANGE) and source.time == target.time:
            return PathGroup.CHANGE_TO_LATENT
        return None
    if _is(target, Role.CHANGE):
        if _is(source, Role.INITIAL_SLOPE):
            return PathGroup.ADDITIVE
        if _is(source, Role.STATE) and source.time == target.time - 1:
            if source.process == target.process:
                return PathGroup.SELF_FEEDBACK
            return PathGroup.COUPLING
        return None
    if isinstance(target, ManifestVariable) and _is(source, Role.STATE):
        return PathGroup.MEASUREMENT if source.time == target.time else None
    return None


def _classify_covariance(left: object, right: object) -> PathGroup | None:
    if isinstance(left, LatentVariable) and isinstance(right, LatentVariable):
        if left.is_initial and right.is_initial:
            if left.process == right.process:
                return PathGroup.INITIAL_COVARIANCE
            return PathGroup.CROSS_INITIAL_COVARIANCE
        if _is(left, Role.CHANGE) and _is(right, Role.CHANGE) and left.time == right.time:
            if left == right:
                return PathGroup.INNOVATION
            if left.process != right.process:
                return PathGroup.INNOVATION_COVARIANCE
        return None
    if isinstance(left, ManifestVariable) and isinstance(right, ManifestVariable):
        if left == right:
            return PathGroup.MEASUREMENT_ERROR
        if left.time == right.time and left.process != right.process:
            return PathGroup.MEASUREMENT_ERROR_COVARIANCE
    return None


def classify(path: Path) -> PathGroup:
    """Return the canonical group of a path.

    Raises:
        UnclassifiablePathError: If the endpoints are not an LCS relationship
    """
    if path.kind is PathKind.REGRESSION:
        group = _classify_regression(path.source, path.target)
    else:
        group = _classify_covariance(path.source, path.target)
    if group is None:
        raise UnclassifiablePathError(
            f"{path.kind.value} path {path.source} -> {path.target} is not part of an LCS model"
        )
    return group


def start_value(path: Path) -> float:
    """Default starting value of a free path: 1 for loadings and variances."""
    if path.is_variance or path.group is PathGroup.MEASUREMENT:
        return 1.0
    return 0.0


def normalize_covariance(a: Variable, b: Variable) -> tuple[Variable, Variable]:
    """Order covariance endpoints so the lower id comes first."""
    return (a, b) if a.id <= b.id else (b, a)


@dataclass(frozen=True)
class ModelSpecification:
    """The complete, immutable graph for one LCS configuration.

    ``config`` records the configuration the graph was built (or parsed) for.
    It does not take part in equality: two specifications are equal when
    their variables, paths and labels are.
    """

    variables: VariableSet
    paths: tuple[Path, ...]
    labels: tuple[ParameterLabel, ...]
    config: LCSConfig = field(compare=False)

    def label(self, name: str) -> ParameterLabel:
        for lab in self.labels:
            if lab.name == name:
                return lab
        raise KeyError(f"Unknown label '{name}'")

    def members(self, name: str) -> list[Path]:
        """Paths carrying a label, in canonical order."""
        return [self.paths[i] for i in sorted(self.label(name).members)]

    def in_group(self, *groups: PathGroup) -> list[Path]:
        return [p for p in self.paths if p.group in groups]

    def group_counts(self) -> dict[PathGroup, int]:
        counts = Counter(p.group for p in self.paths)
        return {g: counts[g] for g in PathGroup if counts[g]}

    @property
    def free_parameter_count(self) -> int:
        """Distinct estimated parameters: labels plus unlabelled free paths."""
        unlabelled = sum(1 for p in self.paths if p.free and p.label is None)
        return unlabelled + sum(1 for lab in self.labels if lab.free)

    @classmethod
    def assemble(
        cls,
        variables: VariableSet,
        paths: list[Path],
        registry: LabelRegistry,
        config: LCSConfig,
    ) -> ModelSpecification:
        """Sort paths canonically, attach label memberships and freeze.

        Labels are expected to be interned in ``registry`` already.
        """
        ordered = tuple(sorted(paths, key=lambda p: p.sort_key))
        for path_id, path in enumerate(ordered):
            if path.label is not None:
                registry.attach(path.label, path_id)
        return cls(variables=variables, paths=ordered, labels=registry.labels(), config=config)
