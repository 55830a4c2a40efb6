"""Shared helpers for reading exported specifications back."""

from __future__ import annotations

from typing import Any

from lcs_spec.exceptions import ExportError, SpecParseError
from lcs_spec.exporters.naming import NameMap
from lcs_spec.models.labels import LabelRegistry
from lcs_spec.models.lcs_builder import check_config
from lcs_spec.models.paths import ModelSpecification, Path, normalize_covariance
from lcs_spec.models.variables import MeanSource, VariableRegistry, VariableSet
from lcs_spec.schemas import LCSConfig, PathKind
from lcs_spec.utils.config import NamingConfig
from lcs_spec.utils.structure import check_structure


def allocate_for(
    config: LCSConfig | dict[str, Any], naming: NamingConfig | None = None
) -> tuple[LCSConfig, VariableSet, NameMap]:
    """Allocate the variables a rendering of ``config`` refers to."""
    config = LCSConfig.coerce(config)
    check_config(config)
    variables = VariableRegistry().allocate(
        config.processes,
        config.horizon,
        {p: config.indicator_count(p) for p in config.processes},
    )
    return config, variables, NameMap(variables, naming)


def make_path(
    source: Any,
    target: Any,
    kind: PathKind,
    free: bool,
    value: float,
    label: str | None,
) -> Path:
    """Create a parsed path, normalising covariance endpoints."""
    if isinstance(target, MeanSource):
        raise SpecParseError("The mean source cannot be the target of a path")
    if isinstance(source, MeanSource) and kind is not PathKind.REGRESSION:
        raise SpecParseError("The mean source can only start single-headed paths")
    if kind is PathKind.COVARIANCE:
        source, target = normalize_covariance(source, target)
    return Path(source, target, kind, free, float(value), label or None)


def assemble_parsed(
    paths: list[Path], variables: VariableSet, config: LCSConfig
) -> ModelSpecification:
    """Intern labels, sort and structurally validate parsed paths.

    Raises:
        SpecParseError: If the paths do not form a consistent LCS specification
        LabelConflictError: If one label is used for incompatible paths
    """
    registry = LabelRegistry()
    for path in paths:
        if path.label is not None:
            registry.intern(path.label, path.kind, path.free)
    try:
        spec = ModelSpecification.assemble(variables, paths, registry, config)
    except ExportError as e:
        raise SpecParseError(str(e)) from e
    issues = check_structure(spec)
    if issues:
        raise SpecParseError(
            "Parsed specification is inconsistent:\n  - " + "\n  - ".join(issues)
        )
    return spec
