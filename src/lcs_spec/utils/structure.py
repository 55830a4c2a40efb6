"""Structural checks and counting diagnostics for LCS specifications.

These checks are referential and structural only: they confirm that the
graph has the shape of an LCS model (chain, change, measurement invariants,
consistent labels, acyclic regressions). Statistical identification is the
estimation engine's concern; the degrees-of-freedom count is reported, never
enforced.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Any

import networkx as nx

from lcs_spec.exceptions import ExportError
from lcs_spec.models.paths import (
    INNOVATION_GROUPS,
    ModelSpecification,
    PathGroup,
    UnclassifiablePathError,
    classify,
)
from lcs_spec.models.variables import MeanSource
from lcs_spec.schemas import PathKind, Role

logger = logging.getLogger(__name__)


def _is_unit(path) -> bool:
    return not path.free and path.value == 1.0


def _check_endpoints(spec: ModelSpecification, issues: list[str]) -> list:
    """Return classifiable paths; record unknown endpoints and stray paths."""
    valid = []
    for path in spec.paths:
        endpoints = [path.target]
        if not isinstance(path.source, MeanSource):
            endpoints.append(path.source)
        missing = [v for v in endpoints if v not in spec.variables]
        if missing:
            issues.append(f"Path references unallocated variable(s): {missing}")
            continue
        try:
            classify(path)
        except UnclassifiablePathError as e:
            issues.append(str(e))
            continue
        valid.append(path)

    seen = Counter((p.source, p.target, p.kind) for p in valid)
    for (source, target, kind), count in seen.items():
        if count > 1:
            issues.append(f"Duplicate {kind.value} path {source} -> {target} ({count}x)")
    return valid


def _check_dynamics(spec: ModelSpecification, paths: list, issues: list[str]) -> None:
    v = spec.variables
    incoming: dict[Any, list] = defaultdict(list)
    outgoing: dict[Any, list] = defaultdict(list)
    for path in paths:
        if path.kind is PathKind.REGRESSION:
            incoming[path.target].append(path)
            outgoing[path.source].append(path)

    coupled = spec.config.is_coupled
    for p in v.processes:
        level_paths = [x for x in incoming[v.state(p, 1)] if x.source == v.level(p)]
        if len(level_paths) != 1 or not _is_unit(level_paths[0]):
            issues.append(f"Process '{p}': expected one fixed-unit InitialLevel -> State(1) path")
        for t in range(2, v.horizon + 1):
            chain = [x for x in incoming[v.state(p, t)] if x.source == v.state(p, t - 1)]
            if len(chain) != 1 or not _is_unit(chain[0]):
                issues.append(f"Process '{p}': missing fixed-unit State({t - 1}) -> State({t})")

            change = v.change(p, t)
            by_group = Counter(x.group for x in incoming[change])
            additive = [x for x in incoming[change] if x.group is PathGroup.ADDITIVE]
            if len(additive) != 1 or not _is_unit(additive[0]):
                issues.append(f"Process '{p}': Change({t}) needs one fixed-unit slope path")
            if by_group[PathGroup.SELF_FEEDBACK] != 1:
                issues.append(f"Process '{p}': Change({t}) needs exactly one self-feedback path")
            expected_coupling = 1 if coupled else 0
            if by_group[PathGroup.COUPLING] != expected_coupling:
                issues.append(
                    f"Process '{p}': Change({t}) has {by_group[PathGroup.COUPLING]} coupling "
                    f"paths, expected {expected_coupling}"
                )
            out = outgoing[change]
            if len(out) != 1 or out[0].target != v.state(p, t) or not _is_unit(out[0]):
                issues.append(f"Process '{p}': Change({t}) needs one fixed-unit path to State({t})")

    for m in v.manifests:
        loadings = [x for x in incoming[m] if x.group is PathGroup.MEASUREMENT]
        if len(loadings) != 1:
            issues.append(f"Manifest {m} has {len(loadings)} loadings, expected 1")
        elif m.indicator == 1 and not _is_unit(loadings[0]):
            issues.append(f"Manifest {m} is the scaling indicator but its loading is not fixed to 1")


def _check_labels(paths: list, issues: list[str]) -> None:
    signatures: dict[str, set[tuple[PathKind, bool]]] = defaultdict(set)
    for path in paths:
        if path.label is not None:
            signatures[path.label].add((path.kind, path.free))
    for name, sigs in signatures.items():
        if len(sigs) > 1:
            issues.append(f"Label '{name}' is shared by incompatible paths: {sorted(sigs)}")


def _check_acyclic(paths: list, issues: list[str]) -> None:
    graph = nx.DiGraph()
    graph.add_edges_from(
        (p.source.id, p.target.id)
        for p in paths
        if p.kind is PathKind.REGRESSION and not isinstance(p.source, MeanSource)
    )
    if not nx.is_directed_acyclic_graph(graph):
        cycles = list(nx.simple_cycles(graph))
        issues.append(f"Regression paths form cycle(s): {cycles}")


def check_structure(spec: ModelSpecification) -> list[str]:
    """Check the structural invariants of an LCS specification.

    Returns list of issue messages (empty if the structure is consistent).
    """
    issues: list[str] = []
    paths = _check_endpoints(spec, issues)
    _check_dynamics(spec, paths, issues)
    _check_labels(paths, issues)
    _check_acyclic(paths, issues)

    has_innovations = any(p.group in INNOVATION_GROUPS for p in paths)
    if has_innovations != spec.config.stochastic:
        issues.append(
            f"stochastic={spec.config.stochastic} but innovation paths are "
            f"{'present' if has_innovations else 'absent'}"
        )
    return issues


def validate_structure(spec: ModelSpecification) -> None:
    """Raise ExportError when the specification is structurally inconsistent."""
    issues = check_structure(spec)
    if issues:
        raise ExportError("Specification is inconsistent:\n  - " + "\n  - ".join(issues))


# ══════════════════════════════════════════════════════════════════════════════
# COUNTING DIAGNOSTICS
# ══════════════════════════════════════════════════════════════════════════════


@dataclass
class StructureReport:
    """Counts describing a specification."""

    n_latent: int
    n_manifest: int
    n_paths: int
    n_labels: int
    free_parameters: int
    observed_moments: int
    group_counts: dict[str, int] = field(default_factory=dict)
    role_counts: dict[str, int] = field(default_factory=dict)

    @property
    def degrees_of_freedom(self) -> int:
        return self.observed_moments - self.free_parameters

    def to_dict(self) -> dict[str, Any]:
        return {
            "n_latent": self.n_latent,
            "n_manifest": self.n_manifest,
            "n_paths": self.n_paths,
            "n_labels": self.n_labels,
            "free_parameters": self.free_parameters,
            "observed_moments": self.observed_moments,
            "degrees_of_freedom": self.degrees_of_freedom,
            "group_counts": dict(self.group_counts),
            "role_counts": dict(self.role_counts),
        }


def summarize(spec: ModelSpecification) -> StructureReport:
    """Count variables, paths and parameters of a specification.

    Observed moments include means: p(p+3)/2 for p manifest variables.
    """
    n_manifest = len(spec.variables.manifests)
    latents = spec.variables.latents
    report = StructureReport(
        n_latent=len(latents),
        n_manifest=n_manifest,
        n_paths=len(spec.paths),
        n_labels=len(spec.labels),
        free_parameters=spec.free_parameter_count,
        observed_moments=n_manifest * (n_manifest + 3) // 2,
        group_counts={g.name.lower(): n for g, n in spec.group_counts().items()},
        role_counts={r.value: sum(1 for v in latents if v.role == r) for r in Role},
    )
    if report.degrees_of_freedom < 0:
        logger.warning(
            "Specification has more free parameters (%d) than observed moments (%d)",
            report.free_parameters,
            report.observed_moments,
        )
    return report
