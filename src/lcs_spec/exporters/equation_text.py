"""Equation-text (lavaan style) rendering of an LCS specification.

Operators:
    lhs ~ rhs     lhs is regressed on rhs (rhs ``1`` gives a mean/intercept)
    lhs =~ rhs    latent lhs is measured by manifest rhs
    lhs ~~ rhs    lhs covaries with rhs (a variance when both are equal)

Each term may carry a modifier: a number fixes the parameter (``1*lx1``), a
name labels a free parameter (``beta*lx1``); bare terms are free and
unlabelled. Lines are grouped as regressions, loadings, intercepts and
(co)variances; terms sharing a left-hand side and operator share one line.
"""

from __future__ import annotations

import re
from dataclasses import replace
from typing import Any

from lcs_spec.exceptions import ExportError, SpecParseError
from lcs_spec.exporters.common import allocate_for, assemble_parsed, make_path
from lcs_spec.exporters.naming import NameMap
from lcs_spec.models.paths import ModelSpecification, Path, PathGroup, start_value
from lcs_spec.models.variables import MEAN_SOURCE
from lcs_spec.schemas import LCSConfig, PathKind
from lcs_spec.utils.config import NamingConfig
from lcs_spec.utils.structure import validate_structure

REGRESSION = "~"
COVARIANCE = "~~"
MEASUREMENT = "=~"
INTERCEPT_TERM = "1"

_SECTIONS = ("regression", "loading", "intercept", "covariance")
_LABEL = re.compile(r"^[A-Za-z_][A-Za-z0-9_.]*$")


def _fmt(value: float) -> str:
    # "+" separates terms, so exponents are written without it
    return f"{value:.15g}".replace("e+", "e")


def _section(path: Path) -> str:
    group = path.group
    if group in (PathGroup.MEAN, PathGroup.INTERCEPT):
        return "intercept"
    if group is PathGroup.MEASUREMENT:
        return "loading"
    if path.kind is PathKind.REGRESSION:
        return "regression"
    return "covariance"


def _term(path: Path, rhs: str) -> str:
    if not path.free:
        if path.label is not None:
            raise ExportError(
                f"Fixed path labelled '{path.label}' cannot be written as equation text"
            )
        return f"{_fmt(path.value)}*{rhs}"
    if path.label is not None:
        return f"{path.label}*{rhs}"
    return rhs


def to_equation_text(
    spec: ModelSpecification, naming: NamingConfig | None = None
) -> list[str]:
    """Render a specification as ordered equation lines.

    Raises:
        ExportError: If the specification is inconsistent, the naming
            templates collide, or a fixed path carries a label
    """
    validate_structure(spec)
    names = NameMap(spec.variables, naming)
    sections: dict[str, dict[tuple[str, str], list[str]]] = {s: {} for s in _SECTIONS}

    for path in spec.paths:
        section = _section(path)
        if section == "loading":
            lhs, op, rhs = names.name(path.source), MEASUREMENT, names.name(path.target)
        elif section == "intercept":
            lhs, op, rhs = names.name(path.target), REGRESSION, INTERCEPT_TERM
        elif section == "regression":
            lhs, op, rhs = names.name(path.target), REGRESSION, names.name(path.source)
        else:
            lhs, op, rhs = names.name(path.source), COVARIANCE, names.name(path.target)
        sections[section].setdefault((lhs, op), []).append(_term(path, rhs))

    return [
        f"{lhs} {op} {' + '.join(terms)}"
        for section in _SECTIONS
        for (lhs, op), terms in sections[section].items()
    ]


def format_equation_text(spec: ModelSpecification, naming: NamingConfig | None = None) -> str:
    """Equation lines joined into model syntax text."""
    return "\n".join(to_equation_text(spec, naming)) + "\n"


# ══════════════════════════════════════════════════════════════════════════════
# PARSING
# ══════════════════════════════════════════════════════════════════════════════


def _split_operator(line: str) -> tuple[str, str, str]:
    for op in (MEASUREMENT, COVARIANCE, REGRESSION):
        if op in line:
            lhs, rhs = line.split(op, 1)
            return lhs, op, rhs
    raise SpecParseError(f"No operator in equation line: {line!r}")


def _parse_term(term: str) -> tuple[str, bool, float, str | None]:
    """Split ``mod*name`` into (name, free, value, label)."""
    comps = [c.strip() for c in term.split("*")]
    if len(comps) == 1:
        return comps[0], True, 0.0, None
    if len(comps) != 2 or not comps[0] or not comps[1]:
        raise SpecParseError(f"Malformed term {term!r}")
    mod, name = comps
    try:
        return name, False, float(mod), None
    except ValueError:
        if not _LABEL.match(mod):
            raise SpecParseError(f"Invalid parameter label {mod!r} in term {term!r}") from None
        return name, True, 0.0, mod


def _parse_line(line: str, names: NameMap) -> list[Path]:
    lhss, op, rhss = _split_operator(line)
    paths = []
    for lhs in (s.strip() for s in lhss.split("+")):
        for term in (s.strip() for s in rhss.split("+")):
            name, free, value, label = _parse_term(term)
            left = names.resolve(lhs)
            if op == MEASUREMENT:
                source, target, kind = left, names.resolve(name), PathKind.REGRESSION
            elif op == COVARIANCE:
                source, target, kind = left, names.resolve(name), PathKind.COVARIANCE
            elif name == INTERCEPT_TERM:
                source, target, kind = MEAN_SOURCE, left, PathKind.REGRESSION
            else:
                source, target, kind = names.resolve(name), left, PathKind.REGRESSION
            path = make_path(source, target, kind, free, value, label)
            if free:
                path = replace(path, value=start_value(path))
            paths.append(path)
    return paths


def from_equation_text(
    text: str | list[str],
    config: LCSConfig | dict[str, Any],
    naming: NamingConfig | None = None,
) -> ModelSpecification:
    """Read equation text back into a specification.

    Free parameters receive the default starting values, ``#`` comments and
    blank lines are ignored.

    Raises:
        SpecParseError: On malformed lines, unknown names or inconsistent structure
    """
    config, variables, names = allocate_for(config, naming)
    lines = text.splitlines() if isinstance(text, str) else list(text)
    paths: list[Path] = []
    for raw in lines:
        line = re.sub(r"\s*#.*", "", raw).strip()
        if line:
            try:
                paths.extend(_parse_line(line, names))
            except ExportError as e:
                if isinstance(e, SpecParseError):
                    raise
                raise SpecParseError(f"{e} (line: {raw!r})") from e
    return assemble_parsed(paths, variables, config)
