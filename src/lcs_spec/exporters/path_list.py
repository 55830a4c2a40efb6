"""Path-list (RAM style) rendering of an LCS specification.

Each path becomes one row:

    from, to, arrows (1 = regression, 2 = covariance), free (0/1), value, label

Means and intercepts start from the mean source (``one`` by default). Rows
follow the canonical path order, so identical configurations give identical
rows and identical text.
"""

from __future__ import annotations

import io
from typing import Any, NamedTuple

import polars as pl

from lcs_spec.exceptions import SpecParseError
from lcs_spec.exporters.common import allocate_for, assemble_parsed, make_path
from lcs_spec.exporters.naming import NameMap
from lcs_spec.models.paths import ModelSpecification
from lcs_spec.schemas import LCSConfig, PathKind
from lcs_spec.utils.config import NamingConfig, get_settings
from lcs_spec.utils.structure import validate_structure

COLUMNS = ("from", "to", "arrows", "free", "value", "label")

SCHEMA = {
    "from": pl.String,
    "to": pl.String,
    "arrows": pl.Int64,
    "free": pl.Int64,
    "value": pl.Float64,
    "label": pl.String,
}

_ARROWS = {1: PathKind.REGRESSION, 2: PathKind.COVARIANCE}


class PathRow(NamedTuple):
    source: str
    target: str
    arrows: int
    free: int
    value: float
    label: str


def to_path_list(spec: ModelSpecification, naming: NamingConfig | None = None) -> list[PathRow]:
    """Render a specification as ordered path rows.

    Raises:
        ExportError: If the specification is structurally inconsistent or
            the naming templates collide
    """
    validate_structure(spec)
    names = NameMap(spec.variables, naming)
    return [
        PathRow(
            source=names.name(path.source),
            target=names.name(path.target),
            arrows=path.kind.arrows,
            free=int(path.free),
            value=float(path.value),
            label=path.label or "",
        )
        for path in spec.paths
    ]


def to_path_frame(spec: ModelSpecification, naming: NamingConfig | None = None) -> pl.DataFrame:
    """Path rows as a polars DataFrame with columns from/to/arrows/free/value/label."""
    rows = to_path_list(spec, naming)
    return pl.DataFrame([tuple(r) for r in rows], schema=SCHEMA, orient="row")


def format_path_list(
    spec: ModelSpecification,
    naming: NamingConfig | None = None,
    separator: str | None = None,
) -> str:
    """Path rows as delimited text with a header line."""
    sep = separator if separator is not None else get_settings().export.separator
    return to_path_frame(spec, naming).write_csv(separator=sep)


def _rows_from(source: Any, separator: str | None) -> list[PathRow]:
    if isinstance(source, str):
        sep = separator if separator is not None else get_settings().export.separator
        try:
            source = pl.read_csv(io.StringIO(source), separator=sep, schema_overrides=SCHEMA)
        except (pl.exceptions.PolarsError, ValueError) as e:
            raise SpecParseError(f"Could not read path list: {e}") from e
    if isinstance(source, pl.DataFrame):
        missing = [c for c in COLUMNS if c not in source.columns]
        if missing:
            raise SpecParseError(f"Path list is missing columns: {missing}")
        frame = source.select(COLUMNS).with_columns(pl.col("label").fill_null(""))
        return [PathRow(*row) for row in frame.iter_rows()]
    return [PathRow(*row) for row in source]


def from_path_list(
    rows: list[PathRow] | pl.DataFrame | str,
    config: LCSConfig | dict[str, Any],
    naming: NamingConfig | None = None,
    separator: str | None = None,
) -> ModelSpecification:
    """Read a path-list rendering back into a specification.

    Args:
        rows: Path rows, a DataFrame with the path-list columns, or the text
            produced by format_path_list
        config: Configuration the rendering was produced for
        naming: Naming templates (defaults to the configured settings)
        separator: Column separator for text input

    Returns:
        ModelSpecification equal to the one that was rendered

    Raises:
        SpecParseError: On unknown names, malformed rows or inconsistent structure
    """
    config, variables, names = allocate_for(config, naming)
    paths = []
    for row in _rows_from(rows, separator):
        if row.arrows not in _ARROWS:
            raise SpecParseError(f"Invalid arrows value {row.arrows!r} in row {tuple(row)}")
        if row.free not in (0, 1):
            raise SpecParseError(f"Invalid free flag {row.free!r} in row {tuple(row)}")
        paths.append(
            make_path(
                names.resolve(row.source),
                names.resolve(row.target),
                _ARROWS[row.arrows],
                bool(row.free),
                row.value,
                row.label,
            )
        )
    return assemble_parsed(paths, variables, config)
