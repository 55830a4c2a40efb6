"""Boundary to external SEM estimation engines.

lcs_spec does not estimate anything. An engine receives a specification in
the form it asks for plus a data frame keyed by manifest names, and returns
whatever fit result it produces. Engine failures propagate unchanged.
"""

import logging
from typing import Any, Literal, Protocol, runtime_checkable

import polars as pl

from lcs_spec.exporters.equation_text import to_equation_text
from lcs_spec.exporters.naming import NameMap
from lcs_spec.exporters.path_list import to_path_frame
from lcs_spec.models.paths import ModelSpecification
from lcs_spec.utils.config import NamingConfig

logger = logging.getLogger(__name__)

SpecForm = Literal["path_list", "equation_text", "model"]


class NonconvergenceError(RuntimeError):
    """Raised by an engine when optimization does not converge."""


class UnidentifiedModelError(RuntimeError):
    """Raised by an engine when the model is not statistically identified."""


@runtime_checkable
class EstimationEngine(Protocol):
    """What lcs_spec expects from an estimation back end."""

    form: SpecForm

    def fit(self, specification: Any, data: pl.DataFrame) -> Any: ...


def render_for(
    spec: ModelSpecification, form: SpecForm, naming: NamingConfig | None = None
) -> Any:
    """Render a specification in the form an engine consumes."""
    if form == "path_list":
        return to_path_frame(spec, naming)
    if form == "equation_text":
        return to_equation_text(spec, naming)
    if form == "model":
        return spec
    raise ValueError(f"Unknown specification form '{form}'")


def estimate(
    spec: ModelSpecification,
    data: pl.DataFrame,
    engine: EstimationEngine,
    naming: NamingConfig | None = None,
) -> Any:
    """Hand a specification and data to an estimation engine.

    Args:
        spec: Built specification
        data: Rectangular data with one column per manifest variable
        engine: Estimation back end
        naming: Naming templates used to match manifest columns

    Returns:
        The engine's fit result, unchanged

    Raises:
        ValueError: If manifest columns are missing from the data
        NonconvergenceError, UnidentifiedModelError: Passed through from the engine
    """
    manifest_cols = NameMap(spec.variables, naming).manifest_names()
    missing = [c for c in manifest_cols if c not in data.columns]
    if missing:
        raise ValueError(f"Data is missing manifest columns: {missing}")

    specification = render_for(spec, engine.form, naming)
    logger.info(
        "Estimating LCS model with %s (%d manifest columns, %d rows)",
        type(engine).__name__,
        len(manifest_cols),
        data.height,
    )
    result = engine.fit(specification, data.select(manifest_cols))
    logger.info("Estimation complete")
    return result
