"""Latent change score (LCS) model specification generator.

Builds the full graph of an LCS model for a configuration and renders it as
a RAM-style path list or lavaan-style equation text.
"""

from lcs_spec.exceptions import (
    ConfigError,
    ExportError,
    LabelConflictError,
    LCSSpecError,
    SpecParseError,
)
from lcs_spec.exporters import (
    format_equation_text,
    format_path_list,
    from_equation_text,
    from_path_list,
    to_equation_text,
    to_path_frame,
    to_path_list,
)
from lcs_spec.models import ModelSpecification
from lcs_spec.models.lcs_builder import add_innovations, build_lcs
from lcs_spec.models.estimation import (
    EstimationEngine,
    NonconvergenceError,
    UnidentifiedModelError,
    estimate,
)
from lcs_spec.schemas import Invariance, LCSConfig, LevelMean
from lcs_spec.utils import summarize

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "EstimationEngine",
    "ExportError",
    "Invariance",
    "LCSConfig",
    "LCSSpecError",
    "LabelConflictError",
    "LevelMean",
    "ModelSpecification",
    "NonconvergenceError",
    "SpecParseError",
    "UnidentifiedModelError",
    "add_innovations",
    "build_lcs",
    "estimate",
    "format_equation_text",
    "format_path_list",
    "from_equation_text",
    "from_path_list",
    "summarize",
    "to_equation_text",
    "to_path_frame",
    "to_path_list",
]
