"""LCS model graph: variables, labels, paths and invariance policies.

The builder lives in ``lcs_spec.models.lcs_builder`` and the estimation
boundary in ``lcs_spec.models.estimation``.
"""

from .invariance import InvariancePolicy, PathParameter, get_policy, register_policy
from .labels import LabelRegistry, ParameterLabel
from .paths import ModelSpecification, Path, PathGroup, classify
from .variables import (
    MEAN_SOURCE,
    LatentVariable,
    ManifestVariable,
    VariableRegistry,
    VariableSet,
)

__all__ = [
    "MEAN_SOURCE",
    "InvariancePolicy",
    "LabelRegistry",
    "LatentVariable",
    "ManifestVariable",
    "ModelSpecification",
    "ParameterLabel",
    "Path",
    "PathGroup",
    "PathParameter",
    "VariableRegistry",
    "VariableSet",
    "classify",
    "get_policy",
    "register_policy",
]
