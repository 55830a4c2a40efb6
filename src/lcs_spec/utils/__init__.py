"""Utility functions for lcs_spec."""

from lcs_spec.utils.structure import (
    StructureReport,
    check_structure,
    summarize,
    validate_structure,
)

__all__ = [
    "StructureReport",
    "check_structure",
    "summarize",
    "validate_structure",
]
