"""Path-list and equation-text renderings of LCS specifications."""

from .equation_text import format_equation_text, from_equation_text, to_equation_text
from .naming import NameMap
from .path_list import (
    PathRow,
    format_path_list,
    from_path_list,
    to_path_frame,
    to_path_list,
)

__all__ = [
    "NameMap",
    "PathRow",
    "format_equation_text",
    "format_path_list",
    "from_equation_text",
    "from_path_list",
    "to_equation_text",
    "to_path_frame",
    "to_path_list",
]
