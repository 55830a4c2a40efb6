"""Label registry for equality-constrained parameters.

A label names one estimated parameter. Every path carrying the same label
shares that parameter, so all members must agree in kind and freeness.
"""

from __future__ import annotations

from dataclasses import dataclass

from lcs_spec.exceptions import LabelConflictError
from lcs_spec.schemas import PathKind

LabelId = int
PathId = int


@dataclass(frozen=True)
class ParameterLabel:
    name: str
    kind: PathKind
    free: bool
    members: frozenset[PathId]


class LabelRegistry:
    """Interns label names and tracks which paths share them."""

    def __init__(self):
        self._ids: dict[str, LabelId] = {}
        self._signature: dict[str, tuple[PathKind, bool]] = {}
        self._members: dict[str, set[PathId]] = {}

    def intern(self, name: str, kind: PathKind, free: bool) -> LabelId:
        """Register a label, or validate a repeated registration.

        Raises:
            LabelConflictError: If the label already exists with another
                kind or freeness
        """
        if not name:
            raise LabelConflictError("Label names must be non-empty")
        if name in self._ids:
            known_kind, known_free = self._signature[name]
            if known_kind != kind or known_free != free:
                raise LabelConflictError(
                    f"Label '{name}' is already a {_describe(known_kind, known_free)} "
                    f"parameter; cannot reuse it for a {_describe(kind, free)} parameter"
                )
            return self._ids[name]
        label_id = len(self._ids)
        self._ids[name] = label_id
        self._signature[name] = (kind, free)
        self._members[name] = set()
        return label_id

    def attach(self, name: str, path_id: PathId) -> None:
        if name not in self._members:
            raise LabelConflictError(f"Label '{name}' was never interned")
        self._members[name].add(path_id)

    def members(self, name: str) -> frozenset[PathId]:
        if name not in self._members:
            raise LabelConflictError(f"Unknown label '{name}'")
        return frozenset(self._members[name])

    def __contains__(self, name: object) -> bool:
        return name in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def labels(self) -> tuple[ParameterLabel, ...]:
        """Snapshot of all labels, ordered by their first member path."""
        snapshot = [
            ParameterLabel(name, *self._signature[name], frozenset(members))
            for name, members in self._members.items()
        ]
        snapshot.sort(key=lambda lab: (min(lab.members, default=float("inf")), lab.name))
        return tuple(snapshot)


def _describe(kind: PathKind, free: bool) -> str:
    return f"{'free' if free else 'fixed'} {kind.value}"
