"""Variable naming for exported specifications.

Variables carry no names of their own; a NameMap renders them through the
templates in NamingConfig and resolves names back when parsing.
"""

from __future__ import annotations

from lcs_spec.exceptions import ExportError, SpecParseError
from lcs_spec.models.variables import (
    MEAN_SOURCE,
    LatentVariable,
    ManifestVariable,
    MeanSource,
    Variable,
    VariableSet,
)
from lcs_spec.schemas import Role
from lcs_spec.utils.config import NamingConfig, get_settings

_ROLE_TEMPLATE = {
    Role.INITIAL_LEVEL: "level",
    Role.INITIAL_SLOPE: "slope",
    Role.STATE: "state",
    Role.CHANGE: "change",
}


def render_name(variable: Variable, variables: VariableSet, naming: NamingConfig) -> str:
    if isinstance(variable, LatentVariable):
        template = getattr(naming, _ROLE_TEMPLATE[variable.role])
        return template.format(p=variable.process.lower(), P=variable.process, t=variable.time)
    multi = variables.indicator_count(variable.process) > 1
    template = naming.manifest_multi if multi else naming.manifest
    return template.format(
        p=variable.process.lower(),
        P=variable.process,
        t=variable.time,
        i=variable.indicator,
    )


class NameMap:
    """Bidirectional mapping between variables and their exported names."""

    def __init__(self, variables: VariableSet, naming: NamingConfig | None = None):
        self.naming = naming or get_settings().naming
        self._names: dict[int, str] = {}
        self._by_name: dict[str, Variable | MeanSource] = {self.naming.mean_source: MEAN_SOURCE}
        for variable in variables.variables:
            name = render_name(variable, variables, self.naming)
            if name in self._by_name:
                raise ExportError(
                    f"Naming templates produce duplicate name '{name}' "
                    f"for {variable} and {self._by_name[name]}"
                )
            self._names[variable.id] = name
            self._by_name[name] = variable

    @property
    def mean_source(self) -> str:
        return self.naming.mean_source

    def name(self, variable: Variable | MeanSource) -> str:
        if isinstance(variable, MeanSource):
            return self.naming.mean_source
        return self._names[variable.id]

    def resolve(self, name: str) -> Variable | MeanSource:
        try:
            return self._by_name[name]
        except KeyError:
            raise SpecParseError(f"Unknown variable name '{name}'") from None

    def manifest_names(self) -> list[str]:
        return [n for n, v in self._by_name.items() if isinstance(v, ManifestVariable)]
