"""Error taxonomy for LCS specification building and export."""


class LCSSpecError(Exception):
    """Base class for all errors raised by lcs_spec."""


class ConfigError(LCSSpecError, ValueError):
    """Malformed or contradictory structural configuration.

    Raised at build start, before any path is emitted.
    """


class LabelConflictError(LCSSpecError):
    """Two paths assigned the same label disagree in kind or freeness."""


class ExportError(LCSSpecError):
    """A specification cannot be rendered in the requested form."""


class SpecParseError(ExportError):
    """An exported rendering could not be read back into a specification."""
