"""Settings loader for lcs_spec (naming templates, export and logging options)."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Centralized .env loading so LCS_SPEC_CONFIG can be set per checkout.
load_dotenv()

CONFIG_ENV_VAR = "LCS_SPEC_CONFIG"
CONFIG_FILENAME = "config.yaml"


@dataclass(frozen=True)
class NamingConfig:
    """Templates used to name variables in exported specifications.

    Placeholders: {p} lower-cased process, {P} process as given,
    {t} occasion, {i} indicator index.
    """

    level: str = "{p}0"
    slope: str = "{p}a"
    state: str = "l{p}{t}"
    change: str = "d{p}{t}"
    manifest: str = "{P}{t}"
    manifest_multi: str = "{P}{i}_T{t}"
    mean_source: str = "one"


@dataclass(frozen=True)
class ExportConfig:
    """Path-list text rendering options."""

    separator: str = "\t"


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "WARNING"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    naming: NamingConfig = NamingConfig()
    export: ExportConfig = ExportConfig()
    logging: LoggingConfig = LoggingConfig()


def _find_config_path() -> Path | None:
    """Locate the settings file.

    Order: $LCS_SPEC_CONFIG, then config.yaml in the working directory or
    any parent of this file. Returns None when nothing is found.
    """
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        path = Path(env_path)
        if not path.exists():
            raise FileNotFoundError(f"{CONFIG_ENV_VAR} points to missing file: {path}")
        return path
    candidates = [Path.cwd() / CONFIG_FILENAME]
    candidates += [parent / CONFIG_FILENAME for parent in Path(__file__).resolve().parents]
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return None


def parse_settings(raw: dict | None) -> Settings:
    """Build Settings from a parsed YAML mapping (missing sections -> defaults)."""
    raw = raw or {}
    naming_raw = raw.get("naming", {})
    export_raw = raw.get("export", {})
    logging_raw = raw.get("logging", {})
    return Settings(
        naming=NamingConfig(**naming_raw) if naming_raw else NamingConfig(),
        export=ExportConfig(**export_raw) if export_raw else ExportConfig(),
        logging=LoggingConfig(**logging_raw) if logging_raw else LoggingConfig(),
    )


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Load and parse the settings file.

    Returns cached settings on subsequent calls.
    """
    config_path = _find_config_path()
    if config_path is None:
        logger.debug("No %s found; using default settings", CONFIG_FILENAME)
        return Settings()

    with config_path.open() as f:
        raw = yaml.safe_load(f)
    logger.debug("Loaded settings from %s", config_path)
    return parse_settings(raw)


def get_settings() -> Settings:
    """Get the lcs_spec settings."""
    return load_settings()
