"""Shared fixtures for LCS specification tests.

This module provides reusable fixtures to reduce duplication across test files:
- Factory fixtures for configurations and built specifications
- Settings isolation (the settings loader is cached per process)
"""

import pytest

from lcs_spec import LCSConfig, build_lcs
from lcs_spec.models.paths import ModelSpecification
from lcs_spec.utils.config import CONFIG_ENV_VAR, load_settings

# ══════════════════════════════════════════════════════════════════════════════
# FACTORY FIXTURES
# ══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def config_factory():
    """Factory for creating LCSConfig objects.

    Usage:
        def test_something(config_factory):
            uni = config_factory()
            bi = config_factory(processes=("X", "Y"), coupled=True)
    """

    def _make(
        processes: tuple[str, ...] = ("Y",),
        horizon: int = 5,
        **options,
    ) -> LCSConfig:
        return LCSConfig(processes=processes, horizon=horizon, **options)

    return _make


@pytest.fixture
def spec_factory(config_factory):
    """Factory for building specifications from config options.

    Usage:
        def test_something(spec_factory):
            spec = spec_factory(processes=("X", "Y"), stochastic=True)
    """

    def _make(**options) -> ModelSpecification:
        return build_lcs(config_factory(**options))

    return _make


@pytest.fixture
def univariate_spec(spec_factory) -> ModelSpecification:
    """Deterministic univariate single-indicator model, T=5."""
    return spec_factory()


@pytest.fixture
def bivariate_spec(spec_factory) -> ModelSpecification:
    """Coupled stochastic bivariate single-indicator model, T=5."""
    return spec_factory(processes=("X", "Y"), coupled=True, stochastic=True)


@pytest.fixture
def multi_indicator_spec(spec_factory) -> ModelSpecification:
    """Univariate model with three indicators per occasion (strong invariance), T=4."""
    return spec_factory(processes=("X",), horizon=4, indicators={"X": 3})


# ══════════════════════════════════════════════════════════════════════════════
# SETTINGS ISOLATION
# ══════════════════════════════════════════════════════════════════════════════


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    """Clear the cached settings before and after each test."""
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    load_settings.cache_clear()
    yield
    load_settings.cache_clear()
