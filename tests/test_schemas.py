"""Tests for LCSConfig validation and configuration checks."""

import logging

import pytest
from pydantic import ValidationError

from lcs_spec import ConfigError, Invariance, LCSConfig, LevelMean
from lcs_spec.models.lcs_builder import check_config
from lcs_spec.schemas import PathKind, Role


class TestLCSConfig:
    """Tests for type-level validation of the build configuration."""

    def test_defaults(self):
        config = LCSConfig(processes=("Y",), horizon=5)
        assert config.indicators == {}
        assert config.coupled is False
        assert config.stochastic is False
        assert config.invariance == Invariance.STRONG
        assert config.level_mean == LevelMean.AUTO

    def test_list_processes_become_tuple(self):
        config = LCSConfig.coerce({"processes": ["X", "Y"], "horizon": 3})
        assert config.processes == ("X", "Y")
        assert config.is_bivariate

    def test_coerce_returns_existing_instance(self):
        config = LCSConfig(processes=("Y",), horizon=3)
        assert LCSConfig.coerce(config) is config

    def test_enum_strings_accepted(self):
        config = LCSConfig.coerce(
            {"processes": ["Y"], "horizon": 3, "invariance": "weak", "level_mean": "free"}
        )
        assert config.invariance is Invariance.WEAK
        assert config.level_mean is LevelMean.FREE

    def test_unknown_field_is_config_error(self):
        with pytest.raises(ConfigError, match="Invalid LCS configuration"):
            LCSConfig.coerce({"processes": ["Y"], "horizon": 3, "lag": 2})

    def test_bad_type_is_config_error(self):
        with pytest.raises(ConfigError):
            LCSConfig.coerce({"processes": ["Y"], "horizon": "many"})

    def test_unknown_invariance_is_config_error(self):
        with pytest.raises(ConfigError):
            LCSConfig.coerce({"processes": ["Y"], "horizon": 3, "invariance": "partial"})

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            LCSConfig.coerce({"horizon": 3})

    def test_frozen(self):
        config = LCSConfig(processes=("Y",), horizon=3)
        with pytest.raises(ValidationError):
            config.horizon = 4

    def test_indicator_count_defaults_to_one(self):
        config = LCSConfig(processes=("X", "Y"), horizon=3, indicators={"X": 3})
        assert config.indicator_count("X") == 3
        assert config.indicator_count("Y") == 1

    def test_is_coupled_requires_two_processes(self):
        assert not LCSConfig(processes=("Y",), horizon=3, coupled=True).is_coupled
        assert LCSConfig(processes=("X", "Y"), horizon=3, coupled=True).is_coupled

    def test_with_options(self):
        config = LCSConfig(processes=("X", "Y"), horizon=3, coupled=True)
        changed = config.with_options(stochastic=True)
        assert changed.stochastic is True
        assert changed.coupled is True
        assert config.stochastic is False


class TestCheckConfig:
    """Tests for structural configuration checks run at build start."""

    def test_valid_config_passes(self, config_factory):
        check_config(config_factory(processes=("X", "Y"), indicators={"X": 2}))

    def test_horizon_one_rejected(self, config_factory):
        with pytest.raises(ConfigError, match="horizon must be >= 2"):
            check_config(config_factory(horizon=1))

    @pytest.mark.parametrize("processes", [(), ("X", "Y", "Z")])
    def test_process_count(self, config_factory, processes):
        with pytest.raises(ConfigError, match="Expected 1 or 2 processes"):
            check_config(config_factory(processes=processes))

    @pytest.mark.parametrize("name", ["1X", "x-y", "", "X Y"])
    def test_invalid_identifier(self, config_factory, name):
        with pytest.raises(ConfigError, match="Invalid process identifier"):
            check_config(config_factory(processes=(name,)))

    def test_case_insensitive_duplicates(self, config_factory):
        with pytest.raises(ConfigError, match="case-insensitively"):
            check_config(config_factory(processes=("X", "x")))

    def test_indicators_for_unknown_process(self, config_factory):
        with pytest.raises(ConfigError, match="unknown processes"):
            check_config(config_factory(indicators={"Z": 2}))

    def test_zero_indicators(self, config_factory):
        with pytest.raises(ConfigError, match="at least one indicator"):
            check_config(config_factory(indicators={"Y": 0}))

    def test_coupled_univariate_warns(self, config_factory, caplog):
        with caplog.at_level(logging.WARNING, logger="lcs_spec.models.lcs_builder"):
            check_config(config_factory(coupled=True))
        assert "no effect with a single process" in caplog.text


class TestEnums:
    def test_path_kind_arrows(self):
        assert PathKind.REGRESSION.arrows == 1
        assert PathKind.COVARIANCE.arrows == 2

    def test_roles_are_strings(self):
        assert Role.CHANGE == "change"
        assert {r.value for r in Role} == {"initial_level", "initial_slope", "state", "change"}
