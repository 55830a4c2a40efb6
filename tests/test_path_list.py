"""Tests for the path-list rendering and its parser."""

from dataclasses import replace

import polars as pl
import pytest

from lcs_spec import (
    ExportError,
    LabelConflictError,
    SpecParseError,
    format_path_list,
    from_path_list,
    to_path_frame,
    to_path_list,
)
from lcs_spec.exporters.path_list import COLUMNS, PathRow
from lcs_spec.models.paths import PathGroup
from lcs_spec.utils.config import NamingConfig


class TestRendering:
    def test_first_rows(self, univariate_spec):
        rows = to_path_list(univariate_spec)
        assert rows[0] == PathRow("one", "y0", 1, 1, 0.0, "meanY0")
        assert rows[1] == PathRow("one", "ya", 1, 1, 0.0, "meanYa")
        assert rows[2] == PathRow("y0", "y0", 2, 1, 1.0, "varY0")
        assert rows[3] == PathRow("y0", "ya", 2, 1, 0.0, "covY0a")

    def test_one_row_per_path(self, bivariate_spec):
        assert len(to_path_list(bivariate_spec)) == len(bivariate_spec.paths)

    def test_scenario_a_rows(self, univariate_spec):
        rows = to_path_list(univariate_spec)
        level_rows = [r for r in rows if r.source == "y0" and r.target == "ly1"]
        assert level_rows == [PathRow("y0", "ly1", 1, 0, 1.0, "")]
        beta_rows = [r for r in rows if r.label == "beta"]
        assert [(r.source, r.target) for r in beta_rows] == [
            ("ly1", "dy2"), ("ly2", "dy3"), ("ly3", "dy4"), ("ly4", "dy5"),
        ]

    def test_bivariate_error_covariance_rows(self, bivariate_spec):
        rows = [r for r in to_path_list(bivariate_spec) if r.label == "covE"]
        assert [(r.source, r.target, r.arrows) for r in rows] == [
            (f"X{t}", f"Y{t}", 2) for t in range(1, 6)
        ]

    def test_multi_indicator_names(self, multi_indicator_spec):
        targets = {r.target for r in to_path_list(multi_indicator_spec) if r.source == "lx2"}
        assert {"X1_T2", "X2_T2", "X3_T2"} <= targets

    def test_frame(self, univariate_spec):
        frame = to_path_frame(univariate_spec)
        assert tuple(frame.columns) == COLUMNS
        assert frame.height == len(univariate_spec.paths)
        assert frame["arrows"].dtype == pl.Int64
        assert frame.filter(pl.col("label") == "beta").height == 4

    def test_text_header_and_separator(self, univariate_spec):
        text = format_path_list(univariate_spec)
        assert text.splitlines()[0] == "from\tto\tarrows\tfree\tvalue\tlabel"
        comma = format_path_list(univariate_spec, separator=",")
        assert comma.splitlines()[0] == "from,to,arrows,free,value,label"
        assert len(comma.splitlines()) == len(univariate_spec.paths) + 1

    def test_rendering_is_deterministic(self, spec_factory):
        a = format_path_list(spec_factory(processes=("X", "Y"), coupled=True))
        b = format_path_list(spec_factory(processes=("X", "Y"), coupled=True))
        assert a == b

    def test_custom_naming(self, univariate_spec):
        naming = NamingConfig(manifest="obs_{P}_{t}", mean_source="const")
        rows = to_path_list(univariate_spec, naming)
        assert rows[0].source == "const"
        assert any(r.target == "obs_Y_3" for r in rows)

    def test_colliding_names(self, univariate_spec):
        naming = NamingConfig(state="{p}{t}", change="{p}{t}")
        with pytest.raises(ExportError, match="duplicate name"):
            to_path_list(univariate_spec, naming)


class TestRoundTrip:
    @pytest.mark.parametrize(
        "options",
        [
            {},
            {"stochastic": True},
            {"processes": ("X", "Y"), "coupled": True, "stochastic": True},
            {"processes": ("X", "Y"), "indicators": {"X": 3, "Y": 2}, "invariance": "weak"},
            {"processes": ("X",), "indicators": {"X": 2}, "invariance": "configural"},
        ],
    )
    def test_rows_round_trip(self, spec_factory, options):
        spec = spec_factory(**options)
        assert from_path_list(to_path_list(spec), spec.config) == spec

    def test_text_round_trip(self, bivariate_spec):
        text = format_path_list(bivariate_spec)
        assert from_path_list(text, bivariate_spec.config) == bivariate_spec

    def test_frame_round_trip(self, multi_indicator_spec):
        frame = to_path_frame(multi_indicator_spec)
        assert from_path_list(frame, multi_indicator_spec.config) == multi_indicator_spec

    def test_row_order_irrelevant(self, bivariate_spec):
        rows = list(reversed(to_path_list(bivariate_spec)))
        assert from_path_list(rows, bivariate_spec.config) == bivariate_spec

    def test_config_as_dict(self, univariate_spec):
        rows = to_path_list(univariate_spec)
        assert from_path_list(rows, {"processes": ["Y"], "horizon": 5}) == univariate_spec

    def test_custom_naming_round_trip(self, univariate_spec):
        naming = NamingConfig(state="eta_{P}{t}", mean_source="1")
        rows = to_path_list(univariate_spec, naming)
        assert from_path_list(rows, univariate_spec.config, naming) == univariate_spec

    def test_fixed_labelled_path_survives(self, univariate_spec):
        paths = tuple(
            replace(p, free=False, value=-0.2) if p.label == "beta" else p
            for p in univariate_spec.paths
        )
        rows = to_path_list(replace(univariate_spec, paths=paths))
        beta_rows = [r for r in rows if r.label == "beta"]
        assert all(r.free == 0 and r.value == -0.2 for r in beta_rows)
        parsed = from_path_list(rows, univariate_spec.config)
        assert parsed.label("beta").free is False


class TestParseErrors:
    def test_unknown_name(self, univariate_spec):
        rows = to_path_list(univariate_spec)
        rows[0] = rows[0]._replace(target="nope")
        with pytest.raises(SpecParseError, match="Unknown variable name 'nope'"):
            from_path_list(rows, univariate_spec.config)

    def test_invalid_arrows(self, univariate_spec):
        rows = to_path_list(univariate_spec)
        rows[0] = rows[0]._replace(arrows=3)
        with pytest.raises(SpecParseError, match="arrows"):
            from_path_list(rows, univariate_spec.config)

    def test_missing_column(self, univariate_spec):
        frame = to_path_frame(univariate_spec).drop("label")
        with pytest.raises(SpecParseError, match="missing columns"):
            from_path_list(frame, univariate_spec.config)

    def test_missing_chain_path(self, univariate_spec):
        rows = [r for r in to_path_list(univariate_spec) if (r.source, r.target) != ("ly2", "ly3")]
        with pytest.raises(SpecParseError, match="State\\(2\\) -> State\\(3\\)"):
            from_path_list(rows, univariate_spec.config)

    def test_unclassifiable_path(self, univariate_spec):
        rows = to_path_list(univariate_spec) + [PathRow("ly1", "ly3", 1, 1, 0.0, "")]
        with pytest.raises(SpecParseError):
            from_path_list(rows, univariate_spec.config)

    def test_mean_source_as_target(self, univariate_spec):
        rows = to_path_list(univariate_spec) + [PathRow("y0", "one", 1, 1, 0.0, "")]
        with pytest.raises(SpecParseError, match="mean source"):
            from_path_list(rows, univariate_spec.config)

    def test_label_conflict(self, univariate_spec):
        rows = to_path_list(univariate_spec)
        i = next(i for i, r in enumerate(rows) if r.label == "beta")
        rows[i + 1] = rows[i + 1]._replace(free=0)
        with pytest.raises(LabelConflictError, match="beta"):
            from_path_list(rows, univariate_spec.config)

    def test_innovations_without_stochastic(self, spec_factory):
        stochastic = spec_factory(stochastic=True)
        with pytest.raises(SpecParseError, match="stochastic=False"):
            from_path_list(to_path_list(stochastic), {"processes": ["Y"], "horizon": 5})

    def test_wrong_horizon(self, univariate_spec):
        with pytest.raises(SpecParseError):
            from_path_list(to_path_list(univariate_spec), {"processes": ["Y"], "horizon": 4})

    def test_group_counts_survive(self, bivariate_spec):
        parsed = from_path_list(format_path_list(bivariate_spec), bivariate_spec.config)
        assert parsed.group_counts()[PathGroup.COUPLING] == 8
