"""Tests for the lcs_cli command-line tool."""

import json

import pytest

import lcs_cli


class TestMain:
    def test_path_list_default(self, capsys):
        assert lcs_cli.main(["--processes", "Y", "--horizon", "5"]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "from\tto\tarrows\tfree\tvalue\tlabel"
        assert len(lines) == 38

    def test_equations(self, capsys):
        code = lcs_cli.main(
            ["--processes", "X", "Y", "--horizon", "3", "--coupled", "--format", "equations"]
        )
        assert code == 0
        out = capsys.readouterr().out
        assert "dx2 ~ 1*xa + beta_x*lx1 + gamma_x*ly1" in out.splitlines()

    def test_json(self, capsys):
        code = lcs_cli.main(
            ["--processes", "X", "--horizon", "4", "--indicators", "X=3", "--format", "json"]
        )
        assert code == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["config"]["indicators"] == {"X": 3}
        assert payload["report"]["n_manifest"] == 12
        assert len(payload["path_list"]) == payload["report"]["n_paths"]
        assert payload["path_list"][0]["source"] == "one"
        assert "x0 ~ 0*1" in payload["equations"]

    def test_config_file_with_override(self, tmp_path, capsys):
        path = tmp_path / "model.yaml"
        path.write_text("processes: [X, Y]\nhorizon: 4\ncoupled: true\n")
        code = lcs_cli.main(["--config", str(path), "--stochastic", "--format", "json"])
        assert code == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["config"]["coupled"] is True
        assert payload["config"]["stochastic"] is True
        assert payload["report"]["group_counts"]["innovation_covariance"] == 3

    def test_invalid_config_exits_1(self, capsys):
        assert lcs_cli.main(["--processes", "Y", "--horizon", "1"]) == 1
        assert "horizon" in capsys.readouterr().err

    def test_missing_config_file(self, tmp_path, capsys):
        assert lcs_cli.main(["--config", str(tmp_path / "none.yaml")]) == 1
        assert "File not found" in capsys.readouterr().err

    def test_bad_indicator_argument(self):
        with pytest.raises(SystemExit):
            lcs_cli.main(["--processes", "X", "--horizon", "3", "--indicators", "X3"])
