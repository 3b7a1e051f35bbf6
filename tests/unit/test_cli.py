"""Tests for CLI commands using Click's CliRunner."""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from rulegate.cli import main


@pytest.fixture(autouse=True)
def _no_user_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))


def test_main_help():
    runner = CliRunner()
    result = runner.invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "RuleGate" in result.output
    assert "match" in result.output
    assert "diff" in result.output
    assert "status" in result.output


def test_main_version():
    runner = CliRunner()
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_match(rules_path: Path, alarm_path: Path):
    runner = CliRunner()
    result = runner.invoke(main, ["match", str(rules_path), str(alarm_path)])
    assert result.exit_code == 0, result.output
    assert "Winner: rule 2 (allow)" in result.output
    assert "conflicts" not in result.output


def test_match_no_rule(tmp_path: Path, alarm_path: Path):
    rules = tmp_path / "rules.yaml"
    rules.write_text("- type: country\n  target: KP\n")
    runner = CliRunner()
    result = runner.invoke(main, ["match", str(rules), str(alarm_path)])
    assert result.exit_code == 0
    assert "No rule matches." in result.output


def test_match_with_config(fixtures_dir: Path, rules_path: Path, alarm_path: Path):
    runner = CliRunner()
    result = runner.invoke(
        main,
        ["-c", str(fixtures_dir / "config.yaml"), "match", str(rules_path), str(alarm_path)],
    )
    assert result.exit_code == 0, result.output


def test_diff_equivalent(fixtures_dir: Path):
    runner = CliRunner()
    result = runner.invoke(
        main, ["diff", str(fixtures_dir / "rule_old.yaml"), str(fixtures_dir / "rule_same.yaml")]
    )
    assert result.exit_code == 0, result.output
    assert "Rules are equivalent." in result.output


def test_diff_changed(fixtures_dir: Path):
    runner = CliRunner()
    result = runner.invoke(
        main, ["diff", str(fixtures_dir / "rule_old.yaml"), str(fixtures_dir / "rule_new.yaml")]
    )
    assert result.exit_code == 1
    assert "action" in result.output
    assert "Rules differ." in result.output


def test_diff_invalid(tmp_path: Path, fixtures_dir: Path):
    bad = tmp_path / "bad.yaml"
    bad.write_text("target: 1.2.3.4\n")
    runner = CliRunner()
    result = runner.invoke(main, ["diff", str(bad), str(fixtures_dir / "rule_old.yaml")])
    assert result.exit_code == 2
    assert "Invalid rule" in result.output


def test_status(rules_path: Path):
    runner = CliRunner()
    result = runner.invoke(main, ["status", str(rules_path)])
    assert result.exit_code == 0, result.output
    assert "active" in result.output
    assert "Total rules: 4" in result.output
