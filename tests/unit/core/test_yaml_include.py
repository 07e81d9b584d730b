"""Tests for include: directives and the --include option."""

import sys

import pytest

from switchyard.core.config import State
from switchyard.core.yaml_settings import (
    YamlWithIncludesSettingsSource,
    cli_includes,
)


@pytest.fixture
def fixtures_dir(tmp_path):
    """A small tree of YAML files that include each other."""
    (tmp_path / "base.yaml").write_text(
        "include: shared/identity.yaml\n"
        "config:\n"
        "  git:\n"
        "    workdir: /srv/repo\n"
    )
    (tmp_path / "shared").mkdir()
    (tmp_path / "shared" / "identity.yaml").write_text(
        "config:\n"
        "  git:\n"
        "    author_name: Shared Bot\n"
        "    workdir: /from/include\n"
    )
    (tmp_path / "override.yaml").write_text(
        "config:\n"
        "  git:\n"
        "    author_name: Override Bot\n"
    )
    (tmp_path / "loop_a.yaml").write_text("include: loop_b.yaml\n")
    (tmp_path / "loop_b.yaml").write_text("include: loop_a.yaml\n")
    return tmp_path


def test_cli_includes_collects_every_value():
    argv = ["prog", "--include", "a.yaml", "status", "--include", "b.yaml"]
    assert cli_includes(argv) == ["a.yaml", "b.yaml"]


def test_cli_includes_ignores_dangling_option():
    assert cli_includes(["prog", "--include"]) == []


def test_include_directive_merged(fixtures_dir, mock_argv):
    source = YamlWithIncludesSettingsSource(
        State, yaml_file=str(fixtures_dir / "base.yaml")
    )
    data = source()

    git = data["config"]["git"]
    assert git["author_name"] == "Shared Bot"
    # The including file wins over what it includes
    assert git["workdir"] == "/srv/repo"


def test_package_defaults_underneath(fixtures_dir, mock_argv):
    source = YamlWithIncludesSettingsSource(
        State, yaml_file=str(fixtures_dir / "base.yaml")
    )
    data = source()

    assert data["config"]["logger"]["console"]["enabled"] is True


def test_cli_include_overrides_yaml(fixtures_dir, mock_argv):
    sys.argv = ["prog", "--include", str(fixtures_dir / "override.yaml")]

    source = YamlWithIncludesSettingsSource(
        State, yaml_file=str(fixtures_dir / "base.yaml")
    )
    data = source()

    assert data["config"]["git"]["author_name"] == "Override Bot"
    assert data["config"]["git"]["workdir"] == "/srv/repo"


def test_cli_include_without_base_yaml(fixtures_dir, mock_argv, monkeypatch):
    monkeypatch.chdir(fixtures_dir)
    sys.argv = ["prog", "--include", str(fixtures_dir / "override.yaml")]

    source = YamlWithIncludesSettingsSource(State, yaml_file=None)
    data = source()

    assert data["config"]["git"]["author_name"] == "Override Bot"


def test_circular_include_rejected(fixtures_dir, mock_argv):
    with pytest.raises(ValueError, match="Circular include"):
        YamlWithIncludesSettingsSource(
            State, yaml_file=str(fixtures_dir / "loop_a.yaml")
        )()
