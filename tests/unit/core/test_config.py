"""Tests for configuration loading and template substitution."""

from pathlib import Path

import platformdirs
import pytest

from switchyard.core.config import GitConfig, State


@pytest.fixture
def project_dir(tmp_path, monkeypatch, mock_argv):
    """Run from an empty directory so no ./switchyard.yaml is found."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_identity_empty_by_default():
    assert GitConfig().identity() == {}


def test_identity_sets_author_and_committer():
    identity = GitConfig(
        author_name="Ada", author_email="ada@example.com"
    ).identity()

    assert identity == {
        "GIT_AUTHOR_NAME": "Ada",
        "GIT_COMMITTER_NAME": "Ada",
        "GIT_AUTHOR_EMAIL": "ada@example.com",
        "GIT_COMMITTER_EMAIL": "ada@example.com",
    }


def test_defaults_loaded(project_dir):
    state = State()

    assert state.config.git.workdir == Path(".")
    assert state.config.logger.console.enabled
    assert not state.config.logger.file.enabled
    assert state.runtime.command is None


def test_project_yaml_overrides_defaults(project_dir):
    (project_dir / "switchyard.yaml").write_text(
        "config:\n"
        "  git:\n"
        "    author_name: Project Bot\n"
        "  logger:\n"
        "    level: debug\n"
    )

    state = State()

    assert state.config.git.author_name == "Project Bot"
    assert state.config.logger.level == "debug"
    # Untouched defaults survive the merge
    assert state.config.logger.console.enabled


def test_environment_variables(project_dir, monkeypatch):
    monkeypatch.setenv("SWITCHYARD_CONFIG__GIT__AUTHOR_EMAIL", "env@example.com")

    state = State()

    assert state.config.git.author_email == "env@example.com"


def test_config_reference_templates_substituted(project_dir):
    state = State(config={
        "git": {"workdir": str(project_dir)},
        "log_root": "{config.git.workdir}/logs",
    })

    assert state.config.log_root == project_dir / "logs"


def test_platformdirs_templates_substituted(project_dir):
    state = State(config={"log_root": "{platformdirs.user_state_dir}"})

    expected = platformdirs.user_state_dir("switchyard", appauthor=False)
    assert state.config.log_root == Path(expected)


def test_runtime_templates_preserved(project_dir):
    """{log_root} and {run_name} are filled in by the file sink later."""
    state = State()

    assert state.config.logger.file.path == "{log_root}/{run_name}.log"
    assert state.config.logger.file.format_template == (
        "{timestamp} {level:5} {message}"
    )
