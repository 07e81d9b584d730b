"""Pytest configuration and fixtures for switchyard tests."""

import shutil
import sys
import tempfile
from pathlib import Path

import pytest

from switchyard.core.log import ConsoleSink, setup_logger

IDENTITY = {
    "GIT_AUTHOR_NAME": "Switchyard Tests",
    "GIT_AUTHOR_EMAIL": "tests@switchyard.invalid",
    "GIT_COMMITTER_NAME": "Switchyard Tests",
    "GIT_COMMITTER_EMAIL": "tests@switchyard.invalid",
}


@pytest.fixture(autouse=True, scope="session")
def configure_logging():
    """Configure logging for console-only mode during tests.

    Debug output shows up in failing test reports; nothing is sent to
    logfire.dev.
    """
    test_log_root = Path(tempfile.gettempdir()) / "switchyard-tests"
    setup_logger(
        log_root=test_log_root,
        run_name="test",
        console=ConsoleSink(level="debug"),
    )


@pytest.fixture
def identity():
    """Commit identity for repositories created in tests."""
    return dict(IDENTITY)


@pytest.fixture
def mock_argv():
    """Save and restore sys.argv."""
    original = sys.argv.copy()
    sys.argv = ["switchyard"]
    yield
    sys.argv = original


class Workspace:
    """A repository under test plus file helpers."""

    def __init__(self, repo):
        self.repo = repo
        self.main = repo.current_branch()

    @property
    def workdir(self) -> Path:
        return self.repo.workdir

    def write(self, name: str, text: str):
        path = self.workdir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)

    def read(self, name: str) -> str:
        return (self.workdir / name).read_text()

    def exists(self, name: str) -> bool:
        return (self.workdir / name).exists()

    def files(self) -> dict[str, str]:
        """Every file outside .git, keyed by relative path."""
        return {
            str(path.relative_to(self.workdir)): path.read_text()
            for path in sorted(self.workdir.rglob("*"))
            if path.is_file() and ".git" not in path.relative_to(
                self.workdir
            ).parts
        }

    def tracked(self, rev: str = "HEAD") -> list[str]:
        out = self.repo._git(
            "ls-tree", "-r", "--name-only", rev
        ).stdout
        return out.split()

    def commit(self, message: str):
        from switchyard.ops.history import commit_changes

        return commit_changes(self.repo, message)

    def checkout(self, branch: str):
        """Move head to branch without any WIP handling."""
        self.repo.checkout_tree(branch)
        self.repo.set_head(branch)

    def diverge(self, paths: list[str]):
        """Make main and `feature` edit the same line of every path.

        Absorbing `feature` afterwards conflicts on all of them.
        """
        for path in paths:
            self.write(path, "base\n")
        self.commit(f"Add {len(paths)} files")
        self.repo.create_branch("feature")

        for path in paths:
            self.write(path, "ours\n")
        self.commit("Change files on main")

        self.checkout("feature")
        for path in paths:
            self.write(path, "theirs\n")
        self.commit("Change files on feature")

        self.checkout(self.main)
        return self


@pytest.fixture
def workspace(tmp_path, identity):
    """A fresh repository holding only its initial commit."""
    if shutil.which("git") is None:
        pytest.skip("git executable not found")

    from switchyard.ops.history import create_repository

    repo = create_repository(tmp_path / "repo", identity=identity)
    return Workspace(repo)


@pytest.fixture
def repo(workspace):
    return workspace.repo


@pytest.fixture
def diverged(workspace):
    """Branches main and `feature` edit the same line of shared.txt."""
    return workspace.diverge(["shared.txt"])


@pytest.fixture
def forked(workspace):
    """Branches main and `feature` each add their own file."""
    workspace.write("shared.txt", "base\n")
    workspace.commit("Add shared.txt")
    workspace.repo.create_branch("feature")

    workspace.write("main.txt", "main\n")
    workspace.commit("Add main.txt")

    workspace.checkout("feature")
    workspace.write("feature.txt", "feature\n")
    workspace.commit("Add feature.txt")

    workspace.checkout(workspace.main)
    return workspace


@pytest.fixture
def sha256_workspace(tmp_path, identity):
    """Like workspace, in a repository with SHA-256 object ids."""
    if shutil.which("git") is None:
        pytest.skip("git executable not found")

    from switchyard.git.repository import GitRepository
    from switchyard.ops.history import INITIAL_COMMIT_MESSAGE, commit

    path = tmp_path / "sha256"
    path.mkdir()
    repo = GitRepository(path, identity)
    result = repo._git(
        "init", "--quiet", "--object-format=sha256", check=False
    )
    if result.exited != 0:
        pytest.skip("git cannot create SHA-256 repositories")

    commit(repo, INITIAL_COMMIT_MESSAGE, [])
    return Workspace(repo)
