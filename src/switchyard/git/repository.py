"""Git backend driven through the git command line."""

from __future__ import annotations

import shlex
from pathlib import Path

from invoke import Result

from switchyard.core.errors import BackendError
from switchyard.core.log import logger
from switchyard.core.runner import Runner
from switchyard.git.types import (
    Commit,
    Conflict,
    IndexEntry,
    MergeAnalysis,
)

# Files git keeps in the git directory while a merge is in progress
MERGE_STATE_FILES = (
    "MERGE_HEAD",
    "MERGE_MSG",
    "MERGE_MODE",
    "MERGE_RR",
    "AUTO_MERGE",
)

_STAGE_SIDES = {"1": "ancestor", "2": "ours", "3": "theirs"}


class GitRepository:
    """Commit, index, branch and merge primitives for one repository.

    Every method maps onto one or a few git invocations. A failing
    invocation raises BackendError; the boolean queries
    (commit_exists, branch_exists, try_delete_branch) report failure
    through their return value instead.
    """

    def __init__(
        self,
        workdir: Path,
        identity: dict[str, str] | None = None,
        runner: Runner | None = None,
    ):
        """Wrap an existing repository.

        Args:
            workdir: Working directory of the repository
            identity: GIT_AUTHOR_* / GIT_COMMITTER_* environment
                overrides for new commits
            runner: Command runner (a fresh Runner by default)
        """
        self.workdir = Path(workdir)
        self.identity = identity or {}
        self.runner = runner or Runner()
        self._git_dir: Path | None = None

    @classmethod
    def exists(cls, path: Path) -> bool:
        return (Path(path) / ".git").exists()

    @classmethod
    def init(
        cls, path: Path, identity: dict[str, str] | None = None
    ) -> GitRepository:
        """Create an empty repository at path (created if missing)."""
        path = Path(path)
        path.mkdir(parents=True, exist_ok=True)
        repo = cls(path, identity)
        repo._git("init", "--quiet")
        logger.debug("Initialized git repository", path=str(path))
        return repo

    @classmethod
    def from_config(cls, git_config) -> GitRepository:
        """Open the repository described by a GitConfig."""
        return cls(git_config.workdir, identity=git_config.identity())

    # ------------------------------------------------------------
    # Command plumbing
    # ------------------------------------------------------------

    def _run(
        self, command: str, check: bool = True, stdin: str | None = None
    ) -> Result:
        logger.debug("git", command=command)
        result = self.runner.execute(
            command,
            cwd=self.workdir,
            check=False,
            env=self.identity or None,
            stdin=stdin,
        )
        if check and result.exited != 0:
            raise BackendError(
                "git command failed",
                command=command,
                exited=result.exited,
                stderr=result.stderr,
            )
        return result

    def _git(
        self, *args: str, check: bool = True, stdin: str | None = None
    ) -> Result:
        return self._run(
            shlex.join(["git", *args]), check=check, stdin=stdin
        )

    @property
    def git_dir(self) -> Path:
        if self._git_dir is None:
            out = self._git("rev-parse", "--absolute-git-dir").stdout
            self._git_dir = Path(out.strip())
        return self._git_dir

    # ------------------------------------------------------------
    # Commits
    # ------------------------------------------------------------

    def resolve(self, rev: str) -> str | None:
        """Commit id for a revision, or None if it names no commit."""
        result = self._git(
            "rev-parse", "--verify", "--quiet", f"{rev}^{{commit}}",
            check=False,
        )
        if result.exited != 0:
            return None
        return result.stdout.strip()

    def commit_exists(self, rev: str) -> bool:
        return self.resolve(rev) is not None

    def get_commit(self, rev: str) -> Commit:
        """Look up a commit by revision (name, id, HEAD, MERGE_HEAD)."""
        commit_id = self.resolve(rev)
        if commit_id is None:
            raise BackendError(f"Revision not found: {rev}")

        raw = self._git("cat-file", "commit", commit_id).stdout
        header, _, message = raw.partition("\n\n")
        tree = ""
        parents = []
        for line in header.splitlines():
            if line.startswith("tree "):
                tree = line[5:]
            elif line.startswith("parent "):
                parents.append(line[7:])

        return Commit(
            id=commit_id,
            tree=tree,
            parents=parents,
            # create_commit terminates the message with one newline
            message=message.removesuffix("\n"),
        )

    def create_commit(
        self,
        message: str,
        tree: str,
        parents: list[str],
        update_ref: str | None = "HEAD",
    ) -> str:
        """Create a commit object and point update_ref at it.

        Updating HEAD moves the branch HEAD is attached to.

        Returns:
            The new commit id
        """
        args = ["commit-tree", "--no-gpg-sign", tree]
        for parent in parents:
            args += ["-p", parent]
        # Read from stdin so the message is stored verbatim; -m would
        # fold a trailing newline into the terminating one
        commit_id = self._git(*args, stdin=message + "\n").stdout.strip()

        if update_ref:
            subject = message.splitlines()[0] if message else ""
            self._git(
                "update-ref", "-m", f"switchyard: {subject}",
                update_ref, commit_id,
            )
        return commit_id

    def reset(self, rev: str, hard: bool = False):
        """Move head's branch to rev, updating the index.

        A hard reset also overwrites the working directory.
        """
        mode = "--hard" if hard else "--mixed"
        self._git("reset", "--quiet", mode, rev)

    # ------------------------------------------------------------
    # Index and working directory
    # ------------------------------------------------------------

    def stage_all(self):
        """Stage every change, deletions included, honoring ignores."""
        self._git("add", "--all")

    def write_tree(self) -> str:
        return self._git("write-tree").stdout.strip()

    def write_index(self):
        """Refresh cached stat data so status queries see a clean index."""
        result = self._git(
            "update-index", "-q", "--unmerged", "--refresh", check=False
        )
        if result.exited != 0:
            # Paths that still differ are reported, not fatal
            logger.debug("Index refresh reported changes", stderr=result.stderr)

    def checkout_tree(self, rev: str):
        """Force the index and working directory to match rev's tree.

        Local modifications are overwritten and tracked files absent
        from the tree are removed. Head does not move.
        """
        commit_id = self.get_commit(rev).id
        self._git("read-tree", "--reset", "-u", commit_id)

    def is_dirty(self) -> bool:
        """True if anything is staged, modified or untracked."""
        out = self._git(
            "status", "--porcelain", "--untracked-files=all"
        ).stdout
        return bool(out.strip())

    # ------------------------------------------------------------
    # Branches and head
    # ------------------------------------------------------------

    def branch_exists(self, name: str) -> bool:
        result = self._git(
            "show-ref", "--verify", "--quiet", f"refs/heads/{name}",
            check=False,
        )
        return result.exited == 0

    def create_branch(self, name: str, rev: str = "HEAD"):
        self._git("branch", "--no-track", name, rev)

    def delete_branch(self, name: str):
        self._git("branch", "-D", name)

    def try_delete_branch(self, name: str) -> bool:
        """Delete a branch if possible; report whether it was deleted."""
        result = self._git("branch", "-D", name, check=False)
        return result.exited == 0

    def current_branch(self) -> str | None:
        """Name of the branch head is attached to, None if detached."""
        result = self._git("symbolic-ref", "--quiet", "HEAD", check=False)
        ref = result.stdout.strip()
        if result.exited != 0 or not ref.startswith("refs/heads/"):
            return None
        return ref[len("refs/heads/"):]

    def list_branches(self) -> list[str]:
        out = self._git(
            "for-each-ref", "--format=%(refname)", "refs/heads/"
        ).stdout
        return [
            line[len("refs/heads/"):]
            for line in out.splitlines()
            if line.startswith("refs/heads/")
        ]

    def set_head(self, name: str):
        """Attach head to a branch without touching index or files."""
        self._git("symbolic-ref", "HEAD", f"refs/heads/{name}")

    # ------------------------------------------------------------
    # Merging
    # ------------------------------------------------------------

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        result = self._git(
            "merge-base", "--is-ancestor", ancestor, descendant,
            check=False,
        )
        if result.exited not in (0, 1):
            raise BackendError(
                "git merge-base failed",
                exited=result.exited,
                stderr=result.stderr,
            )
        return result.exited == 0

    def merge_analysis(self, rev: str) -> MergeAnalysis:
        """Classify merging rev into head.

        Unrelated histories are reported as NORMAL; the merge then
        runs against an empty base.
        """
        theirs = self.get_commit(rev).id
        ours = self.resolve("HEAD")
        if ours is None:
            return MergeAnalysis.UNBORN
        if theirs == ours or self.is_ancestor(theirs, ours):
            return MergeAnalysis.UP_TO_DATE
        if self.is_ancestor(ours, theirs):
            return MergeAnalysis.FASTFORWARD | MergeAnalysis.NORMAL
        return MergeAnalysis.NORMAL

    def merge(self, rev: str):
        """Merge rev into the index and working directory, no commit.

        Conflicts are left in the index with markers in the files.

        Raises:
            BackendError: git did not enter the merging state. This
                includes git refusing because the merge would overwrite
                local changes or untracked files; nothing is touched
                then.
        """
        commit_id = self.get_commit(rev).id
        result = self._git(
            "-c", "rerere.enabled=false",
            "merge", "--no-commit", "--no-ff", "--allow-unrelated-histories",
            commit_id,
            check=False,
        )
        if not self.commit_exists("MERGE_HEAD"):
            raise BackendError(
                f"Merge of {rev} did not start",
                exited=result.exited,
                stderr=result.stderr or result.stdout,
            )

    def cleanup_state(self):
        """Forget an in-progress merge, keeping index and files."""
        for name in MERGE_STATE_FILES:
            (self.git_dir / name).unlink(missing_ok=True)

    def read_message(self) -> str:
        """Read the repository's stored merge message."""
        path = self.git_dir / "MERGE_MSG"
        if not path.is_file():
            raise BackendError(f"No merge message stored at {path}")
        return path.read_text(encoding="utf-8")

    def write_message(self, message: str):
        (self.git_dir / "MERGE_MSG").write_text(message, encoding="utf-8")

    # ------------------------------------------------------------
    # Conflicts
    # ------------------------------------------------------------

    def conflicts(self) -> list[Conflict]:
        """Conflict entries currently in the index, in index order."""
        out = self._git("ls-files", "--unmerged", "-z").stdout
        sides: dict[str, dict[str, IndexEntry]] = {}
        for record in out.split("\0"):
            if not record:
                continue
            info, _, path = record.partition("\t")
            mode, object_id, stage = info.split()
            sides.setdefault(path, {})[_STAGE_SIDES[stage]] = IndexEntry(
                mode=mode, id=object_id
            )
        return [
            Conflict(path=path, **entries) for path, entries in sides.items()
        ]

    def has_conflicts(self) -> bool:
        return bool(self.conflicts())

    def cleanup_conflicts(self):
        """Drop every conflicted path from the index."""
        paths = [conflict.path for conflict in self.conflicts()]
        if paths:
            self._git(
                "update-index", "-z", "--force-remove", "--stdin",
                stdin="".join(f"{path}\0" for path in paths),
            )

    def add_conflicts(self, conflicts: list[Conflict]):
        """Record conflicts in the index, replacing stage-0 entries.

        Records are NUL terminated so paths go through unquoted, and
        they are fed on stdin so any number of conflicts fits.
        """
        records = []
        for conflict in conflicts:
            stages = conflict.stages()
            if not stages:
                continue
            # Mode 0 removes the path; the zero id matches the
            # repository's hash length (SHA-1 or SHA-256)
            null_id = "0" * len(stages[0][1].id)
            records.append(f"0 {null_id}\t{conflict.path}\0")
            for stage, entry in stages:
                records.append(
                    f"{entry.mode} {entry.id} {stage}\t{conflict.path}\0"
                )
        if records:
            self._git(
                "update-index", "-z", "--index-info", stdin="".join(records)
            )
