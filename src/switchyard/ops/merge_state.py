"""The persisted record of an in-progress absorb.

Git's own markers are the storage: MERGE_HEAD holds the commit being
absorbed and MERGE_MSG the message the merge commit will get.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from switchyard.core.errors import CurrentlyMergingError
from switchyard.git.repository import GitRepository


class MergeState(BaseModel):
    """Commit being absorbed plus the message its merge commit gets.

    merge_message is None when no message was recorded, in which case
    the default message applies. An empty string is a real message.
    """

    merge_head_id: str
    merge_message: str | None = None

    model_config = ConfigDict(frozen=True)


def default_merge_message(name: str) -> str:
    """Commit message used when absorbing the commit named `name`."""
    return f"Absorbed {name}"


def merge_ongoing(repo: GitRepository) -> bool:
    return repo.commit_exists("MERGE_HEAD")


def ensure_not_merging(repo: GitRepository):
    """Raise CurrentlyMergingError if an absorb is in progress."""
    if merge_ongoing(repo):
        raise CurrentlyMergingError()


def merge_head_id(repo: GitRepository) -> str:
    """Id of the commit being absorbed. Assumes a merge is ongoing."""
    return repo.get_commit("MERGE_HEAD").id


def get_merge_message(repo: GitRepository) -> str:
    return repo.read_message()


def set_merge_message(repo: GitRepository, message: str):
    repo.write_message(message)


def read_merge_state(repo: GitRepository) -> MergeState | None:
    """Current MergeState, or None when no absorb is in progress."""
    head_id = repo.resolve("MERGE_HEAD")
    if head_id is None:
        return None
    return MergeState(
        merge_head_id=head_id, merge_message=get_merge_message(repo)
    )
