"""Tests for stashing and restoring work in progress."""

from switchyard.git.types import Commit
from switchyard.ops.branches import (
    base_branch_name,
    is_wip_branch,
    wip_branch_name,
)
from switchyard.ops.merge_state import (
    MergeState,
    read_merge_state,
    set_merge_message,
)
from switchyard.ops.merging import absorb
from switchyard.ops.wip import WIP_MESSAGE, WipSnapshot, restore_wip, save_wip

COMMIT_ID = "1" * 40
PARENT_ID = "2" * 40
MERGE_ID = "3" * 40
TREE_ID = "4" * 40


def test_wip_branch_names():
    assert wip_branch_name("main") == "main#wip"
    assert is_wip_branch("main#wip")
    assert not is_wip_branch("main")
    assert base_branch_name("main#wip") == "main"
    assert base_branch_name("main") == "main"


def test_save_wip_clean_repository_is_noop(workspace):
    repo = workspace.repo
    head = repo.resolve("HEAD")

    assert save_wip(repo) is None

    assert repo.current_branch() == workspace.main
    assert repo.resolve("HEAD") == head
    assert not repo.branch_exists(wip_branch_name(workspace.main))


def test_save_wip_commits_changes_to_wip_branch(workspace):
    repo = workspace.repo
    head = repo.resolve("HEAD")
    workspace.write("draft.txt", "draft\n")

    wip = save_wip(repo)

    wip_name = wip_branch_name(workspace.main)
    assert wip.message == WIP_MESSAGE
    assert wip.parents == [head]
    assert repo.current_branch() == wip_name
    assert repo.resolve(wip_name) == wip.id
    # The base branch did not move
    assert repo.resolve(workspace.main) == head


def test_save_then_restore_round_trip(workspace):
    repo = workspace.repo
    workspace.write("tracked.txt", "v1\n")
    workspace.commit("Add tracked.txt")
    head = repo.resolve("HEAD")

    workspace.write("tracked.txt", "v2\n")
    workspace.write("untracked.txt", "new\n")
    before = workspace.files()

    save_wip(repo)
    assert restore_wip(repo) is True

    assert workspace.files() == before
    assert repo.current_branch() == workspace.main
    assert repo.resolve("HEAD") == head
    assert not repo.branch_exists(wip_branch_name(workspace.main))


def test_restore_wip_without_wip_branch(workspace):
    workspace.write("a.txt", "a\n")

    assert restore_wip(workspace.repo) is False
    assert workspace.read("a.txt") == "a\n"


def test_save_wip_replaces_stale_wip_branch(workspace):
    repo = workspace.repo
    wip_name = wip_branch_name(workspace.main)
    repo.create_branch(wip_name)
    stale = repo.resolve(wip_name)
    workspace.write("a.txt", "a\n")

    wip = save_wip(repo)

    assert repo.resolve(wip_name) == wip.id
    assert wip.id != stale
    assert wip.parents == [stale]


def test_save_wip_records_paused_absorb(diverged):
    repo = diverged.repo
    head = repo.resolve("HEAD")
    feature = repo.resolve("feature")
    absorb(repo, "feature")

    wip = save_wip(repo)

    assert wip.parents == [head, feature]
    assert wip.message == "WIP\nAbsorbed feature"
    assert read_merge_state(repo) is None


def test_paused_absorb_round_trip(diverged):
    repo = diverged.repo
    absorb(repo, "feature")
    state = read_merge_state(repo)
    conflicts = repo.conflicts()
    files = diverged.files()

    save_wip(repo)
    assert restore_wip(repo) is True

    assert read_merge_state(repo) == state
    assert repo.conflicts() == conflicts
    assert diverged.files() == files
    assert repo.current_branch() == diverged.main


def test_paused_absorb_keeps_partial_resolution(diverged):
    repo = diverged.repo
    absorb(repo, "feature")
    diverged.write("shared.txt", "half done\n")
    diverged.write("notes.txt", "remember to test\n")

    save_wip(repo)
    restore_wip(repo)

    assert diverged.read("shared.txt") == "half done\n"
    assert diverged.read("notes.txt") == "remember to test\n"
    assert [c.path for c in repo.conflicts()] == ["shared.txt"]


def test_snapshot_of_plain_wip_commit():
    wip = Commit(
        id=COMMIT_ID, tree=TREE_ID, parents=[PARENT_ID], message="WIP"
    )

    snapshot = WipSnapshot.from_commit(wip)

    assert snapshot.commit == wip
    assert snapshot.paused_merge is None


def test_snapshot_of_paused_merge():
    wip = Commit(
        id=COMMIT_ID,
        tree=TREE_ID,
        parents=[PARENT_ID, MERGE_ID],
        message="WIP\nAbsorbed feature\n\nSecond paragraph",
    )

    snapshot = WipSnapshot.from_commit(wip)

    assert snapshot.paused_merge == MergeState(
        merge_head_id=MERGE_ID,
        merge_message="Absorbed feature\n\nSecond paragraph",
    )


def test_snapshot_of_hand_edited_message():
    wip = Commit(
        id=COMMIT_ID,
        tree=TREE_ID,
        parents=[PARENT_ID, MERGE_ID],
        message="WIP",
    )

    snapshot = WipSnapshot.from_commit(wip)

    assert snapshot.paused_merge.merge_head_id == MERGE_ID
    assert snapshot.paused_merge.merge_message is None


def test_snapshot_of_empty_merge_message():
    wip = Commit(
        id=COMMIT_ID,
        tree=TREE_ID,
        parents=[PARENT_ID, MERGE_ID],
        message="WIP\n",
    )

    snapshot = WipSnapshot.from_commit(wip)

    assert snapshot.paused_merge == MergeState(
        merge_head_id=MERGE_ID, merge_message=""
    )


def test_paused_absorb_keeps_empty_message(diverged):
    repo = diverged.repo
    absorb(repo, "feature")
    set_merge_message(repo, "")

    wip = save_wip(repo)
    assert wip.message == "WIP\n"

    restore_wip(repo)
    assert read_merge_state(repo).merge_message == ""


def test_paused_absorb_with_hand_edited_message(diverged):
    repo = diverged.repo
    absorb(repo, "feature")
    wip = save_wip(repo)
    # The WIP commit, rewritten with its message cut to one line
    wip_ref = f"refs/heads/{wip_branch_name(diverged.main)}"
    repo.create_commit("WIP", wip.tree, wip.parents, update_ref=wip_ref)

    restore_wip(repo)

    feature = repo.resolve("feature")
    assert read_merge_state(repo) == MergeState(
        merge_head_id=feature, merge_message=f"Absorbed {feature}"
    )
