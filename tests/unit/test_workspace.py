"""
Unit tests for the repository workspace.
"""

import pytest

from mr_combiner.models.gitlab import RepoInfo
from mr_combiner.services.workspace import RepositoryWorkspace, WorkspaceError

REPO_INFO = RepoInfo(default_branch="main", clone_url="git@gitlab.example.com:group/project.git")


@pytest.fixture
def workspace(tmp_path, fake_runner):
    """Workspace rooted in a temporary directory."""
    return RepositoryWorkspace(tmp_path / "workspaces", runner=fake_runner)


@pytest.fixture
def existing_copy(workspace):
    """Simulate a working copy left by an earlier run."""
    path = workspace.path_for(1)
    (path / ".git").mkdir(parents=True)
    return path


def test_path_is_keyed_by_project(workspace, tmp_path):
    """Test deterministic per-project paths."""
    assert workspace.path_for(42) == tmp_path / "workspaces" / "project-42"


def test_missing_copy_is_cloned_at_default_branch(workspace, fake_runner):
    """Test that a fresh workspace clones and creates the target branch."""
    fake_runner.fail("rev-parse")

    repo = workspace.prepare(1, REPO_INFO, "develop")

    assert repo.path == workspace.path_for(1)
    assert fake_runner.calls[0] == [
        "git", "clone", "--branch", "main", REPO_INFO.clone_url, str(workspace.path_for(1))
    ]
    assert fake_runner.git_calls[-1] == ("checkout", "-b", "develop")
    assert workspace.root.is_dir()


def test_existing_copy_is_refreshed(workspace, existing_copy, fake_runner):
    """Test the reuse path: clean, fetch, checkout, pull, status."""
    fake_runner.respond("status", output="## main...origin/main\n")

    workspace.prepare(1, REPO_INFO, "develop")

    assert fake_runner.git_calls == [
        ("reset", "--hard"),
        ("clean", "-fd"),
        ("fetch", "origin", "--prune"),
        ("checkout", "main"),
        ("pull", "--ff-only", "origin", "main"),
        ("status", "--porcelain", "--branch"),
        ("rev-parse", "--verify", "--quiet", "refs/heads/develop"),
        ("checkout", "develop"),
    ]
    assert not fake_runner.ran("clone")


def test_diverged_copy_is_reset_to_remote(workspace, existing_copy, fake_runner):
    """Test that residual local state after pull is replaced by the remote tip."""
    fake_runner.respond("status", output="## main...origin/main [ahead 2]\n")

    workspace.prepare(1, REPO_INFO, "develop")

    assert fake_runner.ran("reset", "--hard", "origin/main")


def test_existing_target_branch_is_resumed(workspace, fake_runner):
    """Test that an existing local target branch is checked out, not recreated."""
    workspace.prepare(1, REPO_INFO, "develop")

    assert fake_runner.git_calls[-1] == ("checkout", "develop")
    assert not fake_runner.ran("checkout", "-b")


def test_clone_failure_carries_output(workspace, fake_runner):
    """Test that the tool output is surfaced in the error."""
    fake_runner.fail("clone", output="fatal: repository not found")

    with pytest.raises(WorkspaceError) as exc_info:
        workspace.prepare(1, REPO_INFO, "develop")

    assert "Error cloning repo" in str(exc_info.value)
    assert "fatal: repository not found" in str(exc_info.value)
    assert not fake_runner.ran("checkout")


def test_refresh_failure_aborts(workspace, existing_copy, fake_runner):
    """Test that a failing step stops preparation."""
    fake_runner.fail("fetch", output="fatal: could not read from remote")

    with pytest.raises(WorkspaceError) as exc_info:
        workspace.prepare(1, REPO_INFO, "develop")

    assert "could not read from remote" in str(exc_info.value)
    assert not fake_runner.ran("pull")


def test_branch_creation_failure(workspace, fake_runner):
    """Test that failing to create the target branch is reported."""
    fake_runner.fail("rev-parse")
    fake_runner.fail("checkout", "-b", output="fatal: invalid branch name")

    with pytest.raises(WorkspaceError) as exc_info:
        workspace.prepare(1, REPO_INFO, "bad..name")

    assert "creating target branch from default branch" in str(exc_info.value)


def test_failed_fast_forward_resets_to_remote(workspace, existing_copy, fake_runner):
    """Test that a rewritten upstream default branch does not abort preparation."""
    fake_runner.fail("pull", output="fatal: Not possible to fast-forward, aborting.", returncode=128)

    repo = workspace.prepare(1, REPO_INFO, "develop")

    assert repo.path == existing_copy
    calls = fake_runner.git_calls
    assert calls.index(("pull", "--ff-only", "origin", "main")) < calls.index(("reset", "--hard", "origin/main"))
    assert not fake_runner.ran("status")
    assert calls[-1] == ("checkout", "develop")


def test_reset_failure_after_failed_fast_forward_aborts(workspace, existing_copy, fake_runner):
    """Test that the fallback reset is still checked."""
    fake_runner.fail("pull", returncode=128)
    fake_runner.fail("reset", "--hard", "origin/main", output="fatal: ambiguous argument 'origin/main'")

    with pytest.raises(WorkspaceError) as exc_info:
        workspace.prepare(1, REPO_INFO, "develop")

    assert "Error resetting to origin/main" in str(exc_info.value)
    assert "ambiguous argument" in str(exc_info.value)
