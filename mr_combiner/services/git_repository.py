"""
Git operations on a local working copy.

Each method runs one git command through the injected command runner and
returns its CommandResult; callers decide what a failure means.
"""

from pathlib import Path

from mr_combiner.utils.shell import CommandResult, CommandRunner, run_command


def merge_request_branch(iid: int) -> str:
    """Local branch name a merge request head is fetched into."""
    return f"mr-{iid}"


class GitRepository:
    """A git working copy addressed with ``git -C <path>``."""

    def __init__(self, path: Path, runner: CommandRunner = run_command):
        self.path = Path(path)
        self._runner = runner

    def git(self, *args: str) -> CommandResult:
        return self._runner(["git", "-C", str(self.path), *args])

    @classmethod
    def clone(
        cls,
        url: str,
        path: Path,
        branch: str,
        runner: CommandRunner = run_command
    ) -> CommandResult:
        return runner(["git", "clone", "--branch", branch, url, str(path)])

    def discard_local_changes(self) -> CommandResult:
        result = self.git("reset", "--hard")
        if not result.ok:
            return result
        return self.git("clean", "-fd")

    def fetch_all(self) -> CommandResult:
        return self.git("fetch", "origin", "--prune")

    def checkout(self, branch: str) -> CommandResult:
        return self.git("checkout", branch)

    def create_branch(self, branch: str) -> CommandResult:
        return self.git("checkout", "-b", branch)

    def branch_exists(self, branch: str) -> bool:
        return self.git("rev-parse", "--verify", "--quiet", f"refs/heads/{branch}").ok

    def pull(self, branch: str) -> CommandResult:
        return self.git("pull", "--ff-only", "origin", branch)

    def status(self) -> CommandResult:
        return self.git("status", "--porcelain", "--branch")

    def reset_to_remote(self, branch: str) -> CommandResult:
        return self.git("reset", "--hard", f"origin/{branch}")

    def fetch_merge_request(self, iid: int) -> CommandResult:
        # '+' lets a head left over from an earlier run be replaced
        refspec = f"+merge-requests/{iid}/head:{merge_request_branch(iid)}"
        return self.git("fetch", "origin", refspec)

    def merge_no_ff(self, branch: str) -> CommandResult:
        return self.git("merge", "--no-ff", "--no-edit", branch)

    def abort_merge(self) -> CommandResult:
        return self.git("merge", "--abort")

    def force_push(self, branch: str) -> CommandResult:
        return self.git("push", "origin", branch, "--force")


def has_local_changes(status_output: str) -> bool:
    """
    Interpret ``git status --porcelain --branch`` output.

    True when files are modified or the branch is ahead of or diverged from
    its upstream.
    """
    lines = [line for line in status_output.splitlines() if line.strip()]
    if not lines:
        return False
    header, changes = lines[0], lines[1:]
    if not header.startswith("## "):
        return True
    if changes:
        return True
    return "[ahead" in header
