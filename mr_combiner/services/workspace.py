"""
Repository Workspace component.

Maintains one reusable working copy per GitLab project under the configured
workspace root and leaves it checked out on the target branch.
"""

from pathlib import Path
from typing import Optional, Union

from mr_combiner.models.gitlab import RepoInfo
from mr_combiner.services.git_repository import GitRepository, has_local_changes
from mr_combiner.utils.logging import get_logger
from mr_combiner.utils.shell import CommandResult, CommandRunner, run_command

logger = get_logger(__name__)


class WorkspaceError(Exception):
    """Preparing the working copy failed."""
    pass


def _check(result: CommandResult, description: str) -> None:
    if not result.ok:
        raise WorkspaceError(f"Error {description}: exit status {result.returncode}, output: {result.output.strip()}")


class RepositoryWorkspace:
    """
    Working copies keyed by project ID.

    A missing copy is cloned at the default branch. An existing copy is
    cleaned, fetched and fast-forwarded. If the fast-forward fails, or local
    state remains afterwards, it is hard-reset to the remote default branch.
    """

    def __init__(self, root: Union[str, Path], runner: CommandRunner = run_command):
        self.root = Path(root)
        self._runner = runner

    def path_for(self, project_id: int) -> Path:
        return self.root / f"project-{project_id}"

    def prepare(self, project_id: int, repo_info: RepoInfo, target_branch: str) -> GitRepository:
        """
        Make the project's working copy ready to receive merges.

        Args:
            project_id: GitLab project ID
            repo_info: Default branch and clone URL of the project
            target_branch: Branch the merge requests will be merged into

        Returns:
            GitRepository checked out on the target branch

        Raises:
            WorkspaceError: If any git step fails
        """
        path = self.path_for(project_id)
        log = logger.with_context(project_id=project_id, target_branch=target_branch)
        repo = GitRepository(path, runner=self._runner)

        if (path / ".git").exists():
            log.info(f"Reusing working copy at {path}")
            self._refresh(repo, repo_info.default_branch)
        else:
            log.info(f"Cloning {repo_info.clone_url} into {path}")
            path.parent.mkdir(parents=True, exist_ok=True)
            _check(
                GitRepository.clone(repo_info.clone_url, path, repo_info.default_branch, runner=self._runner),
                "cloning repo",
            )

        self._checkout_target(repo, target_branch, log)
        return repo

    def _refresh(self, repo: GitRepository, default_branch: str) -> None:
        _check(repo.discard_local_changes(), "discarding local changes")
        _check(repo.fetch_all(), "fetching remote refs")
        _check(repo.checkout(default_branch), f"checking out {default_branch}")
        pull = repo.pull(default_branch)
        if not pull.ok:
            # Rewritten or diverged upstream; remote refs are already fetched
            logger.warning(f"Fast-forward of {default_branch} failed, resetting: {pull.output.strip()}")
            _check(repo.reset_to_remote(default_branch), f"resetting to origin/{default_branch}")
            return

        status = repo.status()
        _check(status, "reading working copy status")
        if has_local_changes(status.output):
            logger.warning(f"Working copy diverged from origin/{default_branch}, resetting")
            _check(repo.reset_to_remote(default_branch), f"resetting to origin/{default_branch}")

    def _checkout_target(self, repo: GitRepository, target_branch: str, log) -> None:
        if repo.branch_exists(target_branch):
            log.info(f"Resuming existing branch {target_branch}")
            _check(repo.checkout(target_branch), f"checking out {target_branch}")
        else:
            log.info(f"Creating branch {target_branch} from default branch")
            _check(repo.create_branch(target_branch), "creating target branch from default branch")


def get_workspace(root: Optional[Union[str, Path]] = None) -> RepositoryWorkspace:
    """Workspace rooted at the configured directory unless one is given."""
    if root is None:
        from mr_combiner.config import settings
        root = settings.workspace_root
    return RepositoryWorkspace(root)
