"""
Combination Engine.

Runs one combination for a project as an explicit sequence of states:

    FETCHING_REPO_INFO -> PREPARING_WORKSPACE -> CHECKING_BRANCH_CONFLICT
    -> FETCHING_REQUESTS -> MERGING -> PUSHING -> REPORTING -> DONE

Every step writes its progress to the run's report buffer. A step aborts the
run by raising CombineAbort, which skips straight to REPORTING with the error
flag set. A failed merge of one merge request only marks that item as failed.
"""

from typing import Callable, List, Optional, Tuple

from mr_combiner.models.combine import CombineOutcome, CombineState, CombineTrigger
from mr_combiner.models.gitlab import MergeRequest, RepoInfo
from mr_combiner.services.git_repository import GitRepository, merge_request_branch
from mr_combiner.services.gitlab_client import GitLabAPIError, GitLabClient
from mr_combiner.services.notifier import Notifier
from mr_combiner.services.report_buffer import ReportBuffer
from mr_combiner.services.workspace import RepositoryWorkspace, WorkspaceError
from mr_combiner.utils.logging import get_logger, log_error_with_context, log_phase_transition
from mr_combiner.utils.shell import CommandResult

logger = get_logger(__name__)

SAME_BRANCH_MESSAGE = "Target branch is the same as the default branch"


class CombineAbort(Exception):
    """Stops a run; the message is the report line describing why."""
    pass


def _failure_detail(result: CommandResult) -> str:
    return f"exit status {result.returncode}, output: {result.output.strip()}"


class CombineRun:
    """Mutable state of a single combination run."""

    def __init__(self, trigger: CombineTrigger, target_branch: str, buffer: ReportBuffer):
        self.trigger = trigger
        self.target_branch = target_branch
        self.buffer = buffer
        self.state = CombineState.FETCHING_REPO_INFO
        self.has_error = False
        self.repo_info: Optional[RepoInfo] = None
        self.repo: Optional[GitRepository] = None
        self.merge_requests: List[MergeRequest] = []
        self.merged: List[int] = []
        self.failed: List[int] = []
        self.report_sent = False

    def report(self, message: str) -> None:
        self.buffer.append(self.trigger.request_id, message)

    def outcome(self) -> CombineOutcome:
        return CombineOutcome(
            project_id=self.trigger.project_id,
            request_id=self.trigger.request_id,
            target_branch=self.target_branch,
            last_state=self.state,
            has_error=self.has_error,
            merged=list(self.merged),
            failed=list(self.failed),
            report_sent=self.report_sent,
        )


class CombinationEngine:
    """Drives a combination run against GitLab and a local working copy."""

    def __init__(
        self,
        gitlab_client: GitLabClient,
        workspace: RepositoryWorkspace,
        notifier: Notifier,
        trigger_tag: str
    ):
        self.gitlab = gitlab_client
        self.workspace = workspace
        self.notifier = notifier
        self.trigger_tag = trigger_tag

    @property
    def steps(self) -> List[Tuple[CombineState, Callable[[CombineRun], None]]]:
        return [
            (CombineState.FETCHING_REPO_INFO, self.fetch_repo_info),
            (CombineState.PREPARING_WORKSPACE, self.prepare_workspace),
            (CombineState.CHECKING_BRANCH_CONFLICT, self.check_branch_conflict),
            (CombineState.FETCHING_REQUESTS, self.fetch_merge_requests),
            (CombineState.MERGING, self.merge_all),
            (CombineState.PUSHING, self.push),
        ]

    def run(self, trigger: CombineTrigger, target_branch: str, buffer: ReportBuffer) -> CombineOutcome:
        """
        Execute a full combination and post its report.

        Never raises: failures end up in the report and the returned outcome.

        Args:
            trigger: Project and triggering merge request
            target_branch: Branch to merge into
            buffer: Report buffer owned by this run

        Returns:
            CombineOutcome describing where the run ended
        """
        run = CombineRun(trigger, target_branch, buffer)
        log = logger.with_context(project_id=trigger.project_id, target_branch=target_branch)
        log.info(f"Processing MRs for project {trigger.project_id}")

        try:
            for state, step in self.steps:
                run.state = state
                log_phase_transition(log, trigger.project_id, trigger.request_id, state.value, "started")
                step(run)
        except CombineAbort as e:
            log_phase_transition(log, trigger.project_id, trigger.request_id, run.state.value, "aborted")
            run.report(str(e))
            run.has_error = True
        except Exception as e:
            log_error_with_context(
                log, f"Unexpected error in state {run.state.value}", e,
                phase=run.state.value,
            )
            run.report(f"Unexpected error: {e}")
            run.has_error = True

        run.state = CombineState.REPORTING
        run.report_sent = self.notifier.send_report(
            trigger.project_id,
            trigger.request_id,
            target_branch,
            run.has_error,
            buffer,
        )
        run.state = CombineState.DONE

        outcome = run.outcome()
        log.info(
            f"Combination finished for project {trigger.project_id}",
            extra={
                "has_error": outcome.has_error,
                "merged": outcome.merged,
                "failed": outcome.failed,
                "report_sent": outcome.report_sent,
            },
        )
        return outcome

    def fetch_repo_info(self, run: CombineRun) -> None:
        try:
            run.repo_info = self.gitlab.get_repo_info(run.trigger.project_id)
        except GitLabAPIError as e:
            raise CombineAbort(f"Error fetching repo info: {e}") from e
        run.report(f"Repo Info: Branch={run.repo_info.default_branch}, URL={run.repo_info.clone_url}")

    def prepare_workspace(self, run: CombineRun) -> None:
        try:
            run.repo = self.workspace.prepare(run.trigger.project_id, run.repo_info, run.target_branch)
        except WorkspaceError as e:
            raise CombineAbort(str(e)) from e

    def check_branch_conflict(self, run: CombineRun) -> None:
        if run.target_branch == run.repo_info.default_branch:
            raise CombineAbort(SAME_BRANCH_MESSAGE)

    def fetch_merge_requests(self, run: CombineRun) -> None:
        try:
            run.merge_requests = self.gitlab.list_merge_requests(run.trigger.project_id, self.trigger_tag)
        except GitLabAPIError as e:
            raise CombineAbort(f"Error fetching MRs: {e}") from e
        run.report(f"Found {len(run.merge_requests)} MRs")

    def merge_all(self, run: CombineRun) -> None:
        for merge_request in run.merge_requests:
            if self.merge_one(run, merge_request):
                run.merged.append(merge_request.iid)
            else:
                run.failed.append(merge_request.iid)
                run.has_error = True

    def merge_one(self, run: CombineRun, merge_request: MergeRequest) -> bool:
        """
        Merge a single merge request into the target branch.

        Returns:
            True on success; on failure the reason is already reported
        """
        repo = run.repo
        iid = merge_request.iid

        result = repo.fetch_merge_request(iid)
        if not result.ok:
            run.report(f"Error fetching MR #{iid}: {_failure_detail(result)}")
            return False

        result = repo.checkout(run.target_branch)
        if not result.ok:
            run.report(f"Error checking out branch: {_failure_detail(result)}")
            return False

        result = repo.merge_no_ff(merge_request_branch(iid))
        if not result.ok:
            run.report(f"Error merging MR #{iid}: {_failure_detail(result)}")
            # Leave the working copy clean for the next merge request
            abort = repo.abort_merge()
            if not abort.ok:
                logger.warning(f"git merge --abort failed after MR #{iid}: {abort.output.strip()}")
            return False

        run.report(f"Merged MR #{iid}: {merge_request.title}")
        return True

    def push(self, run: CombineRun) -> None:
        result = run.repo.force_push(run.target_branch)
        if not result.ok:
            raise CombineAbort(f"Error pushing to remote: {_failure_detail(result)}")
        run.report(f"Merged MRs into {run.target_branch}")


def get_combination_engine() -> CombinationEngine:
    """Engine wired to the configured GitLab instance and workspace root."""
    from mr_combiner.config import settings
    from mr_combiner.services.gitlab_client import get_gitlab_client
    from mr_combiner.services.workspace import get_workspace

    gitlab_client = get_gitlab_client()
    return CombinationEngine(
        gitlab_client=gitlab_client,
        workspace=get_workspace(),
        notifier=Notifier(gitlab_client),
        trigger_tag=settings.trigger_tag,
    )
