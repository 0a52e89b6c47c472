"""
Notifier component.

Posts the aggregated report of a combination run as a single note on the
merge request that triggered it.
"""

from mr_combiner.services.gitlab_client import GitLabAPIError, GitLabClient
from mr_combiner.services.report_buffer import ReportBuffer
from mr_combiner.utils.logging import get_logger

logger = get_logger(__name__)


def status_message(has_error: bool, target_branch: str) -> str:
    """Line that precedes the fenced report."""
    if has_error:
        return f"An error occurred during rebase into {target_branch}"
    return f"Merge Requests were merged into {target_branch}"


def format_comment(before_message: str, body: str) -> str:
    return f"{before_message}\n```\n{body}\n```"


class Notifier:
    """Sends combination reports back to GitLab."""

    def __init__(self, gitlab_client: GitLabClient):
        self.gitlab = gitlab_client

    def send_report(
        self,
        project_id: int,
        request_id: int,
        target_branch: str,
        has_error: bool,
        buffer: ReportBuffer
    ) -> bool:
        """
        Drain the buffered report and post it as one comment.

        Posting is attempted once; failures are logged, never raised.

        Args:
            project_id: GitLab project ID
            request_id: IID of the merge request to comment on
            target_branch: Branch named in the status line
            has_error: Whether any step of the run failed
            buffer: Report buffer of the run

        Returns:
            True if a comment was posted
        """
        log = logger.with_context(project_id=project_id, request_id=request_id)

        body = buffer.drain_and_format(request_id)
        if body is None:
            log.warning(f"No comments found for MR #{request_id}")
            return False

        comment = format_comment(status_message(has_error, target_branch), body)
        try:
            self.gitlab.create_note(project_id, request_id, comment)
        except GitLabAPIError as e:
            log.error(f"Failed to add comment to MR #{request_id}: {e}")
            return False

        log.info(f"Comment added to MR #{request_id}")
        return True
