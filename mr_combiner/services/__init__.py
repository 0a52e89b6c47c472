"""Business logic services package."""

from mr_combiner.services.activity_guard import ActivityGuard
from mr_combiner.services.combiner import (
    CombinationEngine,
    CombineAbort,
    get_combination_engine
)
from mr_combiner.services.event_classifier import classify_event
from mr_combiner.services.git_repository import GitRepository
from mr_combiner.services.gitlab_client import (
    GitLabAPIError,
    GitLabClient,
    get_gitlab_client
)
from mr_combiner.services.notifier import Notifier
from mr_combiner.services.report_buffer import ReportBuffer
from mr_combiner.services.workspace import (
    RepositoryWorkspace,
    WorkspaceError,
    get_workspace
)

__all__ = [
    'ActivityGuard',
    'CombinationEngine',
    'CombineAbort',
    'get_combination_engine',
    'classify_event',
    'GitRepository',
    'GitLabAPIError',
    'GitLabClient',
    'get_gitlab_client',
    'Notifier',
    'ReportBuffer',
    'RepositoryWorkspace',
    'WorkspaceError',
    'get_workspace'
]
