"""Combination run data models."""

from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict


class CombineTrigger(BaseModel):
    """A classified webhook event that asks for a combination run."""

    model_config = ConfigDict(frozen=True)

    project_id: int
    request_id: int


class CombineState(str, Enum):
    """States of a combination run, in execution order."""

    FETCHING_REPO_INFO = "fetching_repo_info"
    PREPARING_WORKSPACE = "preparing_workspace"
    CHECKING_BRANCH_CONFLICT = "checking_branch_conflict"
    FETCHING_REQUESTS = "fetching_requests"
    MERGING = "merging"
    PUSHING = "pushing"
    REPORTING = "reporting"
    DONE = "done"


class CombineOutcome(BaseModel):
    """Summary of a finished combination run."""

    project_id: int
    request_id: int
    target_branch: str
    last_state: CombineState
    has_error: bool
    merged: List[int] = []
    failed: List[int] = []
    report_sent: bool = False
