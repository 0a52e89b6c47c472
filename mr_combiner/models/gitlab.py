"""GitLab REST resource models."""

from pydantic import BaseModel, ConfigDict, Field


class RepoInfo(BaseModel):
    """Project metadata needed to build a working copy."""

    model_config = ConfigDict(populate_by_name=True)

    default_branch: str
    clone_url: str = Field(alias="ssh_url_to_repo")


class MergeRequest(BaseModel):
    """An open merge request eligible for combination."""

    model_config = ConfigDict(frozen=True)

    iid: int
    title: str = ""
