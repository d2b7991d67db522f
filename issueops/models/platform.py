"""Read models returned by the hosting platform."""

from typing import Literal

from pydantic import BaseModel

CheckState = Literal["success", "failure", "pending"]


class PullRequestInfo(BaseModel):
    """The parts of a pull request prechecks look at."""

    number: int
    head_ref: str
    head_sha: str
    base_ref: str
    is_fork: bool = False
    mergeable_state: str | None = None

    @property
    def is_behind(self) -> bool:
        return self.mergeable_state == "behind"


class Review(BaseModel):
    """A submitted pull request review."""

    user: str
    state: str


class CheckResult(BaseModel):
    """A commit status or check run, normalized."""

    name: str
    state: CheckState
