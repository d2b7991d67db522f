"""Webhook event models."""

from typing import Any

from pydantic import BaseModel


class TriggerEvent(BaseModel):
    """The parts of a webhook delivery a run needs."""

    event: str = "issue_comment"
    action: str | None = None
    owner: str
    repo: str
    issue_number: int | None = None
    is_pull_request: bool = False
    comment_id: int | None = None
    body: str = ""
    actor: str = ""

    @property
    def is_pull_request_comment(self) -> bool:
        """True for a newly created comment on a pull request."""
        return (
            self.event == "issue_comment"
            and self.action == "created"
            and self.is_pull_request
            and self.comment_id is not None
        )

    @classmethod
    def from_payload(cls, event: str, payload: dict[str, Any]) -> "TriggerEvent":
        """Build from a GitHub webhook payload."""
        repository = payload.get("repository") or {}
        owner = (repository.get("owner") or {}).get("login", "")
        issue = payload.get("issue") or {}
        comment = payload.get("comment") or {}
        sender = payload.get("sender") or {}

        return cls(
            event=event,
            action=payload.get("action"),
            owner=owner,
            repo=repository.get("name", ""),
            issue_number=issue.get("number"),
            is_pull_request="pull_request" in issue,
            comment_id=comment.get("id"),
            body=(comment.get("body") or "").strip(),
            actor=(comment.get("user") or sender).get("login", ""),
        )
