"""Pull request event payloads.

Only the fields the pipeline needs are kept. Everything is frozen: a
ReviewContext is built once from the inbound event and never mutated.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from civet_core.workspace import is_revision

_LIFECYCLE = {
    "opened": "open",
    "synchronize": "resynchronized",
    "closed": "closed",
    "reopened": "reopened",
}


class EventError(ValueError):
    """Raised when a payload is not a usable pull request event."""


@dataclass(frozen=True)
class Owner:
    login: str
    type: str = "User"


@dataclass(frozen=True)
class Repository:
    id: int
    name: str
    clone_url: str
    owner: Owner
    default_branch: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.owner.login}/{self.name}"


@dataclass(frozen=True)
class Branch:
    label: str
    ref: str
    sha: str
    repo: Repository


@dataclass(frozen=True)
class PullRequest:
    url: str
    number: int
    state: str
    title: str
    body: str
    base: Branch
    head: Branch


@dataclass(frozen=True)
class ReviewContext:
    action: str
    number: int
    pull_request: PullRequest

    @property
    def lifecycle(self) -> str | None:
        """Lifecycle state for the action, or None for actions we don't act on."""
        return _LIFECYCLE.get(self.action)

    @property
    def repo_name(self) -> str:
        return self.pull_request.base.repo.full_name

    @classmethod
    def from_event(cls, payload: dict[str, Any]) -> ReviewContext:
        try:
            pr = payload["pull_request"]
            pull = PullRequest(
                url=pr["url"],
                number=int(pr.get("number", payload["number"])),
                state=pr["state"],
                title=pr.get("title") or "",
                body=pr.get("body") or "",
                base=_branch(pr["base"]),
                head=_branch(pr["head"]),
            )
            return cls(action=payload["action"], number=int(payload["number"]), pull_request=pull)
        except (KeyError, TypeError, ValueError) as e:
            raise EventError(f"Not a pull request event: {e!r}") from e

    @classmethod
    def from_json(cls, text: str) -> ReviewContext:
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise EventError(f"Event is not valid JSON: {e}") from e
        if not isinstance(payload, dict):
            raise EventError("Event payload must be a JSON object.")
        return cls.from_event(payload)


def _branch(data: dict[str, Any]) -> Branch:
    if not is_revision(data["sha"]):
        raise ValueError(f"bad sha {data['sha']!r}")
    repo = data["repo"]
    owner = repo["owner"]
    return Branch(
        label=data.get("label", ""),
        ref=data["ref"],
        sha=data["sha"],
        repo=Repository(
            id=int(repo.get("id", 0)),
            name=repo["name"],
            clone_url=repo["clone_url"],
            owner=Owner(login=owner["login"], type=owner.get("type", "User")),
            default_branch=repo.get("default_branch"),
        ),
    )
