"""Observers notified after ballots are cast, changed or withdrawn."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Protocol

from app.config import Settings
from app.utils.time import now_utc

logger = logging.getLogger(__name__)

ACTION_VERBS = {
    "cast": "voted for",
    "change": "changed their vote to",
    "withdraw": "withdrew their vote from",
}


@dataclass(frozen=True)
class VoteEvent:
    """What happened to a ballot, with display names resolved."""

    action: str
    voter_id: str
    voter_name: str
    candidate_id: str
    candidate_name: str
    election_id: str
    election_title: str
    occurred_at: datetime = field(default_factory=now_utc)

    def describe(self) -> str:
        verb = ACTION_VERBS.get(self.action, self.action)
        voter = self.voter_name or self.voter_id
        return (
            f"Voter {voter} {verb} Candidate {self.candidate_name} "
            f"in election {self.election_title}"
        )


class VoteObserver(Protocol):
    def update(self, event: VoteEvent) -> None: ...


class VoteLogObserver:
    """Append one line per ballot event to an audit log file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def update(self, event: VoteEvent) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(f"[{event.occurred_at.isoformat()}] {event.describe()}\n")


class AdminConsoleObserver:
    """Report ballot events on the application log."""

    def update(self, event: VoteEvent) -> None:
        logger.info("%s", event.describe())


def default_observers(settings: Settings) -> list[VoteObserver]:
    """Observers registered on every vote lifecycle manager."""
    observers: list[VoteObserver] = [AdminConsoleObserver()]
    if settings.vote_log_path:
        observers.append(VoteLogObserver(settings.vote_log_path))
    return observers
