from __future__ import annotations

"""
Election error kinds.

Every failure the election core can report is one of the classes below.
They are all caller-correctable: the process keeps running and the election
is left exactly as it was before the failing call.

Each error carries:
- `kind`: stable snake_case identifier the dispatcher keys messages on
- `context`: structured values needed to render a message
  (e.g. InsufficientCredits carries `available` and `required`)
"""

from typing import Any, Dict, Optional, Sequence


class ElectionError(Exception):
    kind: str = "election_error"

    def __init__(self, message: str = "", **context: Any) -> None:
        super().__init__(message or self.kind)
        self.context: Dict[str, Any] = dict(context)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"ok": False, "error": self.kind}
        out.update(self.context)
        return out


class AlreadyActive(ElectionError):
    kind = "already_active"

    def __init__(self, phase: str) -> None:
        super().__init__(f"an election is already running (phase={phase})", phase=phase)


class WrongPhase(ElectionError):
    kind = "wrong_phase"

    def __init__(self, phase: str, allowed: Sequence[str]) -> None:
        super().__init__(
            f"not allowed during {phase} (allowed: {', '.join(allowed)})",
            phase=phase,
            allowed=list(allowed),
        )


class NoActiveElection(ElectionError):
    kind = "no_active_election"

    def __init__(self) -> None:
        super().__init__("no election is running")


class EmptyText(ElectionError):
    kind = "empty_text"

    def __init__(self) -> None:
        super().__init__("proposal text is empty")


class DuplicateProposal(ElectionError):
    kind = "duplicate_proposal"

    def __init__(self, text: str, existing_index: int) -> None:
        super().__init__(
            f"proposal {text!r} already exists as #{existing_index}",
            text=text,
            existing_index=existing_index,
        )


class Frozen(ElectionError):
    kind = "frozen"

    def __init__(self) -> None:
        super().__init__("proposals are closed for this election")


class UnknownProposal(ElectionError):
    kind = "unknown_proposal"

    def __init__(self, proposal_index: Any, proposal_count: int) -> None:
        super().__init__(
            f"no proposal #{proposal_index} ({proposal_count} proposals)",
            proposal_index=proposal_index,
            proposal_count=proposal_count,
        )


class InvalidVoteCount(ElectionError):
    kind = "invalid_vote_count"

    def __init__(self, n_votes: Any, limit: int) -> None:
        super().__init__(
            f"vote count must be an integer between 0 and {limit}, got {n_votes!r}",
            n_votes=n_votes,
            limit=limit,
        )


class InsufficientCredits(ElectionError):
    kind = "insufficient_credits"

    def __init__(self, available: int, required: int) -> None:
        super().__init__(
            f"casting costs {required} credits but only {available} can be spent",
            available=available,
            required=required,
        )


class ElectionBusy(ElectionError):
    """Lock acquisition timed out; nothing was applied."""

    kind = "election_busy"

    def __init__(self, timeout: Optional[float]) -> None:
        super().__init__(f"election is busy (waited {timeout}s)", timeout=timeout)


__all__ = [
    "ElectionError",
    "AlreadyActive",
    "WrongPhase",
    "NoActiveElection",
    "EmptyText",
    "DuplicateProposal",
    "Frozen",
    "UnknownProposal",
    "InvalidVoteCount",
    "InsufficientCredits",
    "ElectionBusy",
]
