"""
Typed command surface of the election core.

The dispatcher decodes each user interaction into exactly one of the
command variants below and hands it to ElectionStateMachine.execute().
The machine answers with a CommandResult carrying either an outcome
variant or an ElectionError.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

from .errors import ElectionError
from .proposals import Proposal
from .tally import TallyEntry, winner

# ============================================================
# Commands
# ============================================================


@dataclass(frozen=True)
class Start:
    actor: str
    prompt: str


@dataclass(frozen=True)
class Stop:
    actor: str


@dataclass(frozen=True)
class Propose:
    actor: str
    text: str


@dataclass(frozen=True)
class Vote:
    actor: str
    proposal_index: int
    n_votes: int


@dataclass(frozen=True)
class Points:
    actor: str


@dataclass(frozen=True)
class Tally:
    actor: str


Command = Union[Start, Stop, Propose, Vote, Points, Tally]


# ============================================================
# Outcomes
# ============================================================


@dataclass(frozen=True)
class Started:
    prompt: str

    def to_dict(self) -> Dict[str, Any]:
        return {"outcome": "started", "prompt": self.prompt}


@dataclass(frozen=True)
class MovedToVoting:
    proposals: Tuple[Proposal, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outcome": "moved_to_voting",
            "proposals": [p.to_dict() for p in self.proposals],
        }


@dataclass(frozen=True)
class ElectionConcluded:
    tally: Tuple[TallyEntry, ...]

    @property
    def winner(self) -> Optional[TallyEntry]:
        return winner(self.tally)

    def to_dict(self) -> Dict[str, Any]:
        top = self.winner
        return {
            "outcome": "election_concluded",
            "tally": [e.to_dict() for e in self.tally],
            "winner": top.to_dict() if top else None,
        }


@dataclass(frozen=True)
class Proposed:
    index: int

    def to_dict(self) -> Dict[str, Any]:
        return {"outcome": "proposed", "index": self.index}


@dataclass(frozen=True)
class VoteCast:
    remaining_credits: int

    def to_dict(self) -> Dict[str, Any]:
        return {"outcome": "vote_cast", "remaining_credits": self.remaining_credits}


@dataclass(frozen=True)
class PointsBalance:
    remaining_credits: int

    def to_dict(self) -> Dict[str, Any]:
        return {"outcome": "points", "remaining_credits": self.remaining_credits}


@dataclass(frozen=True)
class TallySnapshot:
    entries: Tuple[TallyEntry, ...]
    final: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outcome": "tally",
            "final": self.final,
            "tally": [e.to_dict() for e in self.entries],
        }


Outcome = Union[
    Started,
    MovedToVoting,
    ElectionConcluded,
    Proposed,
    VoteCast,
    PointsBalance,
    TallySnapshot,
]


@dataclass(frozen=True)
class CommandResult:
    ok: bool
    value: Optional[Outcome] = None
    error: Optional[ElectionError] = None

    @classmethod
    def success(cls, value: Outcome) -> "CommandResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: ElectionError) -> "CommandResult":
        return cls(ok=False, error=error)

    def unwrap(self) -> Outcome:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    def to_dict(self) -> Dict[str, Any]:
        if not self.ok:
            return self.error.to_dict() if self.error else {"ok": False, "error": "unknown"}
        out: Dict[str, Any] = {"ok": True}
        if self.value is not None:
            out.update(self.value.to_dict())
        return out
