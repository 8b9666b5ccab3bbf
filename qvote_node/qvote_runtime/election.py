from __future__ import annotations

"""
ElectionStateMachine: one quadratic-voting election per community.

Phases
------
    IDLE --start--> PROPOSING --stop--> VOTING --stop--> IDLE

- PROPOSING: members add ideas (ProposalRegistry)
- VOTING: registry frozen, members spend voice credits (CreditLedger)
- stopping VOTING computes the final tally and discards the election

Concurrency
-----------
The whole Election aggregate (registry + ledger) sits behind a single
ReadWriteLock. start/stop/propose/vote are exclusive; status and tally
queries are shared. Lock waits are bounded by `lock_timeout_seconds`.

Every operation validates fully before mutating, so a raised ElectionError
means nothing changed.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from .commands import (
    Command,
    CommandResult,
    ElectionConcluded,
    MovedToVoting,
    Outcome,
    Points,
    PointsBalance,
    Propose,
    Proposed,
    Start,
    Started,
    Stop,
    Tally,
    TallySnapshot,
    Vote,
    VoteCast,
)
from .errors import AlreadyActive, ElectionError, NoActiveElection, WrongPhase
from .ledger import MAX_VOTES_PER_CAST, STARTING_CREDITS, CreditLedger
from .proposals import ProposalRegistry
from .rwlock import ReadWriteLock
from .tally import CONVENIENT_WINNERS, TallyEntry

log = logging.getLogger(__name__)


class Phase(str, Enum):
    IDLE = "idle"
    PROPOSING = "proposing"
    VOTING = "voting"


@dataclass(frozen=True)
class ElectionSettings:
    max_credits: int = STARTING_CREDITS
    max_votes_per_cast: int = MAX_VOTES_PER_CAST
    lock_timeout_seconds: Optional[float] = 2.0
    retain_last_tally: bool = True
    winners_shown: int = CONVENIENT_WINNERS

    def __post_init__(self) -> None:
        if int(self.max_credits) <= 0:
            raise ValueError("max_credits must be positive")
        if int(self.max_votes_per_cast) <= 0:
            raise ValueError("max_votes_per_cast must be positive")
        if self.lock_timeout_seconds is not None and float(self.lock_timeout_seconds) < 0:
            raise ValueError("lock_timeout_seconds must be >= 0")


@dataclass
class Election:
    prompt: str
    started_by: str
    proposals: ProposalRegistry
    ledger: CreditLedger
    phase: Phase = Phase.PROPOSING
    started_at: float = field(default_factory=time.time)


class ElectionStateMachine:
    def __init__(self, settings: Optional[ElectionSettings] = None, community_id: str = "") -> None:
        self.settings = settings or ElectionSettings()
        self.community_id = str(community_id)
        self._lock = ReadWriteLock(timeout=self.settings.lock_timeout_seconds)
        self._election: Optional[Election] = None
        self._last_tally: Optional[Tuple[TallyEntry, ...]] = None

        self._handlers: Dict[type, Callable[[Any], Outcome]] = {
            Start: lambda c: self.start(c.actor, c.prompt),
            Stop: lambda c: self.stop(c.actor),
            Propose: lambda c: self.propose(c.actor, c.text),
            Vote: lambda c: self.vote(c.actor, c.proposal_index, c.n_votes),
            Points: lambda c: self.points(c.actor),
            Tally: lambda c: self.current_tally(),
        }

    # ------------------------
    # Introspection
    # ------------------------
    @property
    def phase(self) -> Phase:
        with self._lock.read_locked():
            e = self._election
            return e.phase if e is not None else Phase.IDLE

    def status(self) -> Dict[str, Any]:
        with self._lock.read_locked():
            e = self._election
            if e is None:
                return {
                    "community_id": self.community_id,
                    "phase": Phase.IDLE.value,
                    "prompt": None,
                    "proposals": [],
                    "has_final_tally": self._last_tally is not None,
                }
            return {
                "community_id": self.community_id,
                "phase": e.phase.value,
                "prompt": e.prompt,
                "started_by": e.started_by,
                "started_at": e.started_at,
                "proposals": [p.to_dict() for p in e.proposals.list()],
                "max_credits": e.ledger.max_credits,
                "vote_limit": e.ledger.vote_limit,
            }

    def _require_election(self) -> Election:
        if self._election is None:
            raise NoActiveElection()
        return self._election

    def _require_phase(self, phase: Phase) -> Election:
        e = self._election
        current = e.phase if e is not None else Phase.IDLE
        if e is None or current != phase:
            raise WrongPhase(current.value, [phase.value])
        return e

    # ------------------------
    # Lifecycle
    # ------------------------
    def start(self, actor: str, prompt: str) -> Started:
        with self._lock.write_locked():
            if self._election is not None:
                raise AlreadyActive(self._election.phase.value)

            registry = ProposalRegistry()
            ledger = CreditLedger(
                max_credits=int(self.settings.max_credits),
                max_votes_per_cast=int(self.settings.max_votes_per_cast),
            )
            ledger.attach_registry(registry)

            text = str(prompt or "").strip()
            self._election = Election(
                prompt=text,
                started_by=str(actor or ""),
                proposals=registry,
                ledger=ledger,
            )
            self._last_tally = None

        log.info("[%s] election started: %s", self.community_id, text)
        return Started(prompt=text)

    def stop(self, actor: str) -> Outcome:
        with self._lock.write_locked():
            e = self._election
            if e is None:
                raise WrongPhase(
                    Phase.IDLE.value, [Phase.PROPOSING.value, Phase.VOTING.value]
                )

            if e.phase == Phase.PROPOSING:
                e.proposals.freeze()
                e.phase = Phase.VOTING
                proposals = e.proposals.list()
                log.info(
                    "[%s] proposals closed (%d candidates), voting open",
                    self.community_id,
                    len(proposals),
                )
                return MovedToVoting(proposals=proposals)

            tally = e.ledger.tally()
            if self.settings.retain_last_tally:
                self._last_tally = tally
            self._election = None

        log.info("[%s] election concluded with %d candidates", self.community_id, len(tally))
        return ElectionConcluded(tally=tally)

    # ------------------------
    # Commands during an election
    # ------------------------
    def propose(self, actor: str, text: str) -> Proposed:
        with self._lock.write_locked():
            e = self._require_phase(Phase.PROPOSING)
            idx = e.proposals.add(actor, text)
        log.debug("[%s] proposal #%d added", self.community_id, idx)
        return Proposed(index=idx)

    def vote(self, actor: str, proposal_index: int, n_votes: int) -> VoteCast:
        with self._lock.write_locked():
            e = self._require_phase(Phase.VOTING)
            remaining = e.ledger.cast(actor, proposal_index, n_votes)
        log.debug("[%s] %s votes set on #%s", self.community_id, n_votes, proposal_index)
        return VoteCast(remaining_credits=remaining)

    def points(self, actor: str) -> PointsBalance:
        with self._lock.read_locked():
            e = self._require_election()
            if e.ledger.has_account(actor):
                return PointsBalance(remaining_credits=e.ledger.remaining_credits(actor))

        # First query opens the account, which is a write.
        with self._lock.write_locked():
            e = self._require_election()
            return PointsBalance(remaining_credits=e.ledger.remaining_credits(actor))

    def current_tally(self) -> TallySnapshot:
        with self._lock.read_locked():
            e = self._election
            if e is None:
                if self._last_tally is None:
                    raise NoActiveElection()
                return TallySnapshot(entries=self._last_tally, final=True)
            if e.phase != Phase.VOTING:
                raise WrongPhase(e.phase.value, [Phase.VOTING.value, Phase.IDLE.value])
            return TallySnapshot(entries=e.ledger.tally(), final=False)

    # ------------------------
    # Dispatch
    # ------------------------
    def execute(self, command: Command) -> CommandResult:
        handler = self._handlers.get(type(command))
        if handler is None:
            raise TypeError(f"unsupported command: {type(command).__name__}")
        try:
            return CommandResult.success(handler(command))
        except ElectionError as exc:
            if exc.kind == "election_busy":
                log.warning("[%s] %s timed out waiting for the election lock", self.community_id, type(command).__name__)
            else:
                log.debug("[%s] %s rejected: %s", self.community_id, type(command).__name__, exc.kind)
            return CommandResult.failure(exc)
