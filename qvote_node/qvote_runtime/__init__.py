# qvote_node/qvote_runtime/__init__.py
"""
Quadratic-voting election core.

Pure in-memory logic, no I/O and no web dependencies, so the runtime can be
driven directly (tests, other dispatchers) without booting the HTTP app.
"""

from .commands import (
    CommandResult,
    ElectionConcluded,
    MovedToVoting,
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
from .election import Election, ElectionSettings, ElectionStateMachine, Phase
from .errors import ElectionError
from .ledger import CreditAccount, CreditLedger
from .proposals import Proposal, ProposalRegistry
from .tally import TallyEntry, compute_tally, winner, winners

__all__ = [
    "CommandResult",
    "CreditAccount",
    "CreditLedger",
    "Election",
    "ElectionConcluded",
    "ElectionError",
    "ElectionSettings",
    "ElectionStateMachine",
    "MovedToVoting",
    "Phase",
    "Points",
    "PointsBalance",
    "Proposal",
    "ProposalRegistry",
    "Propose",
    "Proposed",
    "Start",
    "Started",
    "Stop",
    "Tally",
    "TallyEntry",
    "TallySnapshot",
    "Vote",
    "VoteCast",
    "compute_tally",
    "winner",
    "winners",
]
