# qvote_node/qvote_runtime/tally.py
"""
Tally computation.

Results are derived on demand from the registry and the credit accounts,
never stored. Ordering is deterministic:

    total_votes descending, then proposal_index ascending

so the earliest proposed idea wins a tie. Entries never name voters.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Iterable, Mapping, Optional, Tuple

if TYPE_CHECKING:
    from .proposals import ProposalRegistry

# The original announcements listed this many leading candidates.
CONVENIENT_WINNERS = 5


@dataclass(frozen=True)
class TallyEntry:
    proposal_index: int
    text: str
    total_votes: int
    total_credits_spent: int

    def to_dict(self) -> Dict[str, object]:
        return {
            "proposal_index": self.proposal_index,
            "text": self.text,
            "total_votes": self.total_votes,
            "total_credits_spent": self.total_credits_spent,
        }


def _rank_key(entry: TallyEntry) -> Tuple[int, int]:
    return (-entry.total_votes, entry.proposal_index)


def compute_tally(
    registry: "ProposalRegistry",
    allocations: Iterable[Mapping[int, int]],
) -> Tuple[TallyEntry, ...]:
    """
    Aggregate per-proposal totals.

    `allocations` is one mapping per account (proposal index -> votes).
    Every proposal in the registry gets an entry, including zero-vote ones.
    Allocations on indices the registry does not know are ignored.
    """
    votes: Dict[int, int] = {p.index: 0 for p in registry.list()}
    credits: Dict[int, int] = dict(votes)

    for alloc in allocations:
        for idx, n in alloc.items():
            if idx not in votes:
                continue
            votes[idx] += int(n)
            credits[idx] += int(n) * int(n)

    entries = [
        TallyEntry(
            proposal_index=p.index,
            text=p.text,
            total_votes=votes[p.index],
            total_credits_spent=credits[p.index],
        )
        for p in registry.list()
    ]
    entries.sort(key=_rank_key)
    return tuple(entries)


def winners(entries: Iterable[TallyEntry], limit: int = CONVENIENT_WINNERS) -> Tuple[TallyEntry, ...]:
    ranked = sorted(entries, key=_rank_key)
    if limit <= 0:
        return ()
    return tuple(ranked[:limit])


def winner(entries: Iterable[TallyEntry]) -> Optional[TallyEntry]:
    top = winners(entries, limit=1)
    return top[0] if top else None
