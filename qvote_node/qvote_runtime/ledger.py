"""
qvote_node/qvote_runtime/ledger.py
----------------------------------

Voice-credit ledger for a single election.

Every actor gets `max_credits` credits (default 100). Casting n votes on a
proposal costs n**2 credits. Recasting on the same proposal *replaces* the
previous allocation: the old cost is refunded and the new cost charged in
one step.

Production invariants:

- For every account, at all times:
      remaining_credits + sum(votes**2 for each allocation) == max_credits
- Allocations are strictly positive; setting a proposal to 0 votes removes
  the entry.
- A failed cast leaves the account exactly as it was.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Iterator, Optional, Tuple

from .errors import InsufficientCredits, InvalidVoteCount, UnknownProposal
from .tally import TallyEntry, compute_tally

if TYPE_CHECKING:
    from .proposals import ProposalRegistry

STARTING_CREDITS: int = 100
MAX_VOTES_PER_CAST: int = 10


def quadratic_cost(n_votes: int) -> int:
    return int(n_votes) * int(n_votes)


def recast_balance(remaining: int, old_votes: int, new_votes: int) -> int:
    """
    Balance after replacing `old_votes` with `new_votes` on one proposal.

    Computed against the hypothetical state where the old allocation has
    already been released, so no intermediate balance is ever observable.
    Raises InsufficientCredits without side effects.
    """
    available = int(remaining) + quadratic_cost(old_votes)
    required = quadratic_cost(new_votes)
    if required > available:
        raise InsufficientCredits(available=available, required=required)
    return available - required


@dataclass
class CreditAccount:
    remaining_credits: int
    allocations: Dict[int, int] = field(default_factory=dict)

    def spent(self) -> int:
        return sum(quadratic_cost(v) for v in self.allocations.values())


@dataclass
class CreditLedger:
    """
    Tracks:
    - accounts: actor -> CreditAccount (created lazily)
    - registry: the election's ProposalRegistry, attached by the election
    """

    max_credits: int = STARTING_CREDITS
    max_votes_per_cast: int = MAX_VOTES_PER_CAST
    accounts: Dict[str, CreditAccount] = field(default_factory=dict)
    registry: Optional["ProposalRegistry"] = None

    def __post_init__(self) -> None:
        if int(self.max_credits) <= 0:
            raise ValueError("max_credits must be positive")
        if int(self.max_votes_per_cast) <= 0:
            raise ValueError("max_votes_per_cast must be positive")

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    def attach_registry(self, registry: "ProposalRegistry") -> None:
        self.registry = registry

    @property
    def vote_limit(self) -> int:
        """Largest vote count a single cast may carry."""
        return min(int(self.max_votes_per_cast), math.isqrt(int(self.max_credits)))

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def _account(self, actor: str) -> CreditAccount:
        acct = self.accounts.get(actor)
        if acct is None:
            acct = CreditAccount(remaining_credits=int(self.max_credits))
            self.accounts[actor] = acct
        return acct

    def has_account(self, actor: str) -> bool:
        return actor in self.accounts

    def remaining_credits(self, actor: str) -> int:
        return self._account(actor).remaining_credits

    def allocations(self, actor: str) -> Dict[int, int]:
        acct = self.accounts.get(actor)
        return dict(acct.allocations) if acct else {}

    def iter_allocations(self) -> Iterator[Dict[int, int]]:
        for acct in self.accounts.values():
            yield acct.allocations

    # ------------------------------------------------------------------
    # Casting
    # ------------------------------------------------------------------

    def _check_vote_count(self, n_votes: int) -> None:
        limit = self.vote_limit
        if isinstance(n_votes, bool) or not isinstance(n_votes, int):
            raise InvalidVoteCount(n_votes, limit)
        if n_votes < 0 or n_votes > limit:
            raise InvalidVoteCount(n_votes, limit)

    def _check_proposal(self, proposal_index: int) -> None:
        if self.registry is None:
            raise UnknownProposal(proposal_index, 0)
        self.registry.get(proposal_index)

    def cast(self, actor: str, proposal_index: int, n_votes: int) -> int:
        """
        Set `actor`'s allocation on `proposal_index` to `n_votes`.

        Returns the actor's remaining credits. Validation order:
        vote count, proposal existence, balance.
        """
        self._check_vote_count(n_votes)
        self._check_proposal(proposal_index)

        acct = self.accounts.get(actor)
        remaining = acct.remaining_credits if acct else int(self.max_credits)
        old_votes = acct.allocations.get(proposal_index, 0) if acct else 0

        new_remaining = recast_balance(remaining, old_votes, n_votes)

        # Commit: nothing above mutated state.
        acct = self._account(actor)
        acct.remaining_credits = new_remaining
        if n_votes == 0:
            acct.allocations.pop(proposal_index, None)
        else:
            acct.allocations[proposal_index] = n_votes
        return new_remaining

    # ------------------------------------------------------------------
    # Results / audits
    # ------------------------------------------------------------------

    def tally(self, registry: Optional["ProposalRegistry"] = None) -> Tuple[TallyEntry, ...]:
        reg = registry if registry is not None else self.registry
        if reg is None:
            return ()
        return compute_tally(reg, self.iter_allocations())

    def check_invariant(self) -> bool:
        for acct in self.accounts.values():
            if acct.remaining_credits + acct.spent() != int(self.max_credits):
                return False
            if any(v <= 0 for v in acct.allocations.values()):
                return False
        return True
