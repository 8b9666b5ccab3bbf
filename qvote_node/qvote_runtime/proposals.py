# qvote_node/qvote_runtime/proposals.py
"""
ProposalRegistry:
- Append-only list of candidate ideas for the current election
- Duplicate rejection on normalized text (trim + whitespace collapse + casefold)
- Dense, 0-based indices in submission order
- freeze() closes the registry when the election moves to voting
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

from .errors import DuplicateProposal, EmptyText, Frozen, UnknownProposal


def normalize_text(text: str) -> str:
    """Comparison key for proposal text. Stored text keeps its casing."""
    return " ".join(str(text or "").split()).casefold()


@dataclass(frozen=True)
class Proposal:
    index: int
    text: str
    proposer: str = ""

    def to_dict(self) -> Dict[str, object]:
        return {"index": self.index, "text": self.text, "proposer": self.proposer}


class ProposalRegistry:
    def __init__(self) -> None:
        self._proposals: List[Proposal] = []
        # normalized text -> index
        self._by_key: Dict[str, int] = {}
        self._frozen = False

    # ----- mutation -----
    def add(self, actor: str, text: str) -> int:
        if self._frozen:
            raise Frozen()

        stored = str(text or "").strip()
        key = normalize_text(stored)
        if not key:
            raise EmptyText()
        if key in self._by_key:
            raise DuplicateProposal(stored, self._by_key[key])

        idx = len(self._proposals)
        self._proposals.append(Proposal(index=idx, text=stored, proposer=str(actor or "")))
        self._by_key[key] = idx
        return idx

    def freeze(self) -> None:
        self._frozen = True

    # ----- queries -----
    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, index: int) -> Proposal:
        # bool is an int subclass; True must not resolve to proposal #1
        if isinstance(index, bool) or not isinstance(index, int):
            raise UnknownProposal(index, len(self._proposals))
        if index < 0 or index >= len(self._proposals):
            raise UnknownProposal(index, len(self._proposals))
        return self._proposals[index]

    def contains(self, index: int) -> bool:
        try:
            self.get(index)
        except UnknownProposal:
            return False
        return True

    def index_of(self, text: str) -> int:
        """Index of an existing proposal matching `text`, or -1."""
        return self._by_key.get(normalize_text(text), -1)

    def list(self) -> Tuple[Proposal, ...]:
        return tuple(self._proposals)

    def __len__(self) -> int:
        return len(self._proposals)

    def __iter__(self):
        return iter(tuple(self._proposals))
