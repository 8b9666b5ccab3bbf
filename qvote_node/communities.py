"""
qvote_node/communities.py
-------------------------

One ElectionStateMachine per governed community.

Machines are registered when an election is started there and live for the
process lifetime; each one still holds at most one election at a time.
Lookups of unknown communities answer from a throwaway idle machine. When
an approved list is configured, only those community ids get a machine (the
original bot ran on a whitelist of servers).
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Iterable, List, Optional

from .qvote_runtime.election import ElectionSettings, ElectionStateMachine

log = logging.getLogger(__name__)


class UnknownCommunity(LookupError):
    def __init__(self, community_id: str) -> None:
        super().__init__(f"community {community_id!r} is not approved")
        self.community_id = community_id

    def to_dict(self) -> Dict[str, object]:
        return {"ok": False, "error": "unknown_community", "community_id": self.community_id}


class CommunityRegistry:
    def __init__(
        self,
        settings: Optional[ElectionSettings] = None,
        approved: Optional[Iterable[str]] = None,
    ) -> None:
        self.settings = settings or ElectionSettings()
        self.approved = frozenset(str(c) for c in (approved or []) if str(c).strip())
        self._lock = threading.Lock()
        self._machines: Dict[str, ElectionStateMachine] = {}

        # Pre-register approved communities so they show up in listings.
        for cid in sorted(self.approved):
            self._machines[cid] = ElectionStateMachine(self.settings, community_id=cid)

    def is_approved(self, community_id: str) -> bool:
        return not self.approved or str(community_id) in self.approved

    def _check(self, community_id: str) -> str:
        cid = str(community_id or "").strip()
        if not cid or not self.is_approved(cid):
            raise UnknownCommunity(cid)
        return cid

    def get(self, community_id: str) -> ElectionStateMachine:
        """Machine for `community_id`, registering it on first use."""
        cid = self._check(community_id)
        with self._lock:
            machine = self._machines.get(cid)
            if machine is None:
                machine = ElectionStateMachine(self.settings, community_id=cid)
                self._machines[cid] = machine
                log.info("registered community %s", cid)
            return machine

    def lookup(self, community_id: str) -> ElectionStateMachine:
        """
        Registered machine for `community_id`, or a throwaway idle one.

        Never registers anything, so requests that cannot start an election
        do not grow the map.
        """
        cid = self._check(community_id)
        with self._lock:
            machine = self._machines.get(cid)
        if machine is None:
            machine = ElectionStateMachine(self.settings, community_id=cid)
        return machine

    def community_ids(self) -> List[str]:
        with self._lock:
            return sorted(self._machines.keys())
