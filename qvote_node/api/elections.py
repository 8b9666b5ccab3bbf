# qvote_node/api/elections.py
"""
qvote_node/api/elections.py
--------------------------------------------------
HTTP dispatcher for community elections.

Each endpoint:
- resolves the acting member from headers (X-Actor-Id, X-Actor-Roles)
- gates start/stop behind the configured admin role
- builds one typed command and runs it through the community's machine
- maps error kinds to HTTP status codes (detail = error dict)

The election core is permission-agnostic; all role checks live here.
"""

from __future__ import annotations

from typing import Any, Dict, FrozenSet, List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from pydantic import BaseModel, Field

from ..communities import CommunityRegistry, UnknownCommunity
from ..config import get_admin_role
from ..qvote_runtime.commands import (
    CommandResult,
    ElectionConcluded,
    Points,
    Propose,
    Start,
    Stop,
    Tally,
    TallySnapshot,
    Vote,
)
from ..qvote_runtime.election import ElectionStateMachine
from ..qvote_runtime.tally import winners

router = APIRouter(prefix="/communities/{community_id}/election", tags=["election"])


# ============================================================
# Pydantic models
# ============================================================

class StartRequest(BaseModel):
    prompt: str = Field(..., description="What the community is deciding on")


class ProposeRequest(BaseModel):
    text: str = Field(..., description="The idea being proposed")


class VoteRequest(BaseModel):
    proposal_index: int = Field(..., description="Index shown when voting opened")
    n_votes: int = Field(..., description="Votes to allocate; costs n_votes**2 credits")


# ============================================================
# Error mapping
# ============================================================

ERROR_STATUS: Dict[str, int] = {
    "already_active": status.HTTP_409_CONFLICT,
    "wrong_phase": status.HTTP_409_CONFLICT,
    "frozen": status.HTTP_409_CONFLICT,
    "duplicate_proposal": status.HTTP_409_CONFLICT,
    "no_active_election": status.HTTP_404_NOT_FOUND,
    "unknown_proposal": status.HTTP_404_NOT_FOUND,
    "empty_text": status.HTTP_400_BAD_REQUEST,
    "invalid_vote_count": status.HTTP_400_BAD_REQUEST,
    "insufficient_credits": status.HTTP_400_BAD_REQUEST,
    "election_busy": status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _respond(result: CommandResult) -> Dict[str, Any]:
    if not result.ok:
        detail = result.to_dict()
        code = ERROR_STATUS.get(str(detail.get("error")), status.HTTP_400_BAD_REQUEST)
        raise HTTPException(status_code=code, detail=detail)
    return result.to_dict()


def _winners(entries, machine: ElectionStateMachine) -> List[Dict[str, Any]]:
    top = winners(entries, limit=machine.settings.winners_shown)
    return [e.to_dict() for e in top]


# ============================================================
# Dependencies
# ============================================================

def get_communities(request: Request) -> CommunityRegistry:
    return request.app.state.communities


def get_machine(
    community_id: str,
    communities: CommunityRegistry = Depends(get_communities),
) -> ElectionStateMachine:
    """Existing machine, or an unregistered idle one for unknown communities."""
    try:
        return communities.lookup(community_id)
    except UnknownCommunity as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.to_dict())


def current_actor(x_actor_id: Optional[str] = Header(None)) -> str:
    actor = (x_actor_id or "").strip()
    if not actor:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="actor_required")
    return actor


def actor_roles(x_actor_roles: Optional[str] = Header(None)) -> FrozenSet[str]:
    return frozenset(r.strip() for r in (x_actor_roles or "").split(",") if r.strip())


def require_admin(
    request: Request,
    actor: str = Depends(current_actor),
    roles: FrozenSet[str] = Depends(actor_roles),
) -> str:
    role = get_admin_role(request.app.state.config)
    if role not in roles:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"ok": False, "error": "role_required", "role": role},
        )
    return actor


# ============================================================
# Routes
# ============================================================

@router.get("")
def election_status(machine: ElectionStateMachine = Depends(get_machine)) -> Dict[str, Any]:
    out = {"ok": True}
    out.update(machine.status())
    return out


@router.post("/start")
def start_election(
    community_id: str,
    payload: StartRequest,
    actor: str = Depends(require_admin),
    communities: CommunityRegistry = Depends(get_communities),
) -> Dict[str, Any]:
    # Only an authorized start registers a community.
    try:
        machine = communities.get(community_id)
    except UnknownCommunity as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.to_dict())
    return _respond(machine.execute(Start(actor=actor, prompt=payload.prompt)))


@router.post("/stop")
def stop_phase(
    machine: ElectionStateMachine = Depends(get_machine),
    actor: str = Depends(require_admin),
) -> Dict[str, Any]:
    result = machine.execute(Stop(actor=actor))
    out = _respond(result)
    if isinstance(result.value, ElectionConcluded):
        out["winners"] = _winners(result.value.tally, machine)
    return out


@router.post("/proposals")
def propose(
    payload: ProposeRequest,
    machine: ElectionStateMachine = Depends(get_machine),
    actor: str = Depends(current_actor),
) -> Dict[str, Any]:
    return _respond(machine.execute(Propose(actor=actor, text=payload.text)))


@router.post("/votes")
def cast_vote(
    payload: VoteRequest,
    machine: ElectionStateMachine = Depends(get_machine),
    actor: str = Depends(current_actor),
) -> Dict[str, Any]:
    cmd = Vote(actor=actor, proposal_index=payload.proposal_index, n_votes=payload.n_votes)
    return _respond(machine.execute(cmd))


@router.get("/points")
def points(
    machine: ElectionStateMachine = Depends(get_machine),
    actor: str = Depends(current_actor),
) -> Dict[str, Any]:
    out = _respond(machine.execute(Points(actor=actor)))
    out["max_credits"] = machine.settings.max_credits
    return out


@router.get("/tally")
def tally(
    machine: ElectionStateMachine = Depends(get_machine),
    actor: str = Depends(current_actor),
) -> Dict[str, Any]:
    result = machine.execute(Tally(actor=actor))
    out = _respond(result)
    if isinstance(result.value, TallySnapshot):
        out["winners"] = _winners(result.value.entries, machine)
    return out
