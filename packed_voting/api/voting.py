# packed_voting/api/voting.py
from __future__ import annotations

"""
Voting API for the packed-proposal registry.

Routes
------
- POST /voting/proposals
- GET  /voting/proposals/{id}
- GET  /voting/proposals/{id}/packed
- GET  /voting/proposals/{id}/vote_start | vote_end | votes_for | votes_against
- POST /voting/proposals/{id}/votes
- PUT  /voting/power/{account}
- GET  /voting/power/{account}
- GET  /voting/events

The caller is whoever the X-Voting-Account header names; calls without it
are issued as the registry owner. No signatures are checked here.

This module is intentionally thin: all voting rules live in
voting_runtime.registry.VotingRegistry.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request
from pydantic import BaseModel, Field

from ..voting_runtime.errors import (
    NotAuthorizedError,
    ProposalNotFoundError,
    VotingClosedError,
    VotingError,
)
from ..voting_runtime.events import EVENT_NAMES
from ..voting_runtime.packing import PackedProposalRecord
from ..voting_runtime.registry import VotingRegistry

router = APIRouter(prefix="/voting", tags=["voting"])

CALLER_HEADER = "X-Voting-Account"


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class ProposalCreate(BaseModel):
    record_hash: str = Field(..., description="32-byte keccak digest, 0x-hex.")
    vote_start: int = Field(..., ge=0)
    vote_end: int = Field(..., ge=0)


class VoteRequest(BaseModel):
    support: bool


class VotingPowerRequest(BaseModel):
    weight: int = Field(..., ge=0)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def get_registry(request: Request) -> VotingRegistry:
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        raise HTTPException(status_code=503, detail="registry_unavailable")
    return registry


def _caller(x_voting_account: Optional[str]) -> Optional[str]:
    if x_voting_account is None or not x_voting_account.strip():
        return None
    return x_voting_account


def _http_error(e: VotingError) -> HTTPException:
    if isinstance(e, ProposalNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, NotAuthorizedError):
        return HTTPException(status_code=403, detail=str(e))
    if isinstance(e, VotingClosedError):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


def _record_out(proposal_id: int, record: PackedProposalRecord) -> Dict[str, Any]:
    out = {"id": proposal_id, "packed": record.to_hex()}
    out.update(record.as_dict())
    return out


def _read(registry: VotingRegistry, proposal_id: int) -> PackedProposalRecord:
    try:
        return registry.proposal(proposal_id)
    except VotingError as e:
        raise _http_error(e)


# ---------------------------------------------------------------------------
# Proposals
# ---------------------------------------------------------------------------


@router.post("/proposals")
def create_proposal(
    payload: ProposalCreate,
    registry: VotingRegistry = Depends(get_registry),
    x_voting_account: Optional[str] = Header(default=None),
) -> Dict[str, Any]:
    try:
        pid = registry.propose(
            payload.record_hash, payload.vote_start, payload.vote_end, sender=_caller(x_voting_account)
        )
    except VotingError as e:
        raise _http_error(e)
    return {"ok": True, "proposal_id": pid}


@router.get("/proposals/{proposal_id}")
def get_proposal(proposal_id: int, registry: VotingRegistry = Depends(get_registry)) -> Dict[str, Any]:
    return {"ok": True, "proposal": _record_out(proposal_id, _read(registry, proposal_id))}


@router.get("/proposals/{proposal_id}/packed")
def get_packed_record(proposal_id: int, registry: VotingRegistry = Depends(get_registry)) -> Dict[str, Any]:
    return {"ok": True, "packed": _read(registry, proposal_id).to_hex()}


@router.get("/proposals/{proposal_id}/vote_start")
def get_vote_start(proposal_id: int, registry: VotingRegistry = Depends(get_registry)) -> Dict[str, Any]:
    return {"ok": True, "vote_start": _read(registry, proposal_id).vote_start}


@router.get("/proposals/{proposal_id}/vote_end")
def get_vote_end(proposal_id: int, registry: VotingRegistry = Depends(get_registry)) -> Dict[str, Any]:
    return {"ok": True, "vote_end": _read(registry, proposal_id).vote_end}


@router.get("/proposals/{proposal_id}/votes_for")
def get_votes_for(proposal_id: int, registry: VotingRegistry = Depends(get_registry)) -> Dict[str, Any]:
    return {"ok": True, "votes_for": _read(registry, proposal_id).votes_for}


@router.get("/proposals/{proposal_id}/votes_against")
def get_votes_against(proposal_id: int, registry: VotingRegistry = Depends(get_registry)) -> Dict[str, Any]:
    return {"ok": True, "votes_against": _read(registry, proposal_id).votes_against}


@router.post("/proposals/{proposal_id}/votes")
def cast_vote(
    proposal_id: int,
    payload: VoteRequest,
    registry: VotingRegistry = Depends(get_registry),
    x_voting_account: Optional[str] = Header(default=None),
) -> Dict[str, Any]:
    try:
        event = registry.vote(proposal_id, payload.support, sender=_caller(x_voting_account))
    except VotingError as e:
        raise _http_error(e)
    return {"ok": True, "event": event.to_dict()}


# ---------------------------------------------------------------------------
# Voting power
# ---------------------------------------------------------------------------


@router.put("/power/{account}")
def set_voting_power(
    account: str,
    payload: VotingPowerRequest,
    registry: VotingRegistry = Depends(get_registry),
    x_voting_account: Optional[str] = Header(default=None),
) -> Dict[str, Any]:
    try:
        event = registry.set_voting_power(account, payload.weight, sender=_caller(x_voting_account))
    except VotingError as e:
        raise _http_error(e)
    return {"ok": True, "event": event.to_dict()}


@router.get("/power/{account}")
def get_voting_power(account: str, registry: VotingRegistry = Depends(get_registry)) -> Dict[str, Any]:
    try:
        weight = registry.voting_power(account)
    except VotingError as e:
        raise _http_error(e)
    return {"ok": True, "account": account, "weight": weight}


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@router.get("/events")
def list_events(
    name: Optional[str] = Query(default=None),
    registry: VotingRegistry = Depends(get_registry),
) -> Dict[str, Any]:
    if name is not None and name not in EVENT_NAMES:
        raise HTTPException(status_code=400, detail="unknown_event")
    return {"ok": True, "events": [e.to_dict() for e in registry.events(name)]}
