# packed_voting/voting_runtime/events.py
from __future__ import annotations

"""
Registry events.

Events are appended to the store's log in call order; `seq` is the event's
position in that log. Events are immutable: `args` is a read-only view over
a private copy, so nothing handed out by the registry can rewrite the log.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping

PROPOSAL_CREATED = "ProposalCreated"
VOTING_POWER_SET = "VotingPowerSet"
VOTED = "Voted"

EVENT_NAMES = (PROPOSAL_CREATED, VOTING_POWER_SET, VOTED)


@dataclass(frozen=True)
class Event:
    name: str
    seq: int
    args: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", MappingProxyType(dict(self.args)))

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "seq": self.seq, "args": dict(self.args)}

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Event":
        return cls(name=str(raw["name"]), seq=int(raw["seq"]), args=dict(raw.get("args") or {}))


def proposal_created(seq: int, proposal_id: int, proposer: str, record_hash_hex: str, vote_start: int, vote_end: int) -> Event:
    return Event(
        PROPOSAL_CREATED,
        seq,
        {
            "proposal_id": proposal_id,
            "proposer": proposer,
            "record_hash": record_hash_hex,
            "vote_start": vote_start,
            "vote_end": vote_end,
        },
    )


def voting_power_set(seq: int, account: str, weight: int, previous: int) -> Event:
    return Event(VOTING_POWER_SET, seq, {"account": account, "weight": weight, "previous": previous})


def voted(seq: int, proposal_id: int, voter: str, support: bool, weight: int) -> Event:
    return Event(VOTED, seq, {"proposal_id": proposal_id, "voter": voter, "support": support, "weight": weight})
