# packed_voting/voting_runtime/store.py
from __future__ import annotations

"""
Registry state stores.

A store owns everything a VotingRegistry remembers: proposals, voting
weights and the event log. Three storage strategies share one surface:

    packed      one packed integer per proposal, decoded on every read
    normal      one plain field dict per proposal
    ballot_log  proposal headers plus an append-only ballot log; tallies
                are recomputed from the whole log on every read

The contract names used by EVM test fixtures ("PackedVoting",
"NormalVoting", "BadVoting") resolve to the same three strategies.

Stores do not lock and do not validate callers; VotingRegistry does both.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type

from .errors import ProposalNotFoundError, UnknownBackendError, require
from .events import Event
from .packing import PackedProposalRecord

SNAPSHOT_VERSION = 1


class RegistryStore(ABC):
    backend: str = ""

    def __init__(self) -> None:
        self.weights: Dict[str, int] = {}
        self.events: List[Event] = []

    # ------------------------------------------------------------------
    # Proposal storage (backend specific)
    # ------------------------------------------------------------------

    @abstractmethod
    def count(self) -> int:
        ...

    @abstractmethod
    def append(self, record: PackedProposalRecord) -> int:
        ...

    @abstractmethod
    def get(self, proposal_id: int) -> PackedProposalRecord:
        ...

    @abstractmethod
    def apply_vote(self, proposal_id: int, voter: str, support: bool, weight: int) -> PackedProposalRecord:
        """Add `weight` to one side of the tally and return the updated record."""

    @abstractmethod
    def _proposals_snapshot(self) -> Dict[str, Any]:
        ...

    @abstractmethod
    def _restore_proposals(self, snap: Dict[str, Any]) -> None:
        ...

    # ------------------------------------------------------------------
    # Shared behavior
    # ------------------------------------------------------------------

    def _check_id(self, proposal_id: int) -> int:
        require(
            isinstance(proposal_id, int) and not isinstance(proposal_id, bool),
            "proposal_id must be an int",
            ProposalNotFoundError,
        )
        require(0 <= proposal_id < self.count(), f"proposal {proposal_id} not found", ProposalNotFoundError)
        return proposal_id

    def weight_of(self, account: str) -> int:
        return int(self.weights.get(account, 0))

    def next_event_seq(self) -> int:
        return len(self.events)

    def to_snapshot(self) -> Dict[str, Any]:
        snap = {
            "version": SNAPSHOT_VERSION,
            "backend": self.backend,
            "weights": dict(self.weights),
            "events": [e.to_dict() for e in self.events],
        }
        snap.update(self._proposals_snapshot())
        return snap

    @classmethod
    def from_snapshot(cls, snap: Dict[str, Any]) -> "RegistryStore":
        store = cls()
        store.weights = {str(k): int(v) for k, v in (snap.get("weights") or {}).items()}
        store.events = [Event.from_dict(e) for e in (snap.get("events") or [])]
        store._restore_proposals(snap)
        return store


class _TallyStore(RegistryStore):
    """Stores that keep running tallies and rewrite them on every vote."""

    @abstractmethod
    def _put(self, proposal_id: int, record: PackedProposalRecord) -> None:
        ...

    def apply_vote(self, proposal_id: int, voter: str, support: bool, weight: int) -> PackedProposalRecord:
        # with_vote() raises before _put() on overflow.
        updated = self.get(proposal_id).with_vote(support, weight)
        self._put(proposal_id, updated)
        return updated


class PackedStore(_TallyStore):
    backend = "packed"

    def __init__(self) -> None:
        super().__init__()
        self._words: List[int] = []

    def count(self) -> int:
        return len(self._words)

    def append(self, record: PackedProposalRecord) -> int:
        self._words.append(record.pack())
        return len(self._words) - 1

    def get(self, proposal_id: int) -> PackedProposalRecord:
        return PackedProposalRecord.unpack(self._words[self._check_id(proposal_id)])

    def packed_word(self, proposal_id: int) -> int:
        return self._words[self._check_id(proposal_id)]

    def _put(self, proposal_id: int, record: PackedProposalRecord) -> None:
        self._words[self._check_id(proposal_id)] = record.pack()

    def _proposals_snapshot(self) -> Dict[str, Any]:
        return {"proposals": [PackedProposalRecord.unpack(w).to_hex() for w in self._words]}

    def _restore_proposals(self, snap: Dict[str, Any]) -> None:
        self._words = [PackedProposalRecord.from_hex(h).pack() for h in snap.get("proposals") or []]


class NormalStore(_TallyStore):
    backend = "normal"

    def __init__(self) -> None:
        super().__init__()
        self._proposals: List[Dict[str, Any]] = []

    def count(self) -> int:
        return len(self._proposals)

    def append(self, record: PackedProposalRecord) -> int:
        self._proposals.append(
            {
                "record_hash": record.record_hash,
                "vote_start": record.vote_start,
                "vote_end": record.vote_end,
                "votes_for": record.votes_for,
                "votes_against": record.votes_against,
            }
        )
        return len(self._proposals) - 1

    def get(self, proposal_id: int) -> PackedProposalRecord:
        return PackedProposalRecord(**self._proposals[self._check_id(proposal_id)])

    def _put(self, proposal_id: int, record: PackedProposalRecord) -> None:
        p = self._proposals[self._check_id(proposal_id)]
        p["votes_for"] = record.votes_for
        p["votes_against"] = record.votes_against

    def _proposals_snapshot(self) -> Dict[str, Any]:
        return {"proposals": [self.get(i).as_dict() for i in range(self.count())]}

    def _restore_proposals(self, snap: Dict[str, Any]) -> None:
        self._proposals = []
        for raw in snap.get("proposals") or []:
            p = dict(raw)
            p["record_hash"] = bytes.fromhex(str(p["record_hash"])[2:])
            self.append(PackedProposalRecord(**p))


class BallotLogStore(RegistryStore):
    """
    Keeps no tallies at all. Every read walks the full ballot log, so reads
    cost O(ballots). Useful as a reference to check the other two against.
    """

    backend = "ballot_log"

    def __init__(self) -> None:
        super().__init__()
        self._headers: List[Dict[str, Any]] = []
        self.ballots: List[Dict[str, Any]] = []

    def count(self) -> int:
        return len(self._headers)

    def append(self, record: PackedProposalRecord) -> int:
        self._headers.append(
            {"record_hash": record.record_hash, "vote_start": record.vote_start, "vote_end": record.vote_end}
        )
        return len(self._headers) - 1

    def get(self, proposal_id: int) -> PackedProposalRecord:
        header = self._headers[self._check_id(proposal_id)]
        votes_for = 0
        votes_against = 0
        for b in self.ballots:
            if b["proposal_id"] != proposal_id:
                continue
            if b["support"]:
                votes_for += b["weight"]
            else:
                votes_against += b["weight"]
        return PackedProposalRecord(votes_for=votes_for, votes_against=votes_against, **header)

    def apply_vote(self, proposal_id: int, voter: str, support: bool, weight: int) -> PackedProposalRecord:
        updated = self.get(proposal_id).with_vote(support, weight)
        self.ballots.append({"proposal_id": proposal_id, "voter": voter, "support": bool(support), "weight": int(weight)})
        return updated

    def _proposals_snapshot(self) -> Dict[str, Any]:
        return {
            "proposals": [
                {"record_hash": "0x" + h["record_hash"].hex(), "vote_start": h["vote_start"], "vote_end": h["vote_end"]}
                for h in self._headers
            ],
            "ballots": [dict(b) for b in self.ballots],
        }

    def _restore_proposals(self, snap: Dict[str, Any]) -> None:
        self._headers = []
        for raw in snap.get("proposals") or []:
            self.append(
                PackedProposalRecord(
                    record_hash=bytes.fromhex(str(raw["record_hash"])[2:]),
                    vote_start=int(raw["vote_start"]),
                    vote_end=int(raw["vote_end"]),
                )
            )
        self.ballots = [
            {
                "proposal_id": int(b["proposal_id"]),
                "voter": str(b["voter"]),
                "support": bool(b["support"]),
                "weight": int(b["weight"]),
            }
            for b in snap.get("ballots") or []
        ]


BACKENDS: Dict[str, Type[RegistryStore]] = {
    PackedStore.backend: PackedStore,
    NormalStore.backend: NormalStore,
    BallotLogStore.backend: BallotLogStore,
}

# Contract names used by EVM fixtures.
CONTRACT_ALIASES: Dict[str, str] = {
    "PackedVoting": PackedStore.backend,
    "NormalVoting": NormalStore.backend,
    "BadVoting": BallotLogStore.backend,
}


def resolve_backend(name: Optional[str]) -> str:
    raw = str(name or PackedStore.backend).strip()
    raw = CONTRACT_ALIASES.get(raw, raw).lower()
    if raw not in BACKENDS:
        raise UnknownBackendError(f"unknown backend: {name}")
    return raw


def make_store(backend: Optional[str] = None) -> RegistryStore:
    return BACKENDS[resolve_backend(backend)]()


def store_from_snapshot(snap: Dict[str, Any]) -> RegistryStore:
    require(isinstance(snap, dict), "snapshot must be a dict")
    require(int(snap.get("version", 0) or 0) == SNAPSHOT_VERSION, "unsupported snapshot version")
    return BACKENDS[resolve_backend(snap.get("backend"))].from_snapshot(snap)
