# packed_voting/voting_runtime/registry.py
from __future__ import annotations

"""
VotingRegistry:
- Proposal registry (sequential ids from 0, keccak record hash, voting window)
- Owner-set voting weights
- Weighted, cumulative for/against votes with a Voted event per call
- Read accessors for the packed record and running tallies

Every public call runs under one re-entrant lock and validates before it
writes, so each call is all-or-nothing and calls are applied in the order
they are issued.

Writes take a `sender`; when omitted the call is issued as the owner, the
same way an EVM contract handle acts as its deployer until connect()ed to
another account.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional

from .atomic_store import SnapshotStore
from .errors import (
    InvalidProposalError,
    InvalidWeightError,
    NotAuthorizedError,
    VotingClosedError,
    VotingError,
    require,
)
from .events import Event, proposal_created, voted, voting_power_set
from .hashing import RecordHashLike, normalize_record_hash, to_hex
from .packing import PackedProposalRecord
from .store import RegistryStore, make_store, store_from_snapshot

log = logging.getLogger(__name__)

Clock = Callable[[], int]


def _now() -> int:
    return int(time.time())


def normalize_account(account: Any) -> str:
    raw = str(account or "").strip()
    require(bool(raw), "account required")
    # EVM-style addresses compare case-insensitively.
    if raw[:2].lower() == "0x":
        raw = "0x" + raw[2:].lower()
    return raw


def _as_int(name: str, value: Any, exc: type) -> int:
    require(isinstance(value, int) and not isinstance(value, bool), f"{name} must be an int", exc)
    return int(value)


class VotingRegistry:
    def __init__(
        self,
        owner: str,
        store: Optional[RegistryStore] = None,
        *,
        backend: Optional[str] = None,
        enforce_vote_window: bool = True,
        clock: Optional[Clock] = None,
        snapshot_store: Optional[SnapshotStore] = None,
    ) -> None:
        self.owner = normalize_account(owner)
        self.store = store if store is not None else make_store(backend)
        self.enforce_vote_window = bool(enforce_vote_window)
        self.snapshot_store = snapshot_store
        self._clock: Clock = clock or _now
        self._lock = threading.RLock()

    @property
    def backend(self) -> str:
        return self.store.backend

    def connect(self, account: str) -> "RegistryCaller":
        return RegistryCaller(self, normalize_account(account))

    def _sender(self, sender: Optional[str]) -> str:
        return self.owner if sender is None else normalize_account(sender)

    def _emit(self, event: Event) -> Event:
        self.store.events.append(event)
        return event

    def _checkpoint(self) -> Optional[Dict[str, Any]]:
        return self.store.to_snapshot() if self.snapshot_store is not None else None

    def _commit(self, checkpoint: Optional[Dict[str, Any]] = None) -> None:
        """
        Persist the current state. If the save fails, live state is rolled
        back to `checkpoint` before the error propagates, so the call that
        triggered the save has no effect.
        """
        if self.snapshot_store is None:
            return
        try:
            self.snapshot_store.save(self.snapshot())
        except OSError:
            log.exception("registry snapshot save failed (%s)", self.snapshot_store.path)
            if checkpoint is not None:
                self.store = store_from_snapshot(checkpoint)
            raise

    # ------------------------
    # Writes
    # ------------------------
    def propose(
        self,
        record_hash: RecordHashLike,
        vote_start: int,
        vote_end: int,
        *,
        sender: Optional[str] = None,
    ) -> int:
        proposer = self._sender(sender)
        digest = normalize_record_hash(record_hash)
        start = _as_int("vote_start", vote_start, InvalidProposalError)
        end = _as_int("vote_end", vote_end, InvalidProposalError)
        require(start >= 0, "vote_start must be non-negative", InvalidProposalError)
        require(start < end, "vote_start must be before vote_end", InvalidProposalError)

        record = PackedProposalRecord(record_hash=digest, vote_start=start, vote_end=end)

        with self._lock:
            checkpoint = self._checkpoint()
            pid = self.store.append(record)
            self._emit(proposal_created(self.store.next_event_seq(), pid, proposer, to_hex(digest), start, end))
            self._commit(checkpoint)

        log.info("proposal %s created by %s window=[%s, %s)", pid, proposer, start, end)
        return pid

    def set_voting_power(self, account: str, weight: int, *, sender: Optional[str] = None) -> Event:
        caller = self._sender(sender)
        target = normalize_account(account)
        w = _as_int("weight", weight, InvalidWeightError)
        require(w >= 0, "weight must be non-negative", InvalidWeightError)

        with self._lock:
            if caller != self.owner:
                log.warning("set_voting_power rejected: %s is not the owner", caller)
                raise NotAuthorizedError("only the owner can set voting power")
            checkpoint = self._checkpoint()
            previous = self.store.weight_of(target)
            self.store.weights[target] = w
            event = self._emit(voting_power_set(self.store.next_event_seq(), target, w, previous))
            self._commit(checkpoint)

        log.info("voting power of %s set to %s (was %s)", target, w, previous)
        return event

    def vote(self, proposal_id: int, support: bool, *, sender: Optional[str] = None) -> Event:
        voter = self._sender(sender)
        support = bool(support)

        with self._lock:
            record = self.store.get(proposal_id)
            if self.enforce_vote_window:
                now = int(self._clock())
                if not (record.vote_start <= now < record.vote_end):
                    log.warning(
                        "vote on proposal %s rejected: %s outside [%s, %s)",
                        proposal_id, now, record.vote_start, record.vote_end,
                    )
                    raise VotingClosedError(f"proposal {proposal_id} is not open for voting")

            checkpoint = self._checkpoint()
            weight = self.store.weight_of(voter)
            updated = self.store.apply_vote(proposal_id, voter, support, weight)
            event = self._emit(voted(self.store.next_event_seq(), proposal_id, voter, support, weight))
            self._commit(checkpoint)

        log.info(
            "vote on proposal %s by %s support=%s weight=%s (for=%s against=%s)",
            proposal_id, voter, support, weight, updated.votes_for, updated.votes_against,
        )
        return event

    # ------------------------
    # Views
    # ------------------------
    def proposal(self, proposal_id: int) -> PackedProposalRecord:
        with self._lock:
            return self.store.get(proposal_id)

    def view_packed_proposal_record(self, proposal_id: int) -> int:
        return self.proposal(proposal_id).pack()

    def view_vote_start(self, proposal_id: int) -> int:
        return self.proposal(proposal_id).vote_start

    def view_vote_end(self, proposal_id: int) -> int:
        return self.proposal(proposal_id).vote_end

    def view_votes_for(self, proposal_id: int) -> int:
        return self.proposal(proposal_id).votes_for

    def view_votes_against(self, proposal_id: int) -> int:
        return self.proposal(proposal_id).votes_against

    def proposal_count(self) -> int:
        with self._lock:
            return self.store.count()

    def voting_power(self, account: str) -> int:
        with self._lock:
            return self.store.weight_of(normalize_account(account))

    def events(self, name: Optional[str] = None) -> List[Event]:
        with self._lock:
            return [e for e in self.store.events if name is None or e.name == name]

    # ------------------------
    # Snapshots
    # ------------------------
    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {"owner": self.owner, "store": self.store.to_snapshot()}

    def save(self) -> None:
        require(self.snapshot_store is not None, "registry has no snapshot store")
        with self._lock:
            self._commit()

    @classmethod
    def from_snapshot(cls, snap: Dict[str, Any], **kwargs: Any) -> "VotingRegistry":
        require(isinstance(snap, dict) and "store" in snap, "malformed registry snapshot")
        return cls(str(snap.get("owner") or ""), store_from_snapshot(snap["store"]), **kwargs)


class RegistryCaller:
    """A registry handle whose writes are issued as `account`."""

    def __init__(self, registry: VotingRegistry, account: str) -> None:
        self.registry = registry
        self.account = account

    def propose(self, record_hash: RecordHashLike, vote_start: int, vote_end: int) -> int:
        return self.registry.propose(record_hash, vote_start, vote_end, sender=self.account)

    def set_voting_power(self, account: str, weight: int) -> Event:
        return self.registry.set_voting_power(account, weight, sender=self.account)

    def vote(self, proposal_id: int, support: bool) -> Event:
        return self.registry.vote(proposal_id, support, sender=self.account)

    def __getattr__(self, name: str) -> Any:
        # Views do not depend on the caller.
        if name.startswith("view_") or name in ("proposal", "proposal_count", "voting_power", "events"):
            return getattr(self.registry, name)
        raise AttributeError(name)


def load_registry(
    owner: str,
    snapshot_store: Optional[SnapshotStore] = None,
    *,
    backend: Optional[str] = None,
    enforce_vote_window: bool = True,
    clock: Optional[Clock] = None,
) -> VotingRegistry:
    """
    Restore a registry from `snapshot_store` when it holds a snapshot,
    otherwise start an empty one. The snapshot's owner and backend win over
    the arguments.
    """
    kwargs: Dict[str, Any] = {
        "enforce_vote_window": enforce_vote_window,
        "clock": clock,
        "snapshot_store": snapshot_store,
    }
    snap = snapshot_store.load() if snapshot_store is not None else None
    if snap is None:
        return VotingRegistry(owner, backend=backend, **kwargs)

    try:
        registry = VotingRegistry.from_snapshot(snap, **kwargs)
    except (KeyError, TypeError, ValueError) as e:
        raise VotingError(f"corrupt registry snapshot: {e}") from e

    if owner and normalize_account(owner) != registry.owner:
        log.warning("configured owner %s ignored; snapshot owner is %s", owner, registry.owner)
    log.info(
        "registry restored from %s: %s proposals, backend=%s",
        snapshot_store.path, registry.proposal_count(), registry.backend,
    )
    return registry
