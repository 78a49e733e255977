# tests/test_store.py

import pytest

from packed_voting.voting_runtime.errors import UnknownBackendError, VotingError
from packed_voting.voting_runtime.hashing import record_hash
from packed_voting.voting_runtime.packing import PackedProposalRecord
from packed_voting.voting_runtime.registry import VotingRegistry
from packed_voting.voting_runtime.store import (
    BallotLogStore,
    NormalStore,
    PackedStore,
    RegistryStore,
    make_store,
    resolve_backend,
    store_from_snapshot,
)

from conftest import VOTE_END, VOTE_START


@pytest.mark.parametrize(
    "name, cls",
    [
        ("packed", PackedStore),
        ("normal", NormalStore),
        ("ballot_log", BallotLogStore),
        ("PackedVoting", PackedStore),
        ("NormalVoting", NormalStore),
        ("BadVoting", BallotLogStore),
        (None, PackedStore),
    ],
)
def test_backend_names(name, cls):
    assert isinstance(make_store(name), cls)


def test_unknown_backend():
    with pytest.raises(UnknownBackendError):
        resolve_backend("FancyVoting")


def test_packed_store_keeps_one_word_per_proposal():
    store = PackedStore()
    rec = PackedProposalRecord(record_hash("a"), VOTE_START, VOTE_END)
    pid = store.append(rec)
    assert store.packed_word(pid) == rec.pack()

    store.apply_vote(pid, "0xabc", True, 9)
    assert PackedProposalRecord.unpack(store.packed_word(pid)).votes_for == 9


def test_ballot_log_recomputes_from_ballots():
    store = BallotLogStore()
    a = store.append(PackedProposalRecord(record_hash("a"), VOTE_START, VOTE_END))
    b = store.append(PackedProposalRecord(record_hash("b"), VOTE_START, VOTE_END))

    store.apply_vote(a, "0x1", True, 3)
    store.apply_vote(b, "0x1", False, 4)
    store.apply_vote(a, "0x2", False, 5)

    assert len(store.ballots) == 3
    assert (store.get(a).votes_for, store.get(a).votes_against) == (3, 5)
    assert (store.get(b).votes_for, store.get(b).votes_against) == (0, 4)


def _populated(backend, accounts, clock):
    reg = VotingRegistry(accounts["root"], backend=backend, clock=clock)
    reg.propose(record_hash("first"), VOTE_START, VOTE_END)
    reg.propose(record_hash("second"), VOTE_START + 10, VOTE_END)
    reg.set_voting_power(accounts["user1"], 100)
    reg.set_voting_power(accounts["user2"], 50)
    reg.connect(accounts["user1"]).vote(0, True)
    reg.connect(accounts["user2"]).vote(0, False)
    reg.connect(accounts["user2"]).vote(1, True)
    return reg


def test_backends_agree(accounts, clock):
    regs = [_populated(b, accounts, clock) for b in ("packed", "normal", "ballot_log")]
    for pid in (0, 1):
        packed = {r.view_packed_proposal_record(pid) for r in regs}
        assert len(packed) == 1
    events = [[e.to_dict() for e in r.events()] for r in regs]
    assert events[0] == events[1] == events[2]


def test_snapshot_restores_same_state(backend, accounts, clock):
    reg = _populated(backend, accounts, clock)
    snap = reg.store.to_snapshot()

    restored = store_from_snapshot(snap)
    assert restored.backend == reg.store.backend
    assert restored.count() == 2
    for pid in (0, 1):
        assert restored.get(pid) == reg.store.get(pid)
    assert restored.weights == reg.store.weights
    assert [e.to_dict() for e in restored.events] == [e.to_dict() for e in reg.store.events]


def test_snapshot_version_checked():
    snap = PackedStore().to_snapshot()
    snap["version"] = 99
    with pytest.raises(VotingError):
        store_from_snapshot(snap)


def test_store_must_implement_storage_surface():
    class Incomplete(RegistryStore):
        backend = "incomplete"

        def count(self):
            return 0

    with pytest.raises(TypeError):
        Incomplete()
    assert not hasattr(BallotLogStore, "_put")
