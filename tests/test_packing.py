# tests/test_packing.py

import pytest

from packed_voting.voting_runtime.errors import FieldOverflowError, InvalidProposalError
from packed_voting.voting_runtime.hashing import normalize_record_hash, record_hash
from packed_voting.voting_runtime.packing import (
    PACKED_BITS,
    PACKED_HEX_DIGITS,
    PackedProposalRecord,
)

ONE_HASH = b"\x00" * 31 + b"\x01"


def test_layout_is_512_bits():
    assert PACKED_BITS == 512
    assert PACKED_HEX_DIGITS == 128


def test_field_positions():
    """
    Fields sit most-significant first:
    hash | vote_start | vote_end | votes_for | votes_against
    """
    rec = PackedProposalRecord(ONE_HASH, vote_start=2, vote_end=3, votes_for=4, votes_against=5)
    assert rec.pack() == (1 << 256) | (2 << 192) | (3 << 128) | (4 << 64) | 5


def test_unpack_inverts_pack():
    rec = PackedProposalRecord(record_hash("test"), 1673849488, 2673849488, 300, 100)
    assert PackedProposalRecord.unpack(rec.pack()) == rec


def test_hex_form_is_fixed_width():
    rec = PackedProposalRecord(b"\x00" * 32, 0, 1)
    text = rec.to_hex()
    assert text.startswith("0x")
    assert len(text) == 2 + PACKED_HEX_DIGITS
    assert PackedProposalRecord.from_hex(text) == rec


@pytest.mark.parametrize("bad", ["0x1234", "zz" * 64])
def test_from_hex_rejects_bad_text(bad):
    with pytest.raises(FieldOverflowError):
        PackedProposalRecord.from_hex(bad)


def test_unpack_rejects_values_wider_than_layout():
    with pytest.raises(FieldOverflowError):
        PackedProposalRecord.unpack(1 << PACKED_BITS)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"vote_start": -1, "vote_end": 1},
        {"vote_start": 0, "vote_end": 1 << 64},
        {"vote_start": 0, "vote_end": 1, "votes_for": 1 << 64},
        {"vote_start": 0, "vote_end": 1, "votes_against": -5},
    ],
)
def test_fields_must_fit(kwargs):
    with pytest.raises(FieldOverflowError):
        PackedProposalRecord(ONE_HASH, **kwargs)


def test_hash_must_be_32_bytes():
    with pytest.raises(InvalidProposalError):
        PackedProposalRecord(b"\x01" * 31, 0, 1)


def test_with_vote_returns_new_record():
    rec = PackedProposalRecord(ONE_HASH, 0, 10)
    yes = rec.with_vote(True, 100)
    no = yes.with_vote(False, 25)

    assert rec.votes_for == 0
    assert (yes.votes_for, yes.votes_against) == (100, 0)
    assert (no.votes_for, no.votes_against) == (100, 25)


def test_with_vote_overflow_raises():
    rec = PackedProposalRecord(ONE_HASH, 0, 10, votes_against=(1 << 64) - 1)
    with pytest.raises(FieldOverflowError):
        rec.with_vote(False, 1)


# ============================================================
# hashing
# ============================================================

def test_record_hash_is_keccak256():
    assert record_hash("test").hex() == "9c22ff5f21f0b81b113e63f7db6da94fedef11b2119b4088b89664fb9a3cb658"


def test_normalize_record_hash_forms():
    digest = record_hash("test")
    assert normalize_record_hash(digest) == digest
    assert normalize_record_hash(bytearray(digest)) == digest
    assert normalize_record_hash(digest.hex()) == digest
    assert normalize_record_hash("0x" + digest.hex()) == digest
    assert normalize_record_hash("0X" + digest.hex().upper()) == digest


@pytest.mark.parametrize("bad", ["0x12", b"\x00" * 33, 12345])
def test_normalize_record_hash_rejects(bad):
    with pytest.raises(InvalidProposalError):
        normalize_record_hash(bad)
