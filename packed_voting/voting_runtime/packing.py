# packed_voting/voting_runtime/packing.py
from __future__ import annotations

"""
Packed proposal record codec.

A proposal's four scalar fields are combined into one fixed-width unsigned
integer (512 bits), most significant field first:

    bits 511..256   record_hash     (256)
    bits 255..192   vote_start      (64)
    bits 191..128   vote_end        (64)
    bits 127..64    votes_for       (64)
    bits  63..0     votes_against   (64)

All bit manipulation for proposals lives here. Callers work with
PackedProposalRecord values and only see the integer at the boundary
(view_packed_proposal_record, snapshots, the HTTP layer).
"""

from dataclasses import dataclass, replace
from typing import Tuple

from .errors import FieldOverflowError, InvalidProposalError, require

HASH_BYTES = 32

HASH_BITS = HASH_BYTES * 8
TIME_BITS = 64
TALLY_BITS = 64

# (name, width) from most significant to least significant.
LAYOUT: Tuple[Tuple[str, int], ...] = (
    ("record_hash", HASH_BITS),
    ("vote_start", TIME_BITS),
    ("vote_end", TIME_BITS),
    ("votes_for", TALLY_BITS),
    ("votes_against", TALLY_BITS),
)

PACKED_BITS = sum(width for _, width in LAYOUT)
PACKED_BYTES = PACKED_BITS // 8
PACKED_HEX_DIGITS = PACKED_BYTES * 2


def _mask(width: int) -> int:
    return (1 << width) - 1


def _check_field(name: str, value: int, width: int) -> None:
    require(isinstance(value, int) and not isinstance(value, bool), f"{name} must be an int", FieldOverflowError)
    require(value >= 0, f"{name} must be non-negative", FieldOverflowError)
    require(value <= _mask(width), f"{name} exceeds {width} bits", FieldOverflowError)


@dataclass(frozen=True)
class PackedProposalRecord:
    record_hash: bytes
    vote_start: int
    vote_end: int
    votes_for: int = 0
    votes_against: int = 0

    def __post_init__(self) -> None:
        require(
            isinstance(self.record_hash, (bytes, bytearray)) and len(self.record_hash) == HASH_BYTES,
            f"record_hash must be {HASH_BYTES} bytes",
            InvalidProposalError,
        )
        # Normalize bytearray/HexBytes so equality and hashing stay plain bytes.
        object.__setattr__(self, "record_hash", bytes(self.record_hash))
        _check_field("vote_start", self.vote_start, TIME_BITS)
        _check_field("vote_end", self.vote_end, TIME_BITS)
        _check_field("votes_for", self.votes_for, TALLY_BITS)
        _check_field("votes_against", self.votes_against, TALLY_BITS)

    # ------------------------------------------------------------------
    # Encode / decode
    # ------------------------------------------------------------------

    def pack(self) -> int:
        out = 0
        for name, width in LAYOUT:
            value = getattr(self, name)
            if name == "record_hash":
                value = int.from_bytes(value, "big")
            out = (out << width) | value
        return out

    @classmethod
    def unpack(cls, packed: int) -> "PackedProposalRecord":
        _check_field("packed", packed, PACKED_BITS)
        fields = {}
        shift = PACKED_BITS
        for name, width in LAYOUT:
            shift -= width
            fields[name] = (packed >> shift) & _mask(width)
        fields["record_hash"] = fields["record_hash"].to_bytes(HASH_BYTES, "big")
        return cls(**fields)

    def to_hex(self) -> str:
        return "0x" + format(self.pack(), f"0{PACKED_HEX_DIGITS}x")

    @classmethod
    def from_hex(cls, text: str) -> "PackedProposalRecord":
        raw = text[2:] if text.lower().startswith("0x") else text
        require(len(raw) == PACKED_HEX_DIGITS, f"packed record must be {PACKED_HEX_DIGITS} hex digits", FieldOverflowError)
        try:
            value = int(raw, 16)
        except ValueError:
            raise FieldOverflowError("packed record is not hex") from None
        return cls.unpack(value)

    # ------------------------------------------------------------------
    # Tally updates
    # ------------------------------------------------------------------

    def with_vote(self, support: bool, weight: int) -> "PackedProposalRecord":
        """
        Return a copy with `weight` added to the chosen tally.

        Raises FieldOverflowError if the tally would no longer fit; the
        original record is unchanged either way.
        """
        if support:
            return replace(self, votes_for=self.votes_for + int(weight))
        return replace(self, votes_against=self.votes_against + int(weight))

    def as_dict(self) -> dict:
        return {
            "record_hash": "0x" + self.record_hash.hex(),
            "vote_start": self.vote_start,
            "vote_end": self.vote_end,
            "votes_for": self.votes_for,
            "votes_against": self.votes_against,
        }
