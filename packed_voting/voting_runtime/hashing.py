# packed_voting/voting_runtime/hashing.py
from __future__ import annotations

"""
Proposal record fingerprints.

Fingerprints are keccak-256 digests, the same digest an EVM client computes
for keccak256(bytes(text)), so a record hash built here matches one built
by a contract test harness for the same content.
"""

from typing import Union

from web3 import Web3

from .errors import InvalidProposalError, require
from .packing import HASH_BYTES

RecordHashLike = Union[bytes, bytearray, str]


def record_hash(text: str) -> bytes:
    """keccak256 of the UTF-8 encoding of `text`."""
    return bytes(Web3.keccak(text=text))


def normalize_record_hash(value: RecordHashLike) -> bytes:
    """
    Accept a 32-byte digest as raw bytes or as a hex string (with or
    without 0x) and return raw bytes.
    """
    if isinstance(value, str):
        raw = value.strip()
        if raw.lower().startswith("0x"):
            raw = raw[2:]
        try:
            value = bytes.fromhex(raw)
        except ValueError:
            raise InvalidProposalError("record_hash is not hex") from None
    require(isinstance(value, (bytes, bytearray)), "record_hash must be bytes or hex", InvalidProposalError)
    require(len(value) == HASH_BYTES, f"record_hash must be {HASH_BYTES} bytes", InvalidProposalError)
    return bytes(value)


def to_hex(value: bytes) -> str:
    return "0x" + bytes(value).hex()
