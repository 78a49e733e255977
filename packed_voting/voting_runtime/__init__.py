# packed_voting/voting_runtime/__init__.py
from __future__ import annotations

"""
Voting runtime: packed proposal records, state stores and the registry.

Import the submodules directly; this package only re-exports the names
callers reach for most.
"""

from .errors import (
    FieldOverflowError,
    InvalidProposalError,
    InvalidWeightError,
    NotAuthorizedError,
    ProposalNotFoundError,
    UnknownBackendError,
    VotingClosedError,
    VotingError,
)
from .packing import PackedProposalRecord
from .registry import RegistryCaller, VotingRegistry, load_registry

__all__ = [
    "FieldOverflowError",
    "InvalidProposalError",
    "InvalidWeightError",
    "NotAuthorizedError",
    "PackedProposalRecord",
    "ProposalNotFoundError",
    "RegistryCaller",
    "UnknownBackendError",
    "VotingClosedError",
    "VotingError",
    "VotingRegistry",
    "load_registry",
]
