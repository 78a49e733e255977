# packed_voting/voting_runtime/errors.py
from __future__ import annotations

"""
Registry error kinds.

Every rejected registry call raises a subclass of VotingError before any
state is touched, so a failed call never leaves a partial write behind.
"""


class VotingError(RuntimeError):
    pass


class ProposalNotFoundError(VotingError):
    pass


class NotAuthorizedError(VotingError):
    pass


class VotingClosedError(VotingError):
    pass


class InvalidProposalError(VotingError):
    pass


class InvalidWeightError(VotingError):
    pass


class FieldOverflowError(VotingError):
    pass


class UnknownBackendError(VotingError):
    pass


def require(cond: bool, msg: str, exc: type = VotingError) -> None:
    if not cond:
        raise exc(msg)
