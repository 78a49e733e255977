import pathlib
import sys

import pytest

# Ensure repo root (containing the packed_voting package) is on sys.path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from packed_voting.voting_runtime.registry import VotingRegistry

VOTE_START = 1673849488
VOTE_END = 2673849488

ROOT_ACCOUNT = "0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266"
USER1_ACCOUNT = "0x70997970c51812dc3a010c7d01b50e0d17dc79c8"
USER2_ACCOUNT = "0x3c44cdddb6a900fa2b585dd299e03d12fa4293bc"


class FixedClock:
    """Registry clock that only moves when a test moves it."""

    def __init__(self, now: int) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


@pytest.fixture
def accounts():
    return {"root": ROOT_ACCOUNT, "user1": USER1_ACCOUNT, "user2": USER2_ACCOUNT}


@pytest.fixture
def clock():
    # Inside [VOTE_START, VOTE_END)
    return FixedClock(2_000_000_000)


@pytest.fixture(params=["packed", "normal", "ballot_log"])
def backend(request):
    return request.param


@pytest.fixture
def registry(accounts, clock, backend):
    """Fresh registry per test, owned by the root account."""
    return VotingRegistry(accounts["root"], backend=backend, clock=clock)
