"""
Shared pytest fixtures for the ballot ledger test suite.

- Fresh in-memory world state per test
- Voting and asset-transfer contracts
- FastAPI TestClient bound to the in-memory state
"""

import pytest
from fastapi.testclient import TestClient

from ballot_ledger.config import Settings
from ballot_ledger.contract import VotingContract
from ballot_ledger.legacy import AssetTransferContract
from ballot_ledger.main import create_app
from ballot_ledger.storage import InMemoryWorldState


@pytest.fixture
def state() -> InMemoryWorldState:
    """Empty world state, isolated per test."""
    return InMemoryWorldState()


@pytest.fixture
def contract() -> VotingContract:
    return VotingContract()


@pytest.fixture
def assets() -> AssetTransferContract:
    return AssetTransferContract()


@pytest.fixture
def election(state, contract) -> InMemoryWorldState:
    """World state holding voter1, candidate1 and candidate2 with no votes."""
    contract.register_voter(state, "voter1", "John Doe")
    contract.create_candidate(state, "candidate1", "Alice", "Partido A")
    contract.create_candidate(state, "candidate2", "Bob", "Partido B")
    return state


@pytest.fixture
def test_client(state) -> TestClient:
    app = create_app(settings=Settings(), world_state=state)
    with TestClient(app) as client:
        yield client
