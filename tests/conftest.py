"""
Shared fixtures: a deterministic source chain, three equally weighted
authorities and the honest justification for block 1 in which
alice, bob and charlie precommit for blocks 2, 3 and 4.
"""

import pytest

from scenarios.config import JustificationBuilder, Keyring, SimulationChain
from scenarios.grandpa_threats import make_honest_setup

TEST_GRANDPA_ROUND = 1
TEST_GRANDPA_SET_ID = 1


@pytest.fixture
def chain():
    return SimulationChain(chain_id="chain-S")


@pytest.fixture
def keyring():
    return Keyring(["alice", "bob", "charlie"])


@pytest.fixture
def builder(keyring):
    return JustificationBuilder(keyring=keyring, round=TEST_GRANDPA_ROUND, set_id=TEST_GRANDPA_SET_ID)


@pytest.fixture
def voters(keyring):
    return keyring.voter_set()


@pytest.fixture
def honest(chain):
    return make_honest_setup(
        chain,
        {"round": TEST_GRANDPA_ROUND, "set_id": TEST_GRANDPA_SET_ID},
    )
