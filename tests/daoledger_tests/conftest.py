import pytest

from daoledger.contracts.dao_contract import DaoContract
from daoledger.core.events import EventCollector
from daoledger.core.storage import InMemoryStore

from daoledger_tests.helpers import ALICE, BOB, OWNER, call


@pytest.fixture
def collector():
    return EventCollector()


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def contract(store, collector):
    """A freshly deployed contract owned by OWNER."""
    return DaoContract(OWNER, store=store, event_sink=collector, hash_algorithm="sha256")


@pytest.fixture
def funded_contract(contract, collector):
    """Contract where alice holds 10 and bob holds 5; nothing emitted yet."""
    contract.mint(call(OWNER), ALICE, 10)
    contract.mint(call(OWNER), BOB, 5)
    collector.clear()
    return contract
