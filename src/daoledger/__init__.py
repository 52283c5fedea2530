"""
daoledger - governance ledger with DAOs, block-bounded proposals and a
commit-reveal randomness beacon.
"""

from daoledger.contracts.dao_contract import DaoContract
from daoledger.core.events import EventCollector
from daoledger.core.exceptions import ContractError, DaoLedgerError, ErrorCode
from daoledger.core.host import CallContext
from daoledger.core.storage import InMemoryStore, JsonFileStore

__version__ = "0.1.0"

__all__ = [
    "CallContext",
    "ContractError",
    "DaoContract",
    "DaoLedgerError",
    "ErrorCode",
    "EventCollector",
    "InMemoryStore",
    "JsonFileStore",
    "__version__",
]
