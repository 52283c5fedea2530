"""
Governance ledger contract components.

Exports the public contract surface so callers can import from a stable path.
"""

from daoledger.contracts.beacon import CommitRevealBeacon, make_commitment
from daoledger.contracts.dao_contract import DaoContract
from daoledger.contracts.governance import Governance
from daoledger.contracts.ledger import Ledger

__all__ = [
    "CommitRevealBeacon",
    "DaoContract",
    "Governance",
    "Ledger",
    "make_commitment",
]
