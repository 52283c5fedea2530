"""Shared accounts and call helpers for the ledger tests."""

from daoledger.core.host import CallContext

OWNER = "root"
ALICE = "alice"
BOB = "bob"
CAROL = "carol"


def call(caller: str, block: int = 0) -> CallContext:
    """Build the host context for one call."""
    return CallContext(caller=caller, block_number=block)
