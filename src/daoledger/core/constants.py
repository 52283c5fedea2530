"""
Protocol constants for the governance ledger.

These values are part of the contract's semantics and are deliberately not
read from the environment: changing any of them changes what a stored state
means.
"""

# Flat fee deducted from a voter's balance per successful vote
VOTE_COST = 2

# Proposals accept votes while current_block <= created_at + VOTING_PERIOD_BLOCKS
VOTING_PERIOD_BLOCKS = 1000

FIRST_DAO_ID = 1
FIRST_PROPOSAL_ID = 1

# Balances are unsigned 128-bit integers
MAX_BALANCE = 2**128 - 1

# Revealed values are unsigned 64-bit integers, hashed as 8 big-endian bytes
REVEAL_VALUE_BYTES = 8
MAX_REVEAL_VALUE = 2**64 - 1

DEFAULT_HASH_ALGORITHM = "sha256"
