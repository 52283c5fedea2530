"""
What the contract needs from its execution host.

The host authenticates the caller, supplies the current block height and
orders calls. Both arrive explicitly as a CallContext on every
state-changing call; the contract never reads them from ambient state.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Callable

from daoledger.core.constants import DEFAULT_HASH_ALGORITHM

Hasher = Callable[[bytes], bytes]


@dataclass(frozen=True)
class CallContext:
    """Authenticated caller and current block for one contract call."""

    caller: str
    block_number: int

    def __post_init__(self) -> None:
        if not isinstance(self.caller, str) or not self.caller:
            raise ValueError("Caller must be a non-empty account id.")
        if (
            not isinstance(self.block_number, int)
            or isinstance(self.block_number, bool)
            or self.block_number < 0
        ):
            raise ValueError("Block number must be a non-negative integer.")


def sha256_digest(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def hasher_for(algorithm: str = DEFAULT_HASH_ALGORITHM) -> Hasher:
    """Return a one-shot digest function for a hashlib algorithm name."""
    if algorithm == "sha256":
        return sha256_digest

    hashlib.new(algorithm)  # fail fast on unknown names

    def _digest(data: bytes) -> bytes:
        return hashlib.new(algorithm, data).digest()

    _digest.__name__ = f"{algorithm}_digest"
    return _digest
