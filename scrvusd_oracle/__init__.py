"""scrvUSD share price oracle fed by block-hash and state-root evidence."""

from typing import NoReturn

from scrvusd_oracle.errors import (
    BlockNotFound,
    InvalidParameter,
    InvalidSnapshot,
    OracleError,
    ProofInvalid,
    StaleEvidence,
    Unauthorized,
)
from scrvusd_oracle.models import BlockHashEvidence, BlockHeader, Evidence, StateRootEvidence, VaultSnapshot
from scrvusd_oracle.oracle import PriceOracle
from scrvusd_oracle.verifier import Verifier

__version__ = "0.1.0"

__all__ = [
    "BlockHashEvidence",
    "BlockHeader",
    "BlockNotFound",
    "Evidence",
    "InvalidParameter",
    "InvalidSnapshot",
    "OracleError",
    "PriceOracle",
    "ProofInvalid",
    "StaleEvidence",
    "StateRootEvidence",
    "Unauthorized",
    "VaultSnapshot",
    "Verifier",
]


def _entry_point() -> NoReturn:
    """Entry point for the scrvusd-oracle script."""
    import sys

    from scrvusd_oracle.cli import main

    raise SystemExit(main(sys.argv[1:]))


def _clear_cache_entry_point() -> NoReturn:
    """Entry point for clearing the cache."""
    from scrvusd_oracle.cache import clear_cache

    clear_cache()
    raise SystemExit(0)
