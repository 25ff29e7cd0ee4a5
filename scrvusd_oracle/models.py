"""Data models for the scrvUSD price oracle."""

from collections.abc import Sequence
from dataclasses import astuple, dataclass
from typing import Any, Union

from scrvusd_oracle.constants import PRICE_PARAMS_FIELDS


@dataclass(frozen=True)
class VaultSnapshot:
    """Vault accounting state at one block, taken atomically from one evidence source."""

    # Field order follows the vault's price parameter array.
    total_debt: int
    total_idle: int
    # Raw storage total supply, including shares the vault holds for itself.
    total_supply: int
    full_profit_unlock_date: int
    # Shares unlocked per second, scaled by MAX_BPS_EXTENDED.
    profit_unlocking_rate: int
    last_profit_update: int
    # Vault shares held by the vault itself: profit that has not vested yet.
    balance_of_self: int

    @classmethod
    def from_params(cls, params: Sequence[Any]) -> "VaultSnapshot":
        """Build a snapshot from the 7-element price parameter sequence."""
        if len(params) != len(PRICE_PARAMS_FIELDS):
            raise ValueError(f"Expected {len(PRICE_PARAMS_FIELDS)} price parameters, got {len(params)}")
        return cls(*(int(p) for p in params))

    def as_params(self) -> tuple[int, ...]:
        return astuple(self)

    @property
    def total_assets(self) -> int:
        return self.total_idle + self.total_debt


@dataclass(frozen=True)
class BlockHeader:
    """Decoded block header. Hashing the encoded header is the decoder's job."""

    block_hash: str
    block_number: int
    timestamp: int
    state_root: str


@dataclass(frozen=True)
class BlockHashEvidence:
    """Path A: a recent header authenticated by its hash, plus a state proof against its root."""

    header: BlockHeader
    proof: Any


@dataclass(frozen=True)
class StateRootEvidence:
    """Path B: a historical block authenticated by its state root, plus a state proof."""

    block_number: int
    proof: Any


Evidence = Union[BlockHashEvidence, StateRootEvidence]
