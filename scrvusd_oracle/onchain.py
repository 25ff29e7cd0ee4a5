"""Onchain collaborators backed by an execution-layer RPC node."""

from collections.abc import Mapping
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from scrvusd_oracle.cache import cache_key, cached
from scrvusd_oracle.constants import MAX_BPS_EXTENDED, VAULT_V3_MIN_ABI
from scrvusd_oracle.errors import BlockNotFound, ProofInvalid
from scrvusd_oracle.formatters import as_int, normalize_hex_str
from scrvusd_oracle.models import BlockHeader, VaultSnapshot
from scrvusd_oracle.parsing import header_from_block, parse_snapshot

if TYPE_CHECKING:
    from web3 import Web3  # pragma: no cover


def get_block(w3: "Web3", block_number: int, *, use_cache: bool = True) -> dict[str, Any]:
    """Header fields of a block as a JSON-friendly dict. Raises BlockNotFound."""
    from web3.exceptions import BlockNotFound as Web3BlockNotFound  # pylint: disable=import-outside-toplevel

    def fetch() -> dict[str, Any]:
        try:
            block = w3.eth.get_block(block_number)
        except Web3BlockNotFound as ex:
            raise BlockNotFound(f"Block {block_number} not found") from ex
        return {
            "hash": normalize_hex_str(block["hash"]),
            "number": as_int(block["number"]),
            "timestamp": as_int(block["timestamp"]),
            "stateRoot": normalize_hex_str(block["stateRoot"]),
        }

    return cached(cache_key("block", block_number), fetch, use_cache=use_cache)

def rebuild_storage_snapshot(getters: Mapping[str, int], block_timestamp: int) -> VaultSnapshot:
    """
    Snapshot of the vault's storage from its getter values at a block.

    The vault's `totalSupply()` and `balanceOf(vault)` already net out shares that have unlocked by
    `block_timestamp`; storage still holds them until the next report. While profit is unlocking
    they are added back. Once it has fully unlocked the vault reports a zero balance, which prices
    the same as the storage values.
    """
    reported = parse_snapshot(getters)
    if reported.full_profit_unlock_date <= block_timestamp:
        return reported

    unlocked = (
        reported.profit_unlocking_rate * (block_timestamp - reported.last_profit_update) // MAX_BPS_EXTENDED
    )
    return replace(
        reported,
        total_supply=reported.total_supply + unlocked,
        balance_of_self=reported.balance_of_self + unlocked,
    )
def _vault_contract(w3: "Web3", vault_address: str) -> Any:
    return w3.eth.contract(address=w3.to_checksum_address(vault_address), abi=VAULT_V3_MIN_ABI)


def fetch_vault_snapshot(
    w3: "Web3", vault_address: str, block_number: int, *, use_cache: bool = True
) -> VaultSnapshot:
    """Read the vault's price parameters at `block_number`."""
    contract = _vault_contract(w3, vault_address)

    def fetch() -> list[int]:
        getters: dict[str, int] = {}
        for name in (
            "totalDebt",
            "totalIdle",
            "totalSupply",
            "fullProfitUnlockDate",
            "profitUnlockingRate",
            "lastProfitUpdate",
        ):
            getters[name] = getattr(contract.functions, name)().call(block_identifier=block_number)
        getters["balanceOfSelf"] = contract.functions.balanceOf(contract.address).call(
            block_identifier=block_number
        )
        block = get_block(w3, block_number, use_cache=use_cache)
        return list(rebuild_storage_snapshot(getters, block["timestamp"]).as_params())

    params = cached(cache_key("snapshot", vault_address, block_number), fetch, use_cache=use_cache)
    return parse_snapshot(params)


def fetch_profit_max_unlock_time(
    w3: "Web3", vault_address: str, block_number: int, *, use_cache: bool = True
) -> int:
    contract = _vault_contract(w3, vault_address)
    return cached(
        cache_key("profit_max_unlock_time", vault_address, block_number),
        lambda: as_int(contract.functions.profitMaxUnlockTime().call(block_identifier=block_number)),
        use_cache=use_cache,
    )


class RpcBlockSource:
    """Block headers and state roots as served by a node the caller trusts."""

    def __init__(self, w3: "Web3", *, use_cache: bool = True) -> None:
        self.w3 = w3
        self.use_cache = use_cache

    def get_block_header(self, block_number: int) -> BlockHeader:
        return header_from_block(get_block(self.w3, block_number, use_cache=self.use_cache))

    def get_state_root(self, block_number: int) -> str:
        return get_block(self.w3, block_number, use_cache=self.use_cache)["stateRoot"]


class RpcStateProver:
    """
    State "prover" that trusts the node's execution.

    The proof is the block number to read vault state at. The only check made is that the node's
    block carries the state root the evidence was authenticated against; storage proofs are not
    verified.
    """

    def __init__(self, w3: "Web3", vault_address: str, *, use_cache: bool = True) -> None:
        self.w3 = w3
        self.vault_address = vault_address
        self.use_cache = use_cache

    def _authenticate(self, state_root: str, proof: Any) -> int:
        block_number = as_int(proof)
        block = get_block(self.w3, block_number, use_cache=self.use_cache)
        if normalize_hex_str(block["stateRoot"]).lower() != normalize_hex_str(state_root).lower():
            raise ProofInvalid(f"State root mismatch at block {block_number}")
        return block_number

    def verify_and_extract(self, state_root: str, proof: Any) -> VaultSnapshot:
        block_number = self._authenticate(state_root, proof)
        return fetch_vault_snapshot(self.w3, self.vault_address, block_number, use_cache=self.use_cache)

    def extract_profit_max_unlock_time(self, state_root: str, proof: Any) -> int:
        block_number = self._authenticate(state_root, proof)
        return fetch_profit_max_unlock_time(self.w3, self.vault_address, block_number, use_cache=self.use_cache)
