"""Building snapshots and headers from raw inputs."""

from collections.abc import Mapping, Sequence
from typing import Any

from scrvusd_oracle.constants import PRICE_PARAMS_FIELDS
from scrvusd_oracle.formatters import as_int, normalize_hex_str
from scrvusd_oracle.models import BlockHeader, VaultSnapshot


def parse_snapshot(data: Mapping[str, Any] | Sequence[Any]) -> VaultSnapshot:
    """
    Parse a VaultSnapshot from either the flat price parameter sequence or a mapping.

    Mappings may use the snapshot's field names or the vault's camelCase getter names
    (e.g. `totalIdle`, `balanceOfSelf`). Values may be ints, decimal strings or 0x-hex strings.
    """
    if isinstance(data, Mapping):
        values = []
        for name in PRICE_PARAMS_FIELDS:
            raw = data.get(name, data.get(_camel(name)))
            if raw is None:
                raise ValueError(f"Missing price parameter: {name}")
            values.append(as_int(raw))
        return VaultSnapshot(*values)
    if isinstance(data, (str, bytes)):
        raise ValueError("Unexpected snapshot format (expected a sequence or a mapping)")
    return VaultSnapshot.from_params([as_int(v) for v in data])


def header_from_block(block: Mapping[str, Any]) -> BlockHeader:
    """Decoded header from an eth_getBlock result (web3 AttributeDict or cached dict)."""
    return BlockHeader(
        block_hash=normalize_hex_str(block["hash"]),
        block_number=as_int(block["number"]),
        timestamp=as_int(block["timestamp"]),
        state_root=normalize_hex_str(block["stateRoot"]),
    )


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)
