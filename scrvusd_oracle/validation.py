"""Validation of vault snapshots before they reach price math."""

from dataclasses import fields

from scrvusd_oracle.errors import InvalidSnapshot
from scrvusd_oracle.models import VaultSnapshot


def validate_vault_snapshot(s: VaultSnapshot, *, warn_only: bool = False) -> list[str]:
    """
    Validate vault snapshot invariants.

    Returns list of validation issues. If warn_only=False, raises InvalidSnapshot on the first one.
    """
    issues: list[str] = []

    # 1. Non-negative values (all uint256 on-chain fields)
    for f in fields(s):
        value = getattr(s, f.name)
        if value < 0:
            msg = f"negative {f.name}: {value}"
            issues.append(msg)
            if not warn_only:
                raise InvalidSnapshot(msg)

    # 2. Shares held by the vault are part of the total supply
    if s.total_supply < s.balance_of_self:
        msg = f"balance_of_self {s.balance_of_self} exceeds total_supply {s.total_supply}"
        issues.append(msg)
        if not warn_only:
            raise InvalidSnapshot(msg)

    return issues


def validate_snapshot_sequence(prev: VaultSnapshot, cur: VaultSnapshot) -> list[str]:
    """
    Warnings for snapshots that look like they went back in vault time.

    Ordering is enforced by block number, not by these fields; this is only a diagnostic.
    """
    issues: list[str] = []
    if cur.last_profit_update < prev.last_profit_update:
        issues.append(
            f"last_profit_update went backwards: {prev.last_profit_update} -> {cur.last_profit_update}"
        )
    if cur.full_profit_unlock_date < prev.full_profit_unlock_date:
        issues.append(
            f"full_profit_unlock_date went backwards: {prev.full_profit_unlock_date} -> {cur.full_profit_unlock_date}"
        )
    return issues
