"""Fixed-point share price math.

Everything here is a pure function of its arguments. All values are integers; divisions truncate
the way the vault's own accounting does, so results match the vault to the wei.
"""

from dataclasses import replace

from scrvusd_oracle.constants import INVERSE_PRICE_NUMERATOR, MAX_BPS_EXTENDED, PRICE_SCALE
from scrvusd_oracle.models import VaultSnapshot
from scrvusd_oracle.validation import validate_vault_snapshot


def unlocked_shares(s: VaultSnapshot, ts: int) -> int:
    """Shares of locked profit that have vested by `ts`, clamped to [0, balance_of_self]."""
    if s.full_profit_unlock_date > ts:
        # Still unlocking: linear in time since the vault's last report.
        unlocked = s.profit_unlocking_rate * max(0, ts - s.last_profit_update) // MAX_BPS_EXTENDED
    elif s.full_profit_unlock_date != 0:
        unlocked = s.balance_of_self
    else:
        unlocked = 0
    return min(unlocked, s.balance_of_self)


def circulating_supply(s: VaultSnapshot, ts: int) -> int:
    """Share supply at `ts`: vested profit shares are burned, unvested ones still count."""
    validate_vault_snapshot(s)
    return s.total_supply - unlocked_shares(s, ts)


def extrapolate_snapshot(s: VaultSnapshot, parameters_ts: int, *, period: int, max_duration: int) -> VaultSnapshot:
    """
    Snapshot assumed to hold at `parameters_ts`.

    If whole profit distribution periods have passed since the vault's last report, the vault is
    assumed to have reported the same gain at the end of each one. At most
    `max_duration // period` periods are extrapolated.
    """
    if period <= 0 or s.total_supply == 0 or s.last_profit_update + period >= parameters_ts:
        return s

    number_of_periods = min((parameters_ts - s.last_profit_update) // period, max_duration // period)
    if number_of_periods == 0:
        return s

    # Value of the shares that were locked at the last report.
    gain = s.balance_of_self * s.total_assets // s.total_supply
    total_idle = s.total_idle + gain * number_of_periods

    # Each report burns the vested shares and locks freshly minted ones for the new gain.
    total_supply = s.total_supply
    balance_of_self = s.balance_of_self
    for _ in range(number_of_periods):
        new_balance_of_self = balance_of_self * (total_supply - balance_of_self) // total_supply
        total_supply -= balance_of_self * balance_of_self // total_supply
        balance_of_self = new_balance_of_self

    if s.full_profit_unlock_date > s.last_profit_update:
        profit_unlocking_rate = balance_of_self * MAX_BPS_EXTENDED // (s.full_profit_unlock_date - s.last_profit_update)
    else:
        profit_unlocking_rate = 0

    return replace(
        s,
        total_idle=total_idle,
        total_supply=total_supply,
        balance_of_self=balance_of_self,
        profit_unlocking_rate=profit_unlocking_rate,
        full_profit_unlock_date=s.full_profit_unlock_date + number_of_periods * period,
        last_profit_update=s.last_profit_update + number_of_periods * period,
    )


def share_price(
    s: VaultSnapshot,
    *,
    ts: int,
    parameters_ts: int,
    period: int,
    max_duration: int,
    fallback: int,
) -> int:
    """
    Instantaneous share price scaled by PRICE_SCALE.

    Parameters are taken as of `parameters_ts`, profit unlocking is evaluated at `ts`.
    A zero circulating supply has no price; `fallback` is returned instead.
    """
    params = extrapolate_snapshot(s, parameters_ts, period=period, max_duration=max_duration)
    supply = circulating_supply(params, ts)
    if supply == 0:
        return fallback
    return params.total_assets * PRICE_SCALE // supply


def smoothed_price(
    last_price: int,
    target: int,
    *,
    elapsed: int,
    max_price_increment: int,
    max_duration: int,
) -> int:
    """
    Move `last_price` toward `target` by at most `max_price_increment` (fraction per second) of itself
    per elapsed second. Once `max_duration` seconds have elapsed, `target` is returned as is.
    """
    if elapsed <= 0:
        return last_price
    if elapsed >= max_duration:
        return target
    max_change = max_price_increment * elapsed * last_price // PRICE_SCALE
    if target > last_price + max_change:
        return last_price + max_change
    if target + max_change < last_price:
        return last_price - max_change
    return target


def inverse_price(price: int) -> int:
    """Price of the underlying in shares. Zero when shares are worth nothing."""
    if price == 0:
        return 0
    return INVERSE_PRICE_NUMERATOR // price


def relative_change(old_price: int, new_price: int) -> int:
    """|new - old| / old, scaled by PRICE_SCALE. Zero when there is no old price."""
    if old_price == 0:
        return 0
    return abs(new_price - old_price) * PRICE_SCALE // old_price
