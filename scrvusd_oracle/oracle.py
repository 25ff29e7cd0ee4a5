"""scrvUSD share price oracle: raw price from vault snapshots and a rate-limited price feed."""

from collections.abc import Callable, Hashable

from scrvusd_oracle.access import AccessControl
from scrvusd_oracle.clock import SystemClock
from scrvusd_oracle.constants import (
    DEFAULT_ADMIN_ROLE,
    DEFAULT_MAX_PRICE_INCREMENT,
    DEFAULT_MAX_V2_DURATION,
    DEFAULT_PROFIT_MAX_UNLOCK_TIME,
    MAX_MAX_PRICE_INCREMENT,
    MAX_V2_DURATION,
    MIN_MAX_PRICE_INCREMENT,
    PRICE_PARAMETERS_VERIFIER,
    SEED_FULL_PROFIT_UNLOCK_DATE,
    SEED_TOTAL_IDLE,
    SEED_TOTAL_SUPPLY,
    UNLOCK_TIME_VERIFIER,
)
from scrvusd_oracle.errors import InvalidParameter, StaleEvidence
from scrvusd_oracle.models import VaultSnapshot
from scrvusd_oracle.pricing import inverse_price, relative_change, share_price, smoothed_price
from scrvusd_oracle.validation import validate_vault_snapshot


class PriceOracle:
    """
    Holds the latest accepted vault snapshot and the smoothing anchor.

    `raw_price()` is the unsmoothed share price. `price_v2()` moves from the anchor toward it at a
    bounded rate. Every accepted update re-anchors at the current `price_v2()` before the new snapshot
    is committed, so a fresh snapshot only starts pulling `price_v2()` once time passes.

    Writes name their caller with `sender=`; the oracle's own roles decide whether they go through.
    """

    def __init__(
        self,
        initial_price: int,
        *,
        admin: Hashable,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self._clock = clock or SystemClock()
        self.access = AccessControl(admin)

        self._snapshot = VaultSnapshot(
            total_debt=0,
            total_idle=SEED_TOTAL_IDLE,
            total_supply=SEED_TOTAL_SUPPLY,
            full_profit_unlock_date=SEED_FULL_PROFIT_UNLOCK_DATE,
            profit_unlocking_rate=0,
            last_profit_update=0,
            balance_of_self=0,
        )
        self._price_params_ts = 0
        self._last_block_number = 0
        self._profit_max_unlock_time = DEFAULT_PROFIT_MAX_UNLOCK_TIME

        self._anchor_price = int(initial_price)
        self._anchor_time = self._clock()

        self._max_price_increment = DEFAULT_MAX_PRICE_INCREMENT
        self._max_v2_duration = DEFAULT_MAX_V2_DURATION

    # ---- reads ----

    @property
    def snapshot(self) -> VaultSnapshot:
        return self._snapshot

    def price_params_ts(self) -> int:
        return self._price_params_ts

    def last_block_number(self) -> int:
        return self._last_block_number

    def profit_max_unlock_time(self) -> int:
        return self._profit_max_unlock_time

    def max_price_increment(self) -> int:
        return self._max_price_increment

    def max_v2_duration(self) -> int:
        return self._max_v2_duration

    def smoothing_anchor(self) -> tuple[int, int]:
        """(price, time) the current smoothing segment started from."""
        return self._anchor_price, self._anchor_time

    def raw_price(self, *, inverse: bool = False) -> int:
        """
        Instantaneous share price, scaled by 10**18.

        Vault parameters are taken as of the evidence timestamp; only profit unlocking follows the clock.
        """
        price = share_price(
            self._snapshot,
            ts=self._clock(),
            parameters_ts=self._price_params_ts,
            period=self._profit_max_unlock_time,
            max_duration=self._max_v2_duration,
            fallback=self._anchor_price,
        )
        return inverse_price(price) if inverse else price

    def price_v2(self, *, inverse: bool = False) -> int:
        """Rate-limited share price, scaled by 10**18."""
        price = smoothed_price(
            self._anchor_price,
            self.raw_price(),
            elapsed=self._clock() - self._anchor_time,
            max_price_increment=self._max_price_increment,
            max_duration=self._max_v2_duration,
        )
        return inverse_price(price) if inverse else price

    # ---- roles ----

    def has_role(self, role: str, principal: Hashable) -> bool:
        return self.access.has_role(role, principal)

    def grant_role(self, role: str, principal: Hashable, *, sender: Hashable) -> None:
        self.access.grant_role(role, principal, sender=sender)

    def revoke_role(self, role: str, principal: Hashable, *, sender: Hashable) -> None:
        self.access.revoke_role(role, principal, sender=sender)

    def renounce_role(self, role: str, *, sender: Hashable) -> None:
        self.access.renounce_role(role, sender=sender)

    # ---- verifier writes ----

    def _check_block_number(self, block_number: int) -> None:
        # Same-block resubmission is allowed so that evidence for a block can be corrected.
        if block_number < self._last_block_number:
            raise StaleEvidence(block_number, self._last_block_number)

    def update(self, snapshot: VaultSnapshot, timestamp: int, block_number: int, *, sender: Hashable) -> int:
        """
        Accept a verified snapshot taken at `timestamp` in block `block_number`.

        Returns the relative raw price change caused by the update, scaled by 10**18.
        """
        self.access.check_role(PRICE_PARAMETERS_VERIFIER, sender)
        self._check_block_number(block_number)
        validate_vault_snapshot(snapshot)

        now = self._clock()
        anchor_price = self.price_v2()
        current_price = share_price(
            self._snapshot,
            ts=self._price_params_ts,
            parameters_ts=self._price_params_ts,
            period=self._profit_max_unlock_time,
            max_duration=self._max_v2_duration,
            fallback=anchor_price,
        )

        self._last_block_number = block_number
        self._anchor_price = anchor_price
        self._anchor_time = now
        self._snapshot = snapshot
        self._price_params_ts = timestamp

        new_price = share_price(
            snapshot,
            ts=timestamp,
            parameters_ts=timestamp,
            period=self._profit_max_unlock_time,
            max_duration=self._max_v2_duration,
            fallback=anchor_price,
        )
        return relative_change(current_price, new_price)

    def update_profit_max_unlock_time(self, profit_max_unlock_time: int, block_number: int, *, sender: Hashable) -> bool:
        """Accept the vault's profit distribution period as of `block_number`. Returns whether it changed."""
        self.access.check_role(UNLOCK_TIME_VERIFIER, sender)
        self._check_block_number(block_number)

        self._last_block_number = block_number
        prev_value = self._profit_max_unlock_time
        self._profit_max_unlock_time = int(profit_max_unlock_time)
        return prev_value != self._profit_max_unlock_time

    # ---- admin ----

    def set_max_price_increment(self, max_price_increment: int, *, sender: Hashable) -> None:
        self.access.check_role(DEFAULT_ADMIN_ROLE, sender)
        if not MIN_MAX_PRICE_INCREMENT <= max_price_increment <= MAX_MAX_PRICE_INCREMENT:
            raise InvalidParameter(
                f"max_price_increment must be in [{MIN_MAX_PRICE_INCREMENT}, {MAX_MAX_PRICE_INCREMENT}]"
            )
        self._max_price_increment = int(max_price_increment)

    def set_max_v2_duration(self, max_v2_duration: int, *, sender: Hashable) -> None:
        self.access.check_role(DEFAULT_ADMIN_ROLE, sender)
        if not 0 <= max_v2_duration <= MAX_V2_DURATION:
            raise InvalidParameter(f"max_v2_duration must be in [0, {MAX_V2_DURATION}]")
        self._max_v2_duration = int(max_v2_duration)
