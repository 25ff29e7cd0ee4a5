import pytest

from conftest import START_TS, price_snapshot
from scrvusd_oracle.constants import (
    DEFAULT_ADMIN_ROLE,
    DEFAULT_MAX_PRICE_INCREMENT,
    DEFAULT_MAX_V2_DURATION,
    DEFAULT_PROFIT_MAX_UNLOCK_TIME,
    MAX_V2_DURATION,
    PRICE_PARAMETERS_VERIFIER,
    WEEK,
)
from scrvusd_oracle.errors import InvalidParameter, InvalidSnapshot, StaleEvidence, Unauthorized
from scrvusd_oracle.models import VaultSnapshot
from scrvusd_oracle.oracle import PriceOracle


def test_initial_state(soracle):
    assert soracle.raw_price() == 10**18
    assert soracle.price_v2() == 10**18
    assert soracle.last_block_number() == 0
    assert soracle.price_params_ts() == 0
    assert soracle.max_price_increment() == DEFAULT_MAX_PRICE_INCREMENT
    assert soracle.max_v2_duration() == DEFAULT_MAX_V2_DURATION
    assert soracle.profit_max_unlock_time() == DEFAULT_PROFIT_MAX_UNLOCK_TIME
    assert soracle.smoothing_anchor() == (10**18, START_TS)


def test_ownership(soracle, admin, anne):
    assert soracle.has_role(DEFAULT_ADMIN_ROLE, admin)

    # Reachable for admin
    soracle.set_max_price_increment(DEFAULT_MAX_PRICE_INCREMENT + 1, sender=admin)
    soracle.set_max_v2_duration(DEFAULT_MAX_V2_DURATION + 1, sender=admin)

    # Not reachable for third party
    with pytest.raises(Unauthorized):
        soracle.set_max_price_increment(DEFAULT_MAX_PRICE_INCREMENT + 2, sender=anne)
    with pytest.raises(Unauthorized):
        soracle.set_max_v2_duration(DEFAULT_MAX_V2_DURATION + 2, sender=anne)

    # Transferable
    soracle.grant_role(DEFAULT_ADMIN_ROLE, anne, sender=admin)
    soracle.revoke_role(DEFAULT_ADMIN_ROLE, admin, sender=admin)
    assert soracle.has_role(DEFAULT_ADMIN_ROLE, anne)
    assert not soracle.has_role(DEFAULT_ADMIN_ROLE, admin)

    # Reachable for new owner
    soracle.set_max_price_increment(DEFAULT_MAX_PRICE_INCREMENT + 2, sender=anne)
    soracle.set_max_v2_duration(DEFAULT_MAX_V2_DURATION + 2, sender=anne)

    # Renounceable, making it immutable
    soracle.revoke_role(DEFAULT_ADMIN_ROLE, anne, sender=anne)
    with pytest.raises(Unauthorized):
        soracle.set_max_price_increment(DEFAULT_MAX_PRICE_INCREMENT + 1, sender=anne)
    with pytest.raises(Unauthorized):
        soracle.set_max_v2_duration(DEFAULT_MAX_V2_DURATION + 1, sender=anne)
    with pytest.raises(Unauthorized):
        soracle.grant_role(DEFAULT_ADMIN_ROLE, anne, sender=anne)

    assert soracle.max_price_increment() == DEFAULT_MAX_PRICE_INCREMENT + 2
    assert soracle.max_v2_duration() == DEFAULT_MAX_V2_DURATION + 2


def test_setters(soracle, admin):
    soracle.set_max_price_increment(DEFAULT_MAX_PRICE_INCREMENT + 1, sender=admin)
    assert soracle.max_price_increment() == DEFAULT_MAX_PRICE_INCREMENT + 1

    soracle.set_max_v2_duration(DEFAULT_MAX_V2_DURATION + 1, sender=admin)
    assert soracle.max_v2_duration() == DEFAULT_MAX_V2_DURATION + 1


@pytest.mark.parametrize("value", [10**8 - 1, 10**18 + 1])
def test_set_max_price_increment_bounds(soracle, admin, value):
    with pytest.raises(InvalidParameter):
        soracle.set_max_price_increment(value, sender=admin)
    assert soracle.max_price_increment() == DEFAULT_MAX_PRICE_INCREMENT


@pytest.mark.parametrize("value", [-1, MAX_V2_DURATION + 1])
def test_set_max_v2_duration_bounds(soracle, admin, value):
    with pytest.raises(InvalidParameter):
        soracle.set_max_v2_duration(value, sender=admin)
    assert soracle.max_v2_duration() == DEFAULT_MAX_V2_DURATION


def test_update_profit_max_unlock_time(soracle, verifier, anne):
    # Not available to a third party
    with pytest.raises(Unauthorized):
        soracle.update_profit_max_unlock_time(8 * 86400, 10, sender=anne)

    assert soracle.update_profit_max_unlock_time(8 * 86400, 10, sender=verifier)
    assert soracle.last_block_number() == 10
    assert soracle.profit_max_unlock_time() == 8 * 86400

    # Linearizability by block number
    with pytest.raises(StaleEvidence):
        soracle.update_profit_max_unlock_time(8 * 86400, 8, sender=verifier)

    # "Breaking" resubmit at same block
    assert soracle.update_profit_max_unlock_time(6 * 86400, 10, sender=verifier)
    assert soracle.profit_max_unlock_time() == 6 * 86400
    assert not soracle.update_profit_max_unlock_time(6 * 86400, 10, sender=verifier)


def test_update_price(soracle, clock, verifier, anne):
    ts = clock()
    price_1_5_parameters = [3, 0, 2, ts + 7 * 86400, 0, 0, 0]
    price_0_5_parameters = [2, 0, 3, ts + 7 * 86400, 0, 0, 0]

    # Not available to a third party
    with pytest.raises(Unauthorized):
        soracle.update(VaultSnapshot.from_params(price_1_5_parameters), ts + 100, 10, sender=anne)

    soracle.update(VaultSnapshot.from_params(price_1_5_parameters), ts + 100, 10, sender=verifier)
    assert soracle.last_block_number() == 10
    assert soracle.raw_price() == 3 * 10**18 // 2

    # Linearizability by block number
    with pytest.raises(StaleEvidence) as excinfo:
        soracle.update(VaultSnapshot.from_params(price_1_5_parameters), ts + 101, 8, sender=verifier)
    assert excinfo.value.block_number == 8
    assert excinfo.value.last_block_number == 10
    assert soracle.price_params_ts() == ts + 100

    # "Breaking" resubmit at same block: the second submission wins
    soracle.update(VaultSnapshot.from_params(price_0_5_parameters), ts + 99, 10, sender=verifier)
    assert soracle.snapshot == VaultSnapshot.from_params(price_0_5_parameters)
    assert soracle.price_params_ts() == ts + 99
    assert soracle.last_block_number() == 10
    assert soracle.raw_price() == 2 * 10**18 // 3


def test_stale_rejection_is_shared_between_entry_points(soracle, clock, verifier):
    soracle.update_profit_max_unlock_time(WEEK, 10, sender=verifier)
    with pytest.raises(StaleEvidence):
        soracle.update(price_snapshot(2, 1, clock()), clock(), 9, sender=verifier)

    soracle.update(price_snapshot(2, 1, clock()), clock(), 12, sender=verifier)
    with pytest.raises(StaleEvidence):
        soracle.update_profit_max_unlock_time(WEEK, 11, sender=verifier)
    assert soracle.profit_max_unlock_time() == WEEK
    assert soracle.last_block_number() == 12


def test_last_block_number_is_non_decreasing(soracle, clock, verifier):
    seen = []
    for block_number in [3, 7, 5, 7, 2, 9, 9, 8]:
        try:
            soracle.update(price_snapshot(block_number, 1, clock()), clock(), block_number, sender=verifier)
        except StaleEvidence:
            pass
        seen.append(soracle.last_block_number())
    assert seen == [3, 7, 7, 7, 7, 9, 9, 9]
    assert seen == sorted(seen)


def test_update_returns_relative_price_change(soracle, clock, verifier):
    assert soracle.update(price_snapshot(3, 2, clock()), clock(), 1, sender=verifier) == 5 * 10**17
    assert soracle.update(price_snapshot(3, 4, clock()), clock(), 2, sender=verifier) == 5 * 10**17


def test_invalid_snapshot_is_rejected_without_state_change(soracle, clock, verifier):
    bad = VaultSnapshot(0, 10, 5, 0, 0, clock(), 6)  # balance_of_self > total_supply
    with pytest.raises(InvalidSnapshot):
        soracle.update(bad, clock(), 1, sender=verifier)
    assert soracle.last_block_number() == 0
    assert soracle.price_params_ts() == 0
    assert soracle.raw_price() == 10**18


def test_degenerate_supply_returns_last_known_price(soracle, clock, verifier):
    soracle.update(price_snapshot(5, 0, clock()), clock(), 1, sender=verifier)
    assert soracle.raw_price() == 10**18
    clock.advance(3600)
    assert soracle.raw_price() == 10**18
    assert soracle.price_v2() == 10**18


def test_inverse_prices(soracle, clock, verifier):
    soracle.update(price_snapshot(2, 1, clock()), clock(), 1, sender=verifier)
    assert soracle.raw_price() == 2 * 10**18
    assert soracle.raw_price(inverse=True) == 5 * 10**17
    assert soracle.price_v2(inverse=True) == 10**18


def test_inverse_of_worthless_shares(soracle, clock, verifier):
    soracle.update(price_snapshot(0, 5, clock()), clock(), 1, sender=verifier)
    assert soracle.raw_price() == 0
    assert soracle.raw_price(inverse=True) == 0
    assert soracle.price_v2(inverse=True) == 10**18

    clock.advance(soracle.max_v2_duration())
    assert soracle.price_v2() == 0
    assert soracle.price_v2(inverse=True) == 0


def test_price_v2_rate_limit(soracle, clock, verifier):
    soracle.update(price_snapshot(2, 1, clock()), clock(), 1, sender=verifier)
    assert soracle.price_v2() == 10**18

    clock.advance(100)
    assert soracle.price_v2() == 10**18 + DEFAULT_MAX_PRICE_INCREMENT * 100

    # Converged once the smoothing window is over
    clock.advance(DEFAULT_MAX_V2_DURATION)
    assert soracle.price_v2() == soracle.raw_price() == 2 * 10**18


def test_price_v2_moves_at_most_max_price_increment(soracle, admin, clock, verifier):
    soracle.set_max_price_increment(10**15, sender=admin)
    increment = soracle.max_price_increment()
    targets = [(3, 1), (1, 2), (5, 4), (1, 1), (9, 2), (1, 3)]
    prev = soracle.price_v2()
    for block_number, (assets, supply) in enumerate(targets, start=1):
        soracle.update(price_snapshot(assets, supply, clock()), clock(), block_number, sender=verifier)
        # Re-anchoring never jumps
        anchor_price, _ = soracle.smoothing_anchor()
        assert anchor_price == prev
        for elapsed in (1, 12, 60):
            clock.advance(elapsed)
            cur = soracle.price_v2()
            assert abs(cur - prev) <= increment * elapsed * anchor_price // 10**18 + 1
            prev = cur


def test_price_v2_converges_after_max_v2_duration(soracle, admin, clock, verifier):
    soracle.set_max_v2_duration(3600, sender=admin)
    soracle.update(price_snapshot(10, 1, clock()), clock(), 1, sender=verifier)

    clock.advance(3599)
    assert soracle.price_v2() < soracle.raw_price()
    clock.advance(1)
    assert soracle.price_v2() == soracle.raw_price() == 10 * 10**18


def test_setters_apply_without_reanchoring(soracle, admin, clock, verifier):
    soracle.update(price_snapshot(2, 1, clock()), clock(), 1, sender=verifier)
    anchor = soracle.smoothing_anchor()
    clock.advance(10)
    soracle.set_max_price_increment(10**16, sender=admin)
    assert soracle.smoothing_anchor() == anchor
    assert soracle.price_v2() == 10**18 + 10**16 * 10


def test_initial_price_at_later_oracle_deploy(clock, admin, verifier):
    # Oracle deployed long after the vault launched: seed price 4, seed snapshot prices at 1
    soracle = PriceOracle(4 * 10**18, admin=admin, clock=clock)
    soracle.grant_role(PRICE_PARAMETERS_VERIFIER, verifier, sender=admin)

    assert soracle.price_v2() == 4 * 10**18
    assert soracle.raw_price() == 10**18

    soracle.set_max_price_increment(10**18, sender=admin)

    # Without an update in the same block, price_v2 falls to the seed snapshot's price
    clock.advance(12)
    assert soracle.price_v2() == 10**18
    assert soracle.raw_price() == 10**18

    ts = clock()
    price_params = VaultSnapshot.from_params(
        [
            0,  # total_debt
            40000000000000000000000000,  # total_idle
            10000000000000000000000000,  # total_supply
            ts + 500000,  # full_profit_unlock_date
            5831137848451547566180476730,  # profit_unlocking_rate
            ts,  # last_profit_update
            3000000000000000000000,  # balance_of_self
        ]
    )
    assert soracle.update(price_params, ts, 2, sender=verifier) == 3 * 10**18

    # raw_price follows at once, price_v2 stays on its old anchor until time passes
    assert soracle.price_v2() == 10**18
    assert soracle.raw_price() == 4 * 10**18

    clock.advance(12)
    assert soracle.price_v2() > 4 * 10**18
    assert soracle.raw_price() > 4 * 10**18
    assert soracle.price_v2() == soracle.raw_price() == 4000000027989461868
