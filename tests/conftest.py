import pytest
from web3.exceptions import BlockNotFound as Web3BlockNotFound

from scrvusd_oracle.clock import ManualClock
from scrvusd_oracle.constants import MAX_BPS_EXTENDED, PRICE_PARAMETERS_VERIFIER, UNLOCK_TIME_VERIFIER, WEEK
from scrvusd_oracle.models import VaultSnapshot
from scrvusd_oracle.oracle import PriceOracle

START_TS = 1_700_000_000


def price_snapshot(total_assets: int, total_supply: int, ts: int) -> VaultSnapshot:
    """Snapshot with no pending profit: raw price is exactly total_assets / total_supply."""
    return VaultSnapshot(
        total_debt=0,
        total_idle=total_assets,
        total_supply=total_supply,
        full_profit_unlock_date=0,
        profit_unlocking_rate=0,
        last_profit_update=ts,
        balance_of_self=0,
    )


@pytest.fixture
def clock():
    return ManualClock(START_TS)


@pytest.fixture
def admin():
    return "admin"


@pytest.fixture
def anne():
    return "anne"


@pytest.fixture
def verifier():
    return "verifier"


@pytest.fixture
def soracle(clock, admin, verifier):
    oracle = PriceOracle(10**18, admin=admin, clock=clock)
    oracle.grant_role(PRICE_PARAMETERS_VERIFIER, verifier, sender=admin)
    oracle.grant_role(UNLOCK_TIME_VERIFIER, verifier, sender=admin)
    return oracle


VAULT = "0x0655977FEb2f289A4aB78af67BAB0d17aAb84367"
BLOCK = 21_000_000
BLOCK_TS = 1_730_000_000
LAST_PROFIT_UPDATE = BLOCK_TS - 3600
REWARDS = 10**20
RATE = REWARDS * MAX_BPS_EXTENDED // WEEK
UNLOCKED = RATE * 3600 // MAX_BPS_EXTENDED

GETTERS = {
    "totalDebt": 6 * 10**24,
    "totalIdle": 10**24,
    # The vault reports supply and its own balance net of shares unlocked so far
    "totalSupply": 7 * 10**24 - UNLOCKED,
    "fullProfitUnlockDate": LAST_PROFIT_UPDATE + WEEK,
    "profitUnlockingRate": RATE,
    "lastProfitUpdate": LAST_PROFIT_UPDATE,
    "profitMaxUnlockTime": WEEK,
    "balanceOf": REWARDS - UNLOCKED,
}


class FakeCall:
    def __init__(self, eth, value):
        self.eth = eth
        self.value = value

    def call(self, block_identifier=None):
        self.eth.calls.append(block_identifier)
        return self.value


class FakeFunctions:
    def __init__(self, eth):
        self.eth = eth

    def __getattr__(self, name):
        value = self.eth.getters[name]
        return lambda *args: FakeCall(self.eth, value)


class FakeContract:
    def __init__(self, eth, address):
        self.address = address
        self.functions = FakeFunctions(eth)


class FakeEth:
    """Just enough of `w3.eth`: blocks by number, vault getters, and blocks that time out."""

    def __init__(self, blocks, getters, unreachable=()):
        self.blocks = blocks
        self.getters = getters
        self.unreachable = set(unreachable)
        self.calls = []
        self.block_number = max(blocks)

    def get_block(self, block_number):
        if block_number in self.unreachable:
            raise TimeoutError(f"read timed out fetching block {block_number}")
        if block_number not in self.blocks:
            raise Web3BlockNotFound(f"Block with id: '{block_number}' not found.")
        return self.blocks[block_number]

    def contract(self, address, abi):
        return FakeContract(self, address)


class FakeWeb3:
    def __init__(self, blocks, getters=GETTERS, unreachable=()):
        self.eth = FakeEth(blocks, dict(getters), unreachable)

    @staticmethod
    def to_checksum_address(address):
        return address


def make_block(number, timestamp):
    return {
        "hash": bytes([number % 256]) * 32,
        "number": number,
        "timestamp": timestamp,
        "stateRoot": bytes([(number + 1) % 256]) * 32,
    }


@pytest.fixture
def w3():
    return FakeWeb3({BLOCK: make_block(BLOCK, BLOCK_TS), BLOCK + 1: make_block(BLOCK + 1, BLOCK_TS + 12)})
