"""Constants and configuration for the scrvUSD price oracle."""

# scrvUSD (Savings crvUSD) is a Yearn V3 vault; its accounting fields are the oracle's input.
SCRVUSD_MAINNET = "0x0655977FEb2f289A4aB78af67BAB0d17aAb84367"

PRICE_SCALE = 10**18
INVERSE_PRICE_NUMERATOR = PRICE_SCALE * PRICE_SCALE
# Yearn V3 keeps profitUnlockingRate with extra precision so that per-second unlocking does not truncate.
MAX_BPS_EXTENDED = 1_000_000_000_000

DAY = 86400
WEEK = 7 * DAY

# Vault's default profit distribution period (profitMaxUnlockTime).
DEFAULT_PROFIT_MAX_UNLOCK_TIME = WEEK

# max_price_increment is a fraction of the price per second, scaled by PRICE_SCALE.
# 2 * 10**12 is 0.02 bps per second, or 0.24 bps per 12s block.
DEFAULT_MAX_PRICE_INCREMENT = 2 * 10**12
MIN_MAX_PRICE_INCREMENT = 10**8
MAX_MAX_PRICE_INCREMENT = 10**18

# max_v2_duration bounds both the smoothing window and how far vault parameters are extrapolated.
DEFAULT_MAX_V2_DURATION = 4 * 6 * WEEK  # half a year
MAX_V2_DURATION = 4 * 12 * WEEK  # a year

# Seed snapshot used before any evidence arrives: raw price is exactly 1.0.
SEED_TOTAL_SUPPLY = 1
SEED_TOTAL_IDLE = 1
SEED_FULL_PROFIT_UNLOCK_DATE = 1

# Capability ids.
DEFAULT_ADMIN_ROLE = "DEFAULT_ADMIN_ROLE"
PRICE_PARAMETERS_VERIFIER = "PRICE_PARAMETERS_VERIFIER"
UNLOCK_TIME_VERIFIER = "UNLOCK_TIME_VERIFIER"

# Order of the vault's price parameters when passed as a flat sequence.
PRICE_PARAMS_FIELDS = (
    "total_debt",
    "total_idle",
    "total_supply",
    "full_profit_unlock_date",
    "profit_unlocking_rate",
    "last_profit_update",
    "balance_of_self",
)

# Minimal ABI for a Yearn V3 vault - only the getters that feed the oracle.
# Source: yearn-vaults-v3 VaultV3.vy
VAULT_V3_MIN_ABI: list[dict] = [
    {
        "type": "function",
        "name": name,
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    }
    for name in (
        "totalDebt",
        "totalIdle",
        "totalSupply",
        "fullProfitUnlockDate",
        "profitUnlockingRate",
        "lastProfitUpdate",
        "profitMaxUnlockTime",
    )
] + [
    {
        "type": "function",
        "name": "balanceOf",
        "stateMutability": "view",
        "inputs": [{"name": "addr", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
]

SECONDS_PER_BLOCK = 12

# Explorer URLs
ETHERSCAN_BASE = "https://etherscan.io"

# Cache configuration
CACHE_DIR_NAME = ".scrvusd_oracle_cache"
CACHE_VERSION = "1"  # Increment to invalidate all caches
