"""Formatting and conversion utilities."""

from datetime import datetime, timezone
from decimal import Decimal

from scrvusd_oracle.constants import PRICE_SCALE


def as_int(value, *, default: int = 0) -> int:
    """Convert value to int, handling various types."""
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        v = value.strip()
        if v.startswith("0x"):
            return int(v, 16)
        return int(v)
    return int(value)


def normalize_hex_str(value) -> str:
    """Normalize hex string to 0x-prefixed format."""
    if isinstance(value, (bytes, bytearray)):
        return f"0x{value.hex()}"
    if hasattr(value, "hex") and not isinstance(value, str):
        hex_str = value.hex()
        return hex_str if hex_str.startswith("0x") else f"0x{hex_str}"
    s = str(value).strip()
    if s.lower().startswith("0x"):
        return f"0x{s[2:]}"
    return f"0x{s}"


def format_price(price: int, *, decimals: int = 9) -> str:
    """Format a 1e18-scaled price."""
    p = Decimal(price) / Decimal(PRICE_SCALE)
    return f"{p:.{decimals}f}"


def format_change_bps(change: int) -> str:
    """Format a 1e18-scaled relative change in basis points."""
    return f"{(Decimal(change) * Decimal(10_000) / Decimal(PRICE_SCALE)):.4f} bps"


def format_ts(ts: int) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def delta_indicator(prev_val: int, cur_val: int) -> str:
    """Returns emoji indicator for value change."""
    if cur_val > prev_val:
        return "📈"
    if cur_val < prev_val:
        return "📉"
    return "➡️"
