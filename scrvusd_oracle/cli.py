"""CLI: replay a vault's recent history through the oracle and print the resulting feed."""

import argparse
import os
import sys

from tqdm import tqdm

from scrvusd_oracle.clock import ManualClock
from scrvusd_oracle.constants import (
    DEFAULT_PROFIT_MAX_UNLOCK_TIME,
    DEFAULT_MAX_V2_DURATION,
    ETHERSCAN_BASE,
    PRICE_PARAMETERS_VERIFIER,
    SCRVUSD_MAINNET,
    SECONDS_PER_BLOCK,
    UNLOCK_TIME_VERIFIER,
)
from scrvusd_oracle.errors import OracleError
from scrvusd_oracle.formatters import delta_indicator, format_change_bps, format_price, format_ts
from scrvusd_oracle.models import BlockHashEvidence, StateRootEvidence, VaultSnapshot
from scrvusd_oracle.onchain import RpcBlockSource, RpcStateProver, fetch_vault_snapshot, get_block
from scrvusd_oracle.oracle import PriceOracle
from scrvusd_oracle.parsing import header_from_block
from scrvusd_oracle.pricing import share_price
from scrvusd_oracle.validation import validate_snapshot_sequence
from scrvusd_oracle.verifier import Verifier

# Internal defaults (not exposed as CLI flags)
DEFAULT_TIMEOUT = 30
CLI_PRINCIPAL = "scrvusd-oracle-cli"


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse command-line arguments."""
    p = argparse.ArgumentParser(description="Replay scrvUSD vault state through the share price oracle.")
    p.add_argument(
        "--rpc-url",
        default=None,
        help="Execution-layer RPC URL. Required if ETH_RPC_URL environment variable is not set.",
    )
    p.add_argument("--vault", default=SCRVUSD_MAINNET, help="Vault address. Default: scrvUSD on mainnet.")
    p.add_argument(
        "--blocks",
        type=int,
        default=86400 // SECONDS_PER_BLOCK,
        help="How many recent blocks to replay. Default: about one day.",
    )
    p.add_argument("--step", type=int, default=300, help="Submit evidence every N blocks. Default: 300.")
    p.add_argument(
        "--initial-price",
        type=int,
        default=None,
        help="Seed price (1e18-scaled). Default: the vault's price at the first replayed block.",
    )
    p.add_argument("--max-price-increment", type=int, default=None, help="Override max_price_increment.")
    p.add_argument(
        "--path",
        choices=("blockhash", "stateroot"),
        default="blockhash",
        help="Evidence path: header authenticated by block hash, or historical state root.",
    )
    p.add_argument(
        "--no-cache",
        action="store_true",
        help="Disable caching for this run (fetch all data fresh from network).",
    )
    return p.parse_args(argv)


def seed_price(snapshot: VaultSnapshot, ts: int) -> int:
    """Share price of a snapshot at its own timestamp, as a deployment seed."""
    return share_price(
        snapshot,
        ts=ts,
        parameters_ts=ts,
        period=DEFAULT_PROFIT_MAX_UNLOCK_TIME,
        max_duration=DEFAULT_MAX_V2_DURATION,
        fallback=0,
    )


def print_feed(rows: list[tuple[int, int, int, int, int]]) -> None:
    print("")
    print("=" * 96)
    print("📊 SCRVUSD ORACLE REPLAY")
    print("=" * 96)
    print(f"{'block':>10}  {'time':<23}  {'raw_price':>14}  {'price_v2':>14}     {'update':>14}")
    prev_v2 = rows[0][3]
    for block_number, ts, raw, v2, change in rows:
        print(
            f"{block_number:>10}  {format_ts(ts):<23}  {format_price(raw):>14}  {format_price(v2):>14}"
            f"  {delta_indicator(prev_v2, v2)} {format_change_bps(change):>14}"
        )
        prev_v2 = v2
    print("")


def main(argv: list[str]) -> int:
    """Main entry point."""
    args = parse_args(argv)

    use_cache = not args.no_cache

    if args.blocks <= 0 or args.step <= 0:
        print("Error: --blocks and --step must be > 0", file=sys.stderr)
        return 2

    try:
        from web3 import Web3
    except ImportError as ex:  # pragma: no cover
        print("Missing dependency. Run: uv sync", file=sys.stderr)
        raise SystemExit(2) from ex

    # Require RPC URL to be provided either via --rpc-url or ETH_RPC_URL environment variable
    rpc_url = args.rpc_url or os.getenv("ETH_RPC_URL")
    if not rpc_url:
        print(
            "Error: RPC URL is required. Provide --rpc-url or set ETH_RPC_URL environment variable.",
            file=sys.stderr,
        )
        return 2

    w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": DEFAULT_TIMEOUT}))
    if not w3.is_connected():
        print(f"Error: failed to connect to RPC at {rpc_url}", file=sys.stderr)
        return 2

    latest_block = int(w3.eth.block_number)
    start_block = max(1, latest_block - args.blocks + 1)
    block_numbers = list(range(start_block, latest_block + 1, args.step))

    try:
        first_block = get_block(w3, start_block, use_cache=use_cache)
        initial_price = args.initial_price
        if initial_price is None:
            first_snapshot = fetch_vault_snapshot(w3, args.vault, start_block, use_cache=use_cache)
            initial_price = seed_price(first_snapshot, first_block["timestamp"])
    except Exception as ex:  # pylint: disable=broad-exception-caught
        print(f"Error: failed to read vault {args.vault} at block {start_block}: {ex}", file=sys.stderr)
        return 2
    print(f"ℹ️ Vault {ETHERSCAN_BASE}/address/{args.vault}", file=sys.stderr)
    print(f"ℹ️ Seed price {format_price(initial_price)} at block {start_block}", file=sys.stderr)

    clock = ManualClock(first_block["timestamp"])
    oracle = PriceOracle(initial_price, admin=CLI_PRINCIPAL, clock=clock)
    verifier = Verifier(
        oracle,
        RpcBlockSource(w3, use_cache=use_cache),
        RpcStateProver(w3, args.vault, use_cache=use_cache),
    )
    oracle.grant_role(PRICE_PARAMETERS_VERIFIER, verifier, sender=CLI_PRINCIPAL)
    oracle.grant_role(UNLOCK_TIME_VERIFIER, verifier, sender=CLI_PRINCIPAL)
    if args.max_price_increment is not None:
        oracle.set_max_price_increment(args.max_price_increment, sender=CLI_PRINCIPAL)

    rows: list[tuple[int, int, int, int, int]] = []
    prev_snapshot: VaultSnapshot | None = None
    with tqdm(block_numbers, desc="🔁 Replaying evidence", unit="block", file=sys.stderr) as pbar:
        for block_number in pbar:
            pbar.set_postfix(block=block_number)
            try:
                block = get_block(w3, block_number, use_cache=use_cache)
                clock.set(block["timestamp"])
                if args.path == "blockhash":
                    evidence = BlockHashEvidence(header_from_block(block), block_number)
                else:
                    evidence = StateRootEvidence(block_number, block_number)
                if block_number == start_block:
                    verifier.verify_period(evidence)
                change = verifier.verify(evidence)
            except OracleError as ex:
                tqdm.write(f"⚠️  Evidence rejected at block {block_number}: {ex}", file=sys.stderr)
                continue
            except Exception as ex:  # pylint: disable=broad-exception-caught
                tqdm.write(f"⚠️  Failed to read block {block_number}: {ex}", file=sys.stderr)
                continue

            if prev_snapshot is not None:
                for issue in validate_snapshot_sequence(prev_snapshot, oracle.snapshot):
                    tqdm.write(f"⚠️  Block {block_number}: {issue}", file=sys.stderr)
            prev_snapshot = oracle.snapshot
            rows.append((block_number, block["timestamp"], oracle.raw_price(), oracle.price_v2(), change))

    if not rows:
        print("No evidence was accepted in the replayed range.", file=sys.stderr)
        return 1

    print_feed(rows)
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
