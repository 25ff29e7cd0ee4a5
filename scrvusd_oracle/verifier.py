"""Evidence verification: two ways to prove vault state, one ordering gate."""

from typing import Any, Protocol

from scrvusd_oracle.errors import ProofInvalid
from scrvusd_oracle.formatters import normalize_hex_str
from scrvusd_oracle.models import BlockHashEvidence, BlockHeader, Evidence, StateRootEvidence, VaultSnapshot
from scrvusd_oracle.oracle import PriceOracle


class BlockSource(Protocol):
    """Trusted block headers and state roots. Both raise BlockNotFound for unknown blocks."""

    def get_block_header(self, block_number: int) -> BlockHeader: ...  # pragma: no cover

    def get_state_root(self, block_number: int) -> str: ...  # pragma: no cover


class StateProver(Protocol):
    """Checks a state proof against a state root and reads vault fields out of it (raises ProofInvalid)."""

    def verify_and_extract(self, state_root: str, proof: Any) -> VaultSnapshot: ...  # pragma: no cover

    def extract_profit_max_unlock_time(self, state_root: str, proof: Any) -> int: ...  # pragma: no cover


def _header_mismatches(trusted: BlockHeader, header: BlockHeader) -> list[str]:
    """Names of the fields where `header` differs from the trusted one."""
    mismatches = []
    if normalize_hex_str(trusted.block_hash).lower() != normalize_hex_str(header.block_hash).lower():
        mismatches.append("block_hash")
    if trusted.timestamp != header.timestamp:
        mismatches.append("timestamp")
    if normalize_hex_str(trusted.state_root).lower() != normalize_hex_str(header.state_root).lower():
        mismatches.append("state_root")
    return mismatches


class Verifier:
    """
    Turns evidence into oracle updates.

    Path A (BlockHashEvidence) uses the header's own timestamp. Every field of the submitted header
    must match the header the block source vouches for. Path B (StateRootEvidence) has no
    timestamp to offer and uses the vault's last_profit_update instead, so locked profit is priced as
    if no time had passed since the vault's last report. The two paths can therefore price the same
    vault state differently.

    The verifier is itself the principal that must hold the oracle's verifier roles.
    """

    def __init__(self, oracle: PriceOracle, block_source: BlockSource, prover: StateProver) -> None:
        self.oracle = oracle
        self.block_source = block_source
        self.prover = prover

    def _authenticate(self, evidence: Evidence) -> tuple[str, int, int | None]:
        """(state_root, block_number, timestamp) of the evidence's block; timestamp is None on Path B."""
        if isinstance(evidence, BlockHashEvidence):
            header = evidence.header
            trusted = self.block_source.get_block_header(header.block_number)
            mismatches = _header_mismatches(trusted, header)
            if mismatches:
                raise ProofInvalid(f"Header mismatch for block {header.block_number}: {', '.join(mismatches)}")
            return trusted.state_root, trusted.block_number, trusted.timestamp
        if isinstance(evidence, StateRootEvidence):
            return self.block_source.get_state_root(evidence.block_number), evidence.block_number, None
        raise TypeError(f"Unsupported evidence: {type(evidence).__name__}")

    def resolve(self, evidence: Evidence) -> tuple[VaultSnapshot, int, int]:
        """(snapshot, timestamp, block_number) proven by the evidence."""
        state_root, block_number, timestamp = self._authenticate(evidence)
        snapshot = self.prover.verify_and_extract(state_root, evidence.proof)
        if timestamp is None:
            timestamp = snapshot.last_profit_update
        return snapshot, timestamp, block_number

    def verify(self, evidence: Evidence) -> int:
        """Prove vault price parameters and update the oracle. Returns the relative price change."""
        snapshot, timestamp, block_number = self.resolve(evidence)
        return self.oracle.update(snapshot, timestamp, block_number, sender=self)

    def verify_period(self, evidence: Evidence) -> bool:
        """Prove the vault's profit_max_unlock_time and update the oracle. Returns whether it changed."""
        state_root, block_number, _ = self._authenticate(evidence)
        period = self.prover.extract_profit_max_unlock_time(state_root, evidence.proof)
        return self.oracle.update_profit_max_unlock_time(period, block_number, sender=self)
