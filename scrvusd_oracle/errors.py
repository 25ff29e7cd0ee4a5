"""Errors raised by the oracle and its evidence verifier."""


class OracleError(Exception):
    """Base class for oracle failures. A failed call leaves oracle state unchanged."""


class Unauthorized(OracleError, PermissionError):
    def __init__(self, role: str, principal) -> None:
        super().__init__(f"{principal!r} lacks role {role}")
        self.role = role
        self.principal = principal


class StaleEvidence(OracleError, ValueError):
    """Evidence is about a block older than the last accepted one."""

    def __init__(self, block_number: int, last_block_number: int) -> None:
        super().__init__(f"Outdated: block {block_number} < last accepted block {last_block_number}")
        self.block_number = block_number
        self.last_block_number = last_block_number


class ProofInvalid(OracleError, ValueError):
    """Evidence does not match the trusted block hash or state root."""


class BlockNotFound(OracleError, LookupError):
    """No trusted block hash or state root is known for a block number."""


class InvalidSnapshot(OracleError, ValueError):
    """Snapshot violates vault accounting invariants."""


class InvalidParameter(OracleError, ValueError):
    """Admin parameter outside its allowed bounds."""
