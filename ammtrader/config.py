"""
Application configuration.

Loads settings from environment variables with sensible defaults.
"""

import logging
import os
import re
from dataclasses import dataclass

from dotenv import load_dotenv

from .types import ZERO_ADDRESS, is_address, is_unset_address, parse_amount

_PRIVATE_KEY_RE = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")


@dataclass
class AppConfig:
    """Application configuration."""

    # Ledgers (zero address = not configured)
    token_address: str = ZERO_ADDRESS
    market_address: str = ZERO_ADDRESS

    # Network
    rpc_url: str = "https://sepolia.base.org"
    chain_id: int = 84532
    explorer_url: str = "https://sepolia.basescan.org"

    # Signer: private key wins over a node-managed address
    private_key: str = ""
    signer_address: str = ""

    # Session
    default_amount: str = "1000000"  # 1 token at 6 decimals
    clock_interval_s: float = 1.0
    poll_interval_s: float = 0.0  # 0 = refresh only on demand
    receipt_poll_interval_s: float = 2.0
    rpc_timeout_s: float = 10.0

    # Output
    journal_dir: str = ""
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Load config from environment variables."""
        return cls(
            # Ledgers
            token_address=os.getenv("TOKEN_ADDRESS", ZERO_ADDRESS),
            market_address=os.getenv("MARKET_ADDRESS", ZERO_ADDRESS),

            # Network
            rpc_url=os.getenv("RPC_URL", "https://sepolia.base.org"),
            chain_id=int(os.getenv("CHAIN_ID", "84532")),
            explorer_url=os.getenv("EXPLORER_URL", "https://sepolia.basescan.org"),

            # Signer
            private_key=os.getenv("PRIVATE_KEY", ""),
            signer_address=os.getenv("SIGNER_ADDRESS", ""),

            # Session
            default_amount=os.getenv("DEFAULT_AMOUNT", "1000000"),
            clock_interval_s=float(os.getenv("CLOCK_INTERVAL_S", "1.0")),
            poll_interval_s=float(os.getenv("POLL_INTERVAL_S", "0")),
            receipt_poll_interval_s=float(os.getenv("RECEIPT_POLL_INTERVAL_S", "2.0")),
            rpc_timeout_s=float(os.getenv("RPC_TIMEOUT_S", "10.0")),

            # Output
            journal_dir=os.getenv("JOURNAL_DIR", ""),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    @classmethod
    def from_env_file(cls, path: str) -> "AppConfig":
        """
        Load config from .env file, then environment variables.

        Environment variables override file values.
        """
        if os.path.exists(path):
            load_dotenv(path, override=False)
        return cls.from_env()

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        for name, value in (
            ("TOKEN_ADDRESS", self.token_address),
            ("MARKET_ADDRESS", self.market_address),
        ):
            if is_unset_address(value):
                errors.append(f"{name} is required (zero address means unset)")
            elif not is_address(value):
                errors.append(f"{name} must be a 0x-prefixed 20-byte hex address")

        if self.private_key and not _PRIVATE_KEY_RE.match(self.private_key):
            errors.append("PRIVATE_KEY must be 32 bytes of hex")

        if self.signer_address and not is_address(self.signer_address):
            errors.append("SIGNER_ADDRESS must be a 0x-prefixed 20-byte hex address")

        if parse_amount(self.default_amount) is None:
            errors.append("DEFAULT_AMOUNT must be a non-negative integer")

        if self.clock_interval_s <= 0:
            errors.append("CLOCK_INTERVAL_S must be positive")

        if self.poll_interval_s < 0:
            errors.append("POLL_INTERVAL_S must not be negative")

        if self.receipt_poll_interval_s <= 0:
            errors.append("RECEIPT_POLL_INTERVAL_S must be positive")

        if self.rpc_timeout_s <= 0:
            errors.append("RPC_TIMEOUT_S must be positive")

        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            errors.append(f"LOG_LEVEL {self.log_level!r} is not a logging level")

        return errors

    def tx_url(self, tx_hash: str) -> str:
        """Explorer link for a transaction hash."""
        return f"{self.explorer_url.rstrip('/')}/tx/{tx_hash}"
