"""
Utility functions for timestamps, amounts and addresses.

These are pure functions with no dependencies on other types.
"""

import re
from time import time
from typing import Optional

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# 2**256 - 1, the ERC-20 "infinite approval" amount
MAX_UINT256 = (1 << 256) - 1

PRICE_SCALE = 10 ** 18

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_AMOUNT_RE = re.compile(r"^[0-9]+$")


def now_s() -> int:
    """Get current wall clock timestamp in whole seconds."""
    return int(time())


def wall_ms() -> int:
    """Get current wall clock timestamp in milliseconds."""
    return int(time() * 1000)


def is_address(value: Optional[str]) -> bool:
    """Check for a 0x-prefixed 20-byte hex address."""
    return bool(value) and bool(_ADDRESS_RE.match(value))


def is_unset_address(value: Optional[str]) -> bool:
    """The zero address (or nothing at all) means "not configured"."""
    return not value or value.lower() == ZERO_ADDRESS


def parse_amount(text: Optional[str]) -> Optional[int]:
    """
    Parse user-entered amount text in the token's smallest unit.

    Empty text is 0. Anything that is not a non-negative base-10
    integer returns None.
    """
    if text is None:
        return None
    text = text.strip()
    if not text:
        return 0
    if not _AMOUNT_RE.match(text):
        return None
    return int(text)


def short_hash(tx_hash: str, keep: int = 10) -> str:
    """Shorten a hash for log lines."""
    if len(tx_hash) <= keep + 3:
        return tx_hash
    return tx_hash[:keep] + "..."
