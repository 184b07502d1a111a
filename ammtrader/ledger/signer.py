"""
Transaction signers.

Key custody lives outside the trading state machine. A Signer takes an
unsigned transaction built by the ledger client and returns the hash of
the broadcast transaction, or raises SigningRejected if the transaction
never reached the ledger.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import aiohttp
from eth_account import Account
from web3 import AsyncWeb3
from web3.exceptions import Web3Exception

from ..errors import SigningRejected

logger = logging.getLogger(__name__)

# EIP-1193 "User Rejected Request"
USER_REJECTED_CODE = 4001


def rpc_error_details(exc: BaseException) -> tuple[Optional[int], str]:
    """
    Pull (code, message) out of a JSON-RPC error.

    Older web3 raises ValueError(dict); newer raises Web3RPCError with
    the decoded response attached.
    """
    error: Any = None
    response = getattr(exc, "rpc_response", None)
    if isinstance(response, dict):
        error = response.get("error")
    if error is None and exc.args and isinstance(exc.args[0], dict):
        error = exc.args[0]
    if isinstance(error, dict):
        code = error.get("code")
        return (int(code) if code is not None else None), str(error.get("message", ""))
    return None, str(exc)


def is_user_rejection(exc: BaseException) -> bool:
    code, message = rpc_error_details(exc)
    if code == USER_REJECTED_CODE:
        return True
    message = message.lower()
    return "rejected" in message or "denied" in message


class Signer(ABC):
    """Signs and broadcasts transactions for one address."""

    @property
    @abstractmethod
    def address(self) -> str:
        """Checksummed sender address."""

    @abstractmethod
    async def send_transaction(self, w3: AsyncWeb3, tx: dict) -> str:
        """
        Sign and broadcast tx.

        Returns:
            0x-prefixed transaction hash

        Raises:
            SigningRejected: declined, unsignable, or refused by the node
        """


class LocalAccountSigner(Signer):
    """
    Signer holding a private key in process.

    Signs locally with eth-account and broadcasts the raw transaction.
    """

    def __init__(self, private_key: str):
        self._account = Account.from_key(private_key)

    @property
    def address(self) -> str:
        return self._account.address

    async def send_transaction(self, w3: AsyncWeb3, tx: dict) -> str:
        tx = dict(tx)
        tx.setdefault("from", self.address)
        if "nonce" not in tx:
            try:
                tx["nonce"] = await w3.eth.get_transaction_count(self.address, "pending")
            except (aiohttp.ClientError, asyncio.TimeoutError, ValueError, Web3Exception) as e:
                raise SigningRejected(f"Could not send transaction: {e}", "Could not reach the node")

        try:
            signed = self._account.sign_transaction(tx)
        except (TypeError, ValueError) as e:
            raise SigningRejected(f"Could not sign transaction: {e}", "Could not sign transaction")

        # eth-account renamed rawTransaction -> raw_transaction
        raw = getattr(signed, "raw_transaction", None) or signed.rawTransaction

        try:
            tx_hash = await w3.eth.send_raw_transaction(raw)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise SigningRejected(f"Could not send transaction: {e}", "Could not reach the node")
        except (ValueError, Web3Exception) as e:
            _, message = rpc_error_details(e)
            logger.warning(f"Node refused raw transaction: {message}")
            raise SigningRejected(message or "Transaction refused by node")

        return AsyncWeb3.to_hex(tx_hash)


class NodeSigner(Signer):
    """
    Signer delegating to the connected node or wallet bridge.

    Uses eth_sendTransaction; the key never enters this process and
    the user may decline in the wallet.
    """

    def __init__(self, address: str):
        self._address = AsyncWeb3.to_checksum_address(address)

    @property
    def address(self) -> str:
        return self._address

    async def send_transaction(self, w3: AsyncWeb3, tx: dict) -> str:
        tx = dict(tx)
        tx.setdefault("from", self._address)
        try:
            tx_hash = await w3.eth.send_transaction(tx)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise SigningRejected(f"Could not send transaction: {e}", "Could not reach the wallet")
        except (ValueError, Web3Exception) as e:
            _, message = rpc_error_details(e)
            if is_user_rejection(e):
                raise SigningRejected(message or "User rejected the request.", "User rejected the request.")
            raise SigningRejected(message or "Transaction refused by wallet")

        return AsyncWeb3.to_hex(tx_hash)
