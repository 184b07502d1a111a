"""
web3.py implementation of the ledger interface.

Talks JSON-RPC to one node through AsyncWeb3 over a cached aiohttp
session. Reads are contract calls; writes are built here (gas estimation
included, so a call that would revert is refused before signing) and
handed to a Signer.
"""

import asyncio
import logging
from typing import Optional

import aiohttp
from web3 import AsyncWeb3
from web3.exceptions import ContractLogicError, TransactionNotFound, Web3Exception

from ..errors import ConfigurationError, LedgerError, SigningRejected
from ..types import Market, Outcome, TxReceipt, UserPosition, is_unset_address, short_hash
from .abi import ERC20_ABI, PREDICTION_MARKET_ABI
from .base import LedgerClient
from .signer import Signer, rpc_error_details

logger = logging.getLogger(__name__)

_REVERT_PREFIX = "execution reverted: "


def revert_message(exc: BaseException) -> Optional[str]:
    """Human part of a ContractLogicError, without the node's prefix."""
    message = getattr(exc, "message", None) or str(exc)
    if not message:
        return None
    if message.startswith(_REVERT_PREFIX):
        message = message[len(_REVERT_PREFIX):]
    if message in ("execution reverted", "None"):
        return None
    return message


class Web3Ledger(LedgerClient):
    """
    Ledger client backed by an EVM JSON-RPC node.

    Usage:
        ledger = Web3Ledger(rpc_url, token_address, market_address, signer=signer)
        count = await ledger.market_count()
        tx_hash = await ledger.claim(0)
        receipt = await ledger.wait_for_receipt(tx_hash)
        await ledger.close()
    """

    def __init__(
        self,
        rpc_url: str,
        token_address: str,
        market_address: str,
        signer: Optional[Signer] = None,
        chain_id: Optional[int] = None,
        timeout_seconds: float = 10.0,
        receipt_poll_interval_s: float = 2.0,
        w3: Optional[AsyncWeb3] = None,
    ):
        """
        Initialize the ledger client.

        Args:
            rpc_url: JSON-RPC endpoint
            token_address: Token (ERC-20) ledger address
            market_address: Market/AMM ledger address
            signer: Signer for writes; None for a read-only client
            chain_id: Chain id stamped into built transactions
            timeout_seconds: Total timeout per RPC request
            receipt_poll_interval_s: Delay between receipt polls
            w3: Prebuilt AsyncWeb3 (tests)
        """
        if is_unset_address(token_address) or is_unset_address(market_address):
            raise ConfigurationError("Token and market addresses must be configured")

        self._rpc_url = rpc_url
        self._timeout_seconds = timeout_seconds
        self._poll_interval_s = receipt_poll_interval_s
        self._chain_id = chain_id
        self._signer = signer
        self._session: Optional[aiohttp.ClientSession] = None

        self._w3 = w3 or AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))
        self._token_address = AsyncWeb3.to_checksum_address(token_address)
        self._market_address = AsyncWeb3.to_checksum_address(market_address)
        self._token = self._w3.eth.contract(address=self._token_address, abi=ERC20_ABI)
        self._market = self._w3.eth.contract(address=self._market_address, abi=PREDICTION_MARKET_ABI)

    @property
    def signer_address(self) -> Optional[str]:
        return self._signer.address if self._signer else None

    @property
    def market_address(self) -> str:
        return self._market_address

    @property
    def token_address(self) -> str:
        return self._token_address

    async def _ensure_session(self) -> None:
        """Ensure the provider's HTTP session is created."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self._timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
            provider = self._w3.provider
            if hasattr(provider, "cache_async_session"):
                await provider.cache_async_session(self._session)

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def _call(self, what: str, fn):
        """Run one contract call, wrapping transport and contract errors."""
        await self._ensure_session()
        try:
            return await fn.call()
        except asyncio.CancelledError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise LedgerError(f"{what} request failed: {e}")
        except (ValueError, Web3Exception) as e:
            raise LedgerError(f"{what} failed: {e}")

    # ---- reads ----

    async def allowance(self, owner: str, spender: str) -> int:
        fn = self._token.functions.allowance(
            AsyncWeb3.to_checksum_address(owner),
            AsyncWeb3.to_checksum_address(spender),
        )
        return int(await self._call("allowance", fn))

    async def market_count(self) -> int:
        return int(await self._call("numMarkets", self._market.functions.numMarkets()))

    async def market_detail(self, market_id: int) -> Market:
        values = await self._call("getMarket", self._market.functions.getMarket(market_id))
        return Market.from_tuple(market_id, values)

    async def user_position(self, market_id: int, address: str) -> UserPosition:
        fn = self._market.functions.getBalances(market_id, AsyncWeb3.to_checksum_address(address))
        yes_shares, no_shares = await self._call("getBalances", fn)
        return UserPosition(
            market_id=market_id,
            address=address,
            shares_yes=int(yes_shares),
            shares_no=int(no_shares),
        )

    async def current_price(self, market_id: int, outcome: Outcome) -> int:
        fn = self._market.functions.getCurrentPrice(market_id, int(outcome))
        return int(await self._call("getCurrentPrice", fn))

    # ---- writes ----

    async def approve(self, spender: str, amount: int) -> str:
        fn = self._token.functions.approve(AsyncWeb3.to_checksum_address(spender), amount)
        return await self._send("approve", fn)

    async def buy(self, market_id: int, outcome: Outcome, amount_in: int) -> str:
        fn = self._market.functions.buy(market_id, int(outcome), amount_in)
        return await self._send("buy", fn)

    async def claim(self, market_id: int) -> str:
        return await self._send("claim", self._market.functions.claim(market_id))

    async def _send(self, what: str, fn) -> str:
        """
        Build and hand a transaction to the signer.

        Anything that fails here happens before the ledger sees the
        transaction, so it surfaces as SigningRejected.
        """
        if self._signer is None:
            raise SigningRejected("No signer configured", "Connect a wallet first")

        await self._ensure_session()
        params = {"from": self._signer.address}
        if self._chain_id is not None:
            params["chainId"] = self._chain_id

        try:
            tx = await fn.build_transaction(params)
        except ContractLogicError as e:
            reason = revert_message(e)
            logger.warning(f"{what} would revert: {reason}")
            raise SigningRejected(reason or f"{what} would revert")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise SigningRejected(f"Could not build {what} transaction: {e}")
        except (ValueError, Web3Exception) as e:
            _, message = rpc_error_details(e)
            logger.warning(f"{what} could not be built: {message}")
            raise SigningRejected(message or f"Could not build {what} transaction")

        try:
            tx_hash = await self._signer.send_transaction(self._w3, tx)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise SigningRejected(f"Could not send {what}: {e}", "Could not reach the node")
        logger.info(f"{what} broadcast: {short_hash(tx_hash)}")
        return tx_hash

    async def wait_for_receipt(self, tx_hash: str) -> TxReceipt:
        await self._ensure_session()
        while True:
            try:
                receipt = await self._w3.eth.get_transaction_receipt(tx_hash)
            except TransactionNotFound:
                receipt = None
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                # Keep waiting: the transaction is out there regardless
                logger.warning(f"Receipt poll for {short_hash(tx_hash)} failed: {e}")
                receipt = None
            except (ValueError, Web3Exception) as e:
                raise LedgerError(f"Receipt poll for {tx_hash} failed: {e}")

            if receipt is not None:
                break
            await asyncio.sleep(self._poll_interval_s)

        block_number = receipt.get("blockNumber")
        if receipt.get("status") == 1:
            return TxReceipt(tx_hash=tx_hash, success=True, block_number=block_number)

        reason = await self._revert_reason(tx_hash, block_number)
        return TxReceipt(tx_hash=tx_hash, success=False, block_number=block_number, reason=reason)

    async def _revert_reason(self, tx_hash: str, block_number: Optional[int]) -> Optional[str]:
        """
        Recover a revert reason by replaying the call at its block.

        Returns None when the node does not give one back.
        """
        try:
            tx = await self._w3.eth.get_transaction(tx_hash)
            call = {
                "from": tx["from"],
                "to": tx["to"],
                "data": tx["input"],
                "value": tx.get("value", 0),
            }
            await self._w3.eth.call(call, block_identifier=block_number)
        except ContractLogicError as e:
            return revert_message(e)
        except (ValueError, Web3Exception, aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.debug(f"No revert reason for {short_hash(tx_hash)}: {e}")
        return None
