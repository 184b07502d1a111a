"""
Ledger access for the trading client.

Contains:
- LedgerClient: the read/write interface the state machine depends on
- Web3Ledger: JSON-RPC implementation over web3.py
- Signers: in-process key (LocalAccountSigner) or node/wallet (NodeSigner)
"""

from .abi import ERC20_ABI, PREDICTION_MARKET_ABI
from .base import LedgerClient
from .signer import Signer, LocalAccountSigner, NodeSigner, is_user_rejection
from .web3_ledger import Web3Ledger, revert_message

__all__ = [
    "ERC20_ABI",
    "PREDICTION_MARKET_ABI",
    "LedgerClient",
    "Signer",
    "LocalAccountSigner",
    "NodeSigner",
    "is_user_rejection",
    "Web3Ledger",
    "revert_message",
]
