"""Minimal contract ABIs for the token and market ledgers."""

ERC20_ABI = [
    {
        "constant": True,
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "name": "allowance",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "constant": False,
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "name": "approve",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

PREDICTION_MARKET_ABI = [
    {
        "inputs": [],
        "name": "numMarkets",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            {"internalType": "uint256", "name": "marketId", "type": "uint256"},
            {"internalType": "uint8", "name": "outcome", "type": "uint8"},
            {"internalType": "uint256", "name": "amountIn", "type": "uint256"},
        ],
        "name": "buy",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [
            {"internalType": "uint256", "name": "marketId", "type": "uint256"},
            {"internalType": "address", "name": "user", "type": "address"},
        ],
        "name": "getBalances",
        "outputs": [
            {"internalType": "uint256", "name": "yesShares", "type": "uint256"},
            {"internalType": "uint256", "name": "noShares", "type": "uint256"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"internalType": "uint256", "name": "marketId", "type": "uint256"}],
        "name": "getMarket",
        "outputs": [
            {"internalType": "string", "name": "question", "type": "string"},
            {"internalType": "uint64", "name": "endTime", "type": "uint64"},
            {"internalType": "bool", "name": "resolved", "type": "bool"},
            {"internalType": "bool", "name": "invalid", "type": "bool"},
            {"internalType": "uint8", "name": "winningOutcome", "type": "uint8"},
            {"internalType": "uint16", "name": "feeBps", "type": "uint16"},
            {"internalType": "uint256", "name": "protocolFeesAccrued", "type": "uint256"},
            {"internalType": "uint256", "name": "yesLiquidity", "type": "uint256"},
            {"internalType": "uint256", "name": "noLiquidity", "type": "uint256"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"internalType": "uint256", "name": "marketId", "type": "uint256"}],
        "name": "claim",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [
            {"internalType": "uint256", "name": "marketId", "type": "uint256"},
            {"internalType": "uint8", "name": "outcome", "type": "uint8"},
        ],
        "name": "getCurrentPrice",
        "outputs": [{"internalType": "uint256", "name": "price", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
]
