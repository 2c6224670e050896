"""Minimal FranchiserController ABI: the views and calls the miner uses."""

CONTROLLER_ABI = [
    {
        "type": "function",
        "name": "checkProfitability",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [
            {"name": "isProfitable", "type": "bool"},
            {"name": "currentPrice", "type": "uint256"},
            {"name": "recommendedAmount", "type": "uint256"},
        ],
    },
    {
        "type": "function",
        "name": "executeMint",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "recipient", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "getMiningStatus",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [
            {"name": "isEnabled", "type": "bool"},
            {"name": "canMintNow", "type": "bool"},
            {"name": "currentPrice", "type": "uint256"},
            {"name": "nextMintTime", "type": "uint256"},
            {"name": "ethBalance", "type": "uint256"},
            {"name": "currentEpochId", "type": "uint256"},
        ],
    },
    {
        "type": "function",
        "name": "config",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [
            {"name": "maxPricePerToken", "type": "uint256"},
            {"name": "minProfitMargin", "type": "uint256"},
            {"name": "maxMintAmount", "type": "uint256"},
            {"name": "minMintAmount", "type": "uint256"},
            {"name": "autoMiningEnabled", "type": "bool"},
            {"name": "cooldownPeriod", "type": "uint256"},
            {"name": "maxGasPrice", "type": "uint256"},
        ],
    },
    {
        "type": "function",
        "name": "lastMintTimestamp",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "franchiserRig",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "type": "event",
        "name": "TokensMinted",
        "anonymous": False,
        "inputs": [
            {"name": "recipient", "type": "address", "indexed": True},
            {"name": "amount", "type": "uint256", "indexed": False},
            {"name": "cost", "type": "uint256", "indexed": False},
            {"name": "epochId", "type": "uint256", "indexed": False},
        ],
    },
]
