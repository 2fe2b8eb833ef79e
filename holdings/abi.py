# getInfo(address[] erc20s, address[] erc721s, uint256[] counts, uint256[] erc721TokenIds)
#   view returns (uint256 balance, uint256 blockNumber,
#                 (bytes name, bytes symbol, uint256 decimals, uint256 balance)[] erc20Infos,
#                 (bytes name, bytes symbol)[] erc721Infos,
#                 (uint256 owner, bytes tokenUri)[] erc721TokenInfos)
ACCOUNT_INFO_ABI = [
    {
        "type": "function",
        "name": "getInfo",
        "stateMutability": "view",
        "inputs": [
            {"name": "erc20s", "type": "address[]"},
            {"name": "erc721s", "type": "address[]"},
            {"name": "counts", "type": "uint256[]"},
            {"name": "erc721TokenIds", "type": "uint256[]"}
        ],
        "outputs": [
            {"name": "balance", "type": "uint256"},
            {"name": "blockNumber", "type": "uint256"},
            {
                "name": "erc20Infos",
                "type": "tuple[]",
                "components": [
                    {"name": "name", "type": "bytes"},
                    {"name": "symbol", "type": "bytes"},
                    {"name": "decimals", "type": "uint256"},
                    {"name": "balance", "type": "uint256"}
                ]
            },
            {
                "name": "erc721Infos",
                "type": "tuple[]",
                "components": [
                    {"name": "name", "type": "bytes"},
                    {"name": "symbol", "type": "bytes"}
                ]
            },
            {
                "name": "erc721TokenInfos",
                "type": "tuple[]",
                "components": [
                    {"name": "owner", "type": "uint256"},
                    {"name": "tokenUri", "type": "bytes"}
                ]
            }
        ]
    }
]
