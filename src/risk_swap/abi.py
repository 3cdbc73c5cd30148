from __future__ import annotations

from web3 import Web3
from web3.contract import Contract

ERC20_ABI: list[dict] = [
    {
        "inputs": [{"internalType": "address", "name": "account", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "decimals",
        "outputs": [{"internalType": "uint8", "name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function",
    },
]


def erc20_contract(w3: Web3, token_address: str) -> Contract:
    """Bind the ERC20 ABI to ``token_address`` on ``w3``."""
    return w3.eth.contract(
        address=w3.to_checksum_address(token_address), abi=ERC20_ABI
    )
