"""
Chains the signing flow can send transactions on.
"""
from dataclasses import dataclass
from typing import Dict, Optional

from utils.exceptions import ChainConfigurationError


@dataclass(frozen=True)
class ChainInfo:
    name: str
    chain_id: int
    rpc_url: str


# Lit's own chain; the contracts client connects here to mint PKPs and credits.
YELLOWSTONE_RPC_URL = 'https://yellowstone-rpc.litprotocol.com'

CHAINS: Dict[str, ChainInfo] = {
    'ethereum': ChainInfo('ethereum', 1, 'https://eth.llamarpc.com'),
    'sepolia': ChainInfo('sepolia', 11155111, 'https://ethereum-sepolia-rpc.publicnode.com'),
    'base': ChainInfo('base', 8453, 'https://mainnet.base.org'),
    'baseSepolia': ChainInfo('baseSepolia', 84532, 'https://sepolia.base.org'),
    'mantle': ChainInfo('mantle', 5000, 'https://rpc.mantle.xyz'),
    'mantleSepoliaTestnet': ChainInfo('mantleSepoliaTestnet', 5003, 'https://rpc.sepolia.mantle.xyz'),
    'yellowstone': ChainInfo('yellowstone', 175188, YELLOWSTONE_RPC_URL),
}


def get_chain_info(name: Optional[str], rpc_override: Optional[str] = None) -> ChainInfo:
    """
    Look up a chain by name.

    Args:
        name: Chain name as used by the key-management network
        rpc_override: RPC URL to use instead of the default one

    Raises:
        ChainConfigurationError: If the chain is not supported
    """
    chain = CHAINS.get(name) if name else None
    if chain is None:
        raise ChainConfigurationError(f'Invalid chain configuration for {name}', chain=name)
    if rpc_override:
        return ChainInfo(chain.name, chain.chain_id, rpc_override)
    return chain
