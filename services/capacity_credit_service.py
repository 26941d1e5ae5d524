"""
Capacity credit service for Lit's RateLimitNFT contract on Chronicle Yellowstone.

A capacity credit pays for requests to the Lit network. The wallet that
signs session signatures has to own the credit, so credits are minted
straight to the operator wallet.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from eth_account import Account
from web3 import Web3

from chains import get_chain_info
from logger_config import get_logger
from services.chain_service import ChainService
from transactions import apply_gas_buffer

logger = get_logger(__name__)

RATE_LIMIT_NFT_ADDRESSES = {
    'datil': '0x01205d94Fee4d9F59A4aB24bf80D11d4DdAf6Eed',
    'datil-test': '0xa17f11B7f828EEc97926E56D98D5AB63A0231b77',
    'datil-dev': '0x1A12D5B3D6A52B3bDe0468900795D35ce994ac2b',
}

RATE_LIMIT_NFT_ABI = [
    {
        'inputs': [
            {'internalType': 'uint256', 'name': 'requestsPerKilosecond', 'type': 'uint256'},
            {'internalType': 'uint256', 'name': 'expiresAt', 'type': 'uint256'},
        ],
        'name': 'calculateCost',
        'outputs': [{'internalType': 'uint256', 'name': '', 'type': 'uint256'}],
        'stateMutability': 'view',
        'type': 'function',
    },
    {
        'inputs': [{'internalType': 'uint256', 'name': 'expiresAt', 'type': 'uint256'}],
        'name': 'mint',
        'outputs': [{'internalType': 'uint256', 'name': '', 'type': 'uint256'}],
        'stateMutability': 'payable',
        'type': 'function',
    },
]


def utc_midnight_expiration(days: int, now: Optional[datetime] = None) -> int:
    """Unix timestamp of UTC midnight ``days`` days from today."""
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    midnight = datetime(now.year, now.month, now.day, tzinfo=timezone.utc)
    return int((midnight + timedelta(days=days)).timestamp())


class CapacityCreditService:
    """Service for minting capacity credits with the operator wallet."""

    def __init__(
        self,
        network: str,
        chain_service: Optional[ChainService] = None
    ) -> None:
        """
        Initialize capacity credit service.

        Args:
            network: Lit network name; selects the RateLimitNFT deployment
            chain_service: Chain service for Chronicle Yellowstone

        Raises:
            ValueError: If the network has no known RateLimitNFT deployment
        """
        if network not in RATE_LIMIT_NFT_ADDRESSES:
            raise ValueError(f'No RateLimitNFT contract known for Lit network {network}')
        self.network = network
        self.contract_address = RATE_LIMIT_NFT_ADDRESSES[network]
        self.chain_service = chain_service or ChainService(get_chain_info('yellowstone'))

    def mint_capacity_credit(
        self,
        private_key: str,
        requests_per_kilosecond: int = 10,
        days_until_utc_midnight_expiration: int = 1
    ) -> str:
        """
        Mint a capacity credit owned by the operator wallet.

        Args:
            private_key: Operator wallet key; pays the mint cost and owns the credit
            requests_per_kilosecond: Request rate the credit allows
            days_until_utc_midnight_expiration: Days until the credit expires,
                counted to UTC midnight

        Returns:
            Token id of the new credit, as a decimal string

        Raises:
            RuntimeError: If the mint transaction reverts or emits no token id
        """
        logger.info('No Capacity Credit provided, minting a new one...')
        w3 = self.chain_service.w3
        operator = Account.from_key(private_key).address
        contract = w3.eth.contract(
            address=Web3.to_checksum_address(self.contract_address), abi=RATE_LIMIT_NFT_ABI
        )
        expires_at = utc_midnight_expiration(days_until_utc_midnight_expiration)

        mint_cost = contract.functions.calculateCost(requests_per_kilosecond, expires_at).call()
        logger.info(f'Capacity Credit mint cost: {mint_cost} wei, expires at {expires_at}')

        mint_call = contract.functions.mint(expires_at)
        receipt = self.chain_service.send_transaction(private_key, {
            'to': contract.address,
            'data': contract.encode_abi('mint', args=[expires_at]),
            'value': mint_cost,
            'gas': apply_gas_buffer(mint_call.estimate_gas({'from': operator, 'value': mint_cost})),
        })

        # The first log is the ERC-721 Transfer; topic 3 is the token id.
        try:
            token_id = int.from_bytes(bytes(receipt['logs'][0]['topics'][3]), 'big')
        except (IndexError, KeyError) as e:
            raise RuntimeError(
                f"Capacity Credit mint {Web3.to_hex(receipt['transactionHash'])} emitted no token id"
            ) from e

        logger.info(f'Minted new Capacity Credit with ID: {token_id}')
        return str(token_id)
