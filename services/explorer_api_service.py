"""
Explorer API service for Etherscan-compatible block explorer calls.
"""
import requests
from typing import Any, Dict, List, Optional
from logger_config import get_logger
from utils.exceptions import ExplorerAPIError

logger = get_logger(__name__)


class ExplorerAPIService:
    """Service for one network's Etherscan-compatible explorer API."""

    DEFAULT_HEADERS = {
        'Accept': 'application/json',
        'User-Agent': 'chain-gateway/1.0',
    }

    def __init__(
        self,
        network: str,
        base_url: Optional[str],
        api_key: Optional[str],
        timeout: int = 30,
        api_key_env: str = "EXPLORER_API_KEY",
        base_url_env: str = "EXPLORER_API_URL"
    ) -> None:
        """
        Initialize explorer API service.

        Args:
            network: Display name used in error messages (e.g. "Mantle")
            base_url: Explorer API endpoint
            api_key: Explorer API key
            timeout: Request timeout in seconds
            api_key_env: Name of the API key variable, used in errors
            base_url_env: Name of the endpoint variable, used in errors
        """
        self.network: str = network
        self.base_url: Optional[str] = base_url
        self.api_key: Optional[str] = api_key
        self.timeout: int = timeout
        self.api_key_env: str = api_key_env
        self.base_url_env: str = base_url_env

    def request(self, params: Dict[str, Any]) -> Any:
        """
        Call the explorer API with the given module/action parameters.

        Args:
            params: Query parameters; the API key is added here

        Returns:
            The "result" member of the explorer response

        Raises:
            ExplorerAPIError: If configuration is missing, the request fails,
                or the explorer reports status "0"
        """
        if not self.api_key:
            raise ExplorerAPIError(
                f'{self.api_key_env} environment variable is not set',
                network=self.network
            )
        if not self.base_url:
            raise ExplorerAPIError(
                f'{self.base_url_env} environment variable is not set',
                network=self.network
            )

        query = {**params, 'apikey': self.api_key}
        response = None

        try:
            response = requests.get(
                self.base_url,
                params=query,
                headers=self.DEFAULT_HEADERS,
                timeout=self.timeout
            )
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as e:
            status_code = response.status_code if response is not None else None
            logger.error(
                f'{self.network} explorer request {params.get("module")}/{params.get("action")} '
                f'failed: {str(e)}'
            )
            raise ExplorerAPIError(str(e), network=self.network, status_code=status_code) from e

        if not isinstance(body, dict):
            logger.error(f'{self.network} explorer returned a non-object JSON body')
            raise ExplorerAPIError(
                'Invalid JSON response', network=self.network,
                status_code=response.status_code
            )

        if str(body.get('status')) == '0':
            raise ExplorerAPIError(
                body.get('result') or 'API request failed',
                network=self.network,
                status_code=response.status_code,
                response_data=body
            )

        logger.debug(f'{self.network} explorer {params.get("module")}/{params.get("action")} ok')
        return body.get('result')

    # Account

    def get_balance(self, address: str) -> Any:
        return self.request({
            'module': 'account',
            'action': 'balance',
            'address': address,
            'tag': 'latest',
        })

    def get_balances(self, addresses: List[str]) -> Any:
        return self.request({
            'module': 'account',
            'action': 'balancemulti',
            'address': ','.join(addresses),
            'tag': 'latest',
        })

    def get_transactions(self, address: str, **paging: str) -> Any:
        return self.request({
            'module': 'account',
            'action': 'txlist',
            'address': address,
            **paging,
        })

    def get_internal_transactions(self, address: str, **paging: str) -> Any:
        return self.request({
            'module': 'account',
            'action': 'txlistinternal',
            'address': address,
            **paging,
        })

    def get_internal_transactions_by_hash(self, txhash: str) -> Any:
        return self.request({
            'module': 'account',
            'action': 'txlistinternal',
            'txhash': txhash,
        })

    # Tokens

    def get_token_transfers(
        self,
        address: str,
        contract_address: Optional[str] = None,
        **paging: str
    ) -> Any:
        params = {
            'module': 'account',
            'action': 'tokentx',
            'address': address,
            **paging,
        }
        if contract_address:
            params['contractaddress'] = contract_address
        return self.request(params)

    def get_nft_transfers(
        self,
        address: str,
        contract_address: Optional[str] = None,
        **paging: str
    ) -> Any:
        params = {
            'module': 'account',
            'action': 'tokennfttx',
            'address': address,
            **paging,
        }
        if contract_address:
            params['contractaddress'] = contract_address
        return self.request(params)

    def get_token_supply(self, contract_address: str) -> Any:
        return self.request({
            'module': 'stats',
            'action': 'tokensupply',
            'contractaddress': contract_address,
        })

    def get_token_balance(self, contract_address: str, address: str) -> Any:
        return self.request({
            'module': 'account',
            'action': 'tokenbalance',
            'contractaddress': contract_address,
            'address': address,
            'tag': 'latest',
        })

    # Contracts

    def get_contract_abi(self, address: str) -> Any:
        return self.request({'module': 'contract', 'action': 'getabi', 'address': address})

    def get_contract_source(self, address: str) -> Any:
        return self.request({'module': 'contract', 'action': 'getsourcecode', 'address': address})

    # Transactions

    def get_transaction_status(self, txhash: str) -> Any:
        return self.request({'module': 'transaction', 'action': 'getstatus', 'txhash': txhash})

    def get_transaction_receipt_status(self, txhash: str) -> Any:
        return self.request({
            'module': 'transaction',
            'action': 'gettxreceiptstatus',
            'txhash': txhash,
        })

    # Blocks

    def get_block_reward(self, block_number: str) -> Any:
        return self.request({'module': 'block', 'action': 'getblockreward', 'blockno': block_number})

    def get_block_countdown(self, block_number: str) -> Any:
        return self.request({
            'module': 'block',
            'action': 'getblockcountdown',
            'blockno': block_number,
        })

    def get_block_by_timestamp(self, timestamp: str, closest: str = 'before') -> Any:
        return self.request({
            'module': 'block',
            'action': 'getblocknobytime',
            'timestamp': timestamp,
            'closest': closest,
        })
