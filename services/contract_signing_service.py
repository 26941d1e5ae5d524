"""
Contract signing service.

Builds unsigned transactions for the PKP (the Lit-managed key), has the
Lit network threshold-sign and broadcast them, and returns the Lit Action
result.
"""
from typing import Any, Callable, Dict, List, Optional, Tuple

from web3 import Web3

from chains import ChainInfo, get_chain_info
from config import Config
from lit_action import LIT_ACTION_CODE
from logger_config import get_logger
from services.capacity_credit_service import CapacityCreditService
from services.chain_service import ChainService
from services.lit_service import SIGNING_LOCK, LitService
from services.secrets_service import SecretsService
from transactions import compute_address, session_expiration, unsigned_transaction_hash
from utils.exceptions import ChainConfigurationError, SigningError

logger = get_logger(__name__)

UnsignedTxBuilder = Callable[[ChainService, str, str], Dict[str, Any]]


class ContractSigningService:
    """Orchestrates PKP setup and threshold signing of transactions."""

    # Balance below which the PKP is topped up before signing, in wei
    MIN_PKP_BALANCE_WEI = 25000
    FUNDING_AMOUNT_ETH = "0.001"
    SIG_NAME = "signedTransaction"

    def __init__(
        self,
        config: Config,
        secrets_service: Optional[SecretsService] = None,
        chain_service_factory: Callable[[ChainInfo], ChainService] = ChainService,
        lit_service_factory: Callable[..., LitService] = LitService,
        capacity_credit_service_factory: Callable[[str], CapacityCreditService] = CapacityCreditService
    ) -> None:
        """
        Initialize contract signing service.

        Args:
            config: Gateway configuration
            secrets_service: Resolves the operator private key
            chain_service_factory: Builds the web3 service for a chain
            lit_service_factory: Builds the Lit service for a network and key
            capacity_credit_service_factory: Builds the capacity credit minter
                for a Lit network
        """
        self.config = config
        self.secrets_service = secrets_service or SecretsService(config.aws_region)
        self.chain_service_factory = chain_service_factory
        self.lit_service_factory = lit_service_factory
        self.capacity_credit_service_factory = capacity_credit_service_factory

    def _validate_environment(self) -> None:
        missing = self.config.missing_signing_settings()
        if missing:
            raise ChainConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}",
                chain=self.config.chain_to_send_tx_on
            )

    def _prepare(self) -> Tuple[ChainInfo, str]:
        self._validate_environment()
        chain_info = get_chain_info(self.config.chain_to_send_tx_on, self.config.chain_rpc_url)
        private_key = self.secrets_service.get_private_key(
            self.config.private_key_secret_name, self.config.ethereum_private_key
        )
        return chain_info, private_key

    def _resolve_pkp(self, lit: LitService) -> Dict[str, str]:
        public_key = self.config.lit_pkp_public_key
        if not public_key:
            pkp = lit.mint_pkp(session_expiration())
            if not pkp.get('ethAddress') and pkp.get('publicKey'):
                pkp['ethAddress'] = compute_address(pkp['publicKey'])
            return pkp

        logger.info(f'Using provided PKP: {public_key}')
        try:
            eth_address = compute_address(public_key)
        except ValueError as e:
            raise ChainConfigurationError(f'Invalid LIT_PKP_PUBLIC_KEY: {str(e)}') from e
        return {'publicKey': public_key, 'ethAddress': eth_address}

    def _ensure_pkp_funded(
        self,
        chain: ChainService,
        private_key: str,
        pkp_address: str
    ) -> Optional[str]:
        """
        Top up the PKP from the operator wallet when its balance is too low.

        Returns:
            Funding transaction hash, or None if no funding was needed
        """
        logger.info('Checking PKP balance...')
        try:
            balance = chain.get_balance(pkp_address)
            if balance >= self.MIN_PKP_BALANCE_WEI:
                logger.info(f'PKP has a sufficient balance of: {Web3.from_wei(balance, "ether")}')
                return None

            logger.info(f'PKP balance {balance} wei is insufficient, funding PKP...')
            tx_hash = chain.send_funding_transaction(
                private_key, pkp_address, self.FUNDING_AMOUNT_ETH
            )
        except Exception as e:
            raise SigningError(f'Failed to fund PKP {pkp_address}: {str(e)}', stage='fund_pkp') from e
        logger.info(f'PKP funded. Transaction hash: {tx_hash}')
        return tx_hash

    def _resolve_capacity_token(self, private_key: str) -> str:
        """
        Make sure the operator wallet owns a capacity credit.

        The operator wallet signs the session, so the credit has to be its
        own; a configured token id is trusted to belong to it.
        """
        token_id = self.config.lit_capacity_credit_token_id
        if token_id:
            logger.info(f'Using provided Capacity Credit with ID: {token_id}')
            return token_id
        try:
            credits = self.capacity_credit_service_factory(self.config.lit_network)
            return credits.mint_capacity_credit(
                private_key, requests_per_kilosecond=10, days_until_utc_midnight_expiration=1
            )
        except Exception as e:
            raise SigningError(
                f'Failed to mint Capacity Credit: {str(e)}', stage='capacity_credit'
            ) from e

    def _sign_and_send(self, build_unsigned: UnsignedTxBuilder) -> Any:
        chain_info, private_key = self._prepare()
        chain = self.chain_service_factory(chain_info)

        with SIGNING_LOCK:
            lit = self.lit_service_factory(
                self.config.lit_network, private_key, debug=self.config.is_development
            )
            try:
                lit.connect()
                lit.connect_contracts()
                pkp = self._resolve_pkp(lit)
                self._ensure_pkp_funded(chain, private_key, pkp['ethAddress'])

                logger.info('Creating unsigned transaction...')
                try:
                    unsigned_transaction = build_unsigned(chain, pkp['ethAddress'], lit.wallet_address)
                except Exception as e:
                    raise SigningError(
                        f'Failed to build transaction: {str(e)}', stage='build_transaction'
                    ) from e
                to_sign = unsigned_transaction_hash(unsigned_transaction)
                logger.info('Transaction created and serialized')

                self._resolve_capacity_token(private_key)

                session_sigs = lit.get_session_sigs(
                    chain=chain_info.name,
                    expiration=session_expiration(hours=24),
                )

                return lit.execute_js(
                    code=LIT_ACTION_CODE,
                    js_params={
                        'toSign': list(to_sign),
                        'publicKey': pkp['publicKey'],
                        'sigName': self.SIG_NAME,
                        'chain': chain_info.name,
                        'unsignedTransaction': unsigned_transaction,
                    },
                    session_sigs=session_sigs,
                )
            except Exception as e:
                logger.error(f'Transaction Error: {str(e)}')
                raise
            finally:
                lit.disconnect()

    def sign_and_execute_contract_tx(
        self,
        contract_address: str,
        contract_abi: List[Dict[str, Any]],
        function_name: str,
        function_params: List[Any],
        value_in_ether: str = "0"
    ) -> Any:
        """
        Call a contract function from the PKP, signed by the Lit network.

        Args:
            contract_address: Contract to call
            contract_abi: Contract ABI
            function_name: Function to call
            function_params: Function arguments
            value_in_ether: Ether to attach, as a decimal string

        Returns:
            The Lit Action execution result

        Raises:
            ChainConfigurationError: If signing settings are missing or invalid
            SigningError: If a step of the flow fails
        """
        def build(chain: ChainService, pkp_address: str, operator_address: str) -> Dict[str, Any]:
            return chain.build_contract_transaction(
                contract_address, contract_abi, function_name, function_params,
                sender=pkp_address, value_eth=value_in_ether
            )

        return self._sign_and_send(build)

    def sign_and_send_test_transaction(self) -> Any:
        """Send 1 wei from the PKP back to the operator wallet."""
        def build(chain: ChainService, pkp_address: str, operator_address: str) -> Dict[str, Any]:
            return chain.build_transfer_transaction(pkp_address, operator_address, 1)

        return self._sign_and_send(build)
