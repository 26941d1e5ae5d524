"""
Lit service wrapping the Lit Protocol Python client.

The SDK drives a single local Node server that holds one node client and
one operator wallet, so the whole process shares one ``LitClient`` and
signing flows run one at a time under ``SIGNING_LOCK``.
"""
import json
import threading
from typing import Any, Callable, Dict, Optional

from eth_account import Account

from logger_config import get_logger
from utils.exceptions import SigningError

logger = get_logger(__name__)

# Auth method type 1 is an Ethereum wallet signature; scope 1 lets the
# auth method sign anything with the minted PKP.
ETH_WALLET_AUTH_METHOD = 1
SIGN_ANYTHING_SCOPE = 1
SIWE_URI = 'lit:session:chain-gateway'

SIGNING_RESOURCE_ABILITY_REQUESTS = [
    {
        'resource': {'resource': '*', 'resourcePrefix': 'lit-pkp'},
        'ability': 'pkp-signing',
    },
    {
        'resource': {'resource': '*', 'resourcePrefix': 'lit-litaction'},
        'ability': 'lit-action-execution',
    },
]

SIGNING_LOCK = threading.Lock()

_shared_client: Optional[Any] = None
_shared_client_lock = threading.Lock()


def get_shared_client() -> Any:
    """Get the process-wide Lit client, starting the SDK server on first use."""
    global _shared_client
    with _shared_client_lock:
        if _shared_client is None:
            from lit_python_sdk import connect
            _shared_client = connect()
        return _shared_client


class LitService:
    """Service for Lit network operations on behalf of the operator wallet."""

    def __init__(
        self,
        network: str,
        private_key: str,
        debug: bool = False,
        client: Optional[Any] = None
    ) -> None:
        """
        Initialize Lit service.

        Args:
            network: Lit network name (e.g. "datil", "datil-test")
            private_key: Operator wallet key; signs SIWE messages and
                session signatures, and pays for PKP minting
            debug: Enable SDK debug logging
            client: SDK client to use instead of the shared one
        """
        self.network = network
        self.debug = debug
        self.wallet_address = Account.from_key(private_key).address
        self._private_key = private_key
        self._client = client
        self.has_node_client = False

    @property
    def client(self) -> Any:
        """Lazy lookup of the shared Lit client."""
        if self._client is None:
            self._client = get_shared_client()
        return self._client

    def _call(self, stage: str, method: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """
        Call an SDK method and turn failures into SigningError.

        The SDK returns error bodies instead of raising, so a result with
        ``success: false`` or an ``error`` member fails the stage too.
        """
        try:
            result = method(*args, **kwargs)
        except Exception as e:
            logger.error(f'Lit call failed during {stage}: {str(e)}')
            raise SigningError(f'Lit {stage} failed: {str(e)}', stage=stage) from e

        if isinstance(result, dict) and (result.get('success') is False or 'error' in result):
            error = result.get('error') or 'request was rejected'
            logger.error(f'Lit call rejected during {stage}: {error}')
            raise SigningError(f'Lit {stage} failed: {error}', stage=stage)
        return result

    @staticmethod
    def _field(stage: str, result: Any, key: str) -> Any:
        try:
            return result[key]
        except (KeyError, TypeError) as e:
            raise SigningError(f'Lit {stage} returned no {key}', stage=stage) from e

    def connect(self) -> None:
        """
        Connect the node client and load the operator wallet into it.

        The wallet is set after the node client exists; the SDK server
        rejects it before then.
        """
        logger.info('Initializing connection to the Lit network...')
        self._call('connect', self.client.new, self.network, debug=self.debug)
        # A node client exists from here on and must be disconnected.
        self.has_node_client = True
        self._call('connect', self.client.connect)
        self._call('connect', self.client.set_auth_token, self._private_key)
        logger.info('Connected to the Lit network')

    def connect_contracts(self) -> None:
        """Connect the contracts client used to mint PKPs."""
        logger.info('Connecting LitContracts client to network...')
        self._call(
            'connect', self.client.new_lit_contracts_client,
            self._private_key, self.network, debug=self.debug
        )
        logger.info('Connected LitContracts client to network')

    def create_wallet_auth_sig(self, expiration: str) -> Dict[str, Any]:
        """Sign a SIWE message with the operator wallet."""
        siwe_result = self._call(
            'mint_pkp', self.client.create_siwe_message,
            uri=SIWE_URI,
            expiration=expiration,
            resources=SIGNING_RESOURCE_ABILITY_REQUESTS,
            wallet_address=self.wallet_address,
        )
        auth_sig_result = self._call(
            'mint_pkp', self.client.generate_auth_sig,
            self._field('mint_pkp', siwe_result, 'siweMessage')
        )
        return self._field('mint_pkp', auth_sig_result, 'authSig')

    def mint_pkp(self, expiration: str) -> Dict[str, str]:
        """
        Mint a new PKP controlled by the operator wallet.

        Needs a connected node client for the SIWE nonce.

        Returns:
            {"tokenId", "publicKey", "ethAddress"} of the new PKP
        """
        if not self.has_node_client:
            raise SigningError('Lit node client must be connected before minting a PKP', stage='mint_pkp')

        logger.info("PKP wasn't provided, minting a new one...")
        auth_sig = self.create_wallet_auth_sig(expiration)
        mint_result = self._call(
            'mint_pkp', self.client.mint_with_auth,
            auth_method={
                'authMethodType': ETH_WALLET_AUTH_METHOD,
                'accessToken': json.dumps(auth_sig),
            },
            scopes=[SIGN_ANYTHING_SCOPE],
        )
        pkp = self._field('mint_pkp', mint_result, 'pkp')
        logger.info(f"PKP minted: token {pkp.get('tokenId')}, address {pkp.get('ethAddress')}")
        return {
            'tokenId': pkp.get('tokenId'),
            'publicKey': pkp.get('publicKey'),
            'ethAddress': pkp.get('ethAddress'),
        }

    def get_session_sigs(self, chain: str, expiration: str) -> Dict[str, Any]:
        """
        Session signatures allowing PKP signing and Lit Action execution.

        The operator wallet signs the session, so it must own a capacity
        credit on the Lit network.
        """
        result = self._call(
            'session_sigs', self.client.get_session_sigs,
            chain, expiration, SIGNING_RESOURCE_ABILITY_REQUESTS
        )
        return self._field('session_sigs', result, 'sessionSigs')

    def execute_js(
        self,
        code: str,
        js_params: Dict[str, Any],
        session_sigs: Dict[str, Any]
    ) -> Any:
        logger.info('Executing Lit Action...')
        result = self._call(
            'execute', self.client.execute_js,
            code=code, js_params=js_params, session_sigs=session_sigs
        )
        logger.info('Lit Action executed successfully')
        return result

    def disconnect(self) -> None:
        """
        Disconnect from the Lit network.

        Errors are logged and never raised, so a failed disconnect can't mask
        the result of the signing flow.
        """
        if not self.has_node_client:
            return
        try:
            self.client.disconnect()
            logger.info('Disconnected from Lit network')
        except Exception as e:
            logger.error(f'Error disconnecting from Lit network: {str(e)}')
        finally:
            self.has_node_client = False
