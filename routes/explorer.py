"""
Explorer proxy routes.

One blueprint per network, each translating HTTP path and query values into
Etherscan-style module/action parameters for that network's explorer.
"""
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from flask import Blueprint, request

from config import Config, get_config
from services.explorer_api_service import ExplorerAPIService
from utils.decorators import api_endpoint
from utils.validators import (
    CLOSEST_OPTIONS,
    SORT_ORDERS,
    parse_unix_timestamp,
    validate_address,
    validate_addresses,
    validate_block_number,
    validate_block_tag,
    validate_choice,
    validate_positive_int,
    validate_tx_hash,
)


@dataclass(frozen=True)
class ExplorerNetwork:
    slug: str
    display_name: str
    url_attr: str
    api_key_attr: str
    url_env: str
    api_key_env: str


EXPLORER_NETWORKS: Dict[str, ExplorerNetwork] = {
    'mantle': ExplorerNetwork(
        slug='mantle',
        display_name='Mantle',
        url_attr='mantle_explorer_url',
        api_key_attr='mantle_explorer_api_key',
        url_env='MANTLE_EXPLORER_API_BASE_URL',
        api_key_env='MANTLE_EXPLORER_API_KEY',
    ),
    'base-sepolia': ExplorerNetwork(
        slug='base-sepolia',
        display_name='Base Sepolia',
        url_attr='base_sepolia_explorer_url',
        api_key_attr='base_sepolia_explorer_api_key',
        url_env='BASE_SEPOLIA_EXPLORER_URL',
        api_key_env='BASE_SEPOLIA_EXPLORER_API_KEY',
    ),
}


def build_explorer_service(network: ExplorerNetwork, config: Config) -> ExplorerAPIService:
    return ExplorerAPIService(
        network=network.display_name,
        base_url=getattr(config, network.url_attr),
        api_key=getattr(config, network.api_key_attr),
        timeout=config.explorer_timeout,
        api_key_env=network.api_key_env,
        base_url_env=network.url_env,
    )


def paging_params() -> Dict[str, str]:
    """Block range, page and sort query values with their defaults."""
    args = request.args
    return {
        'startblock': validate_block_tag(args.get('startblock') or '0', 'startblock'),
        'endblock': validate_block_tag(args.get('endblock') or 'latest', 'endblock'),
        'page': validate_positive_int(args.get('page') or '1', 'page'),
        'offset': validate_positive_int(args.get('offset') or '10', 'offset'),
        'sort': validate_choice(args.get('sort') or 'desc', SORT_ORDERS, 'sort'),
    }


def optional_contract_address() -> str:
    contract_address = request.args.get('contractaddress')
    if contract_address:
        validate_address(contract_address, field='contractaddress')
    return contract_address


def create_explorer_blueprint(
    network: ExplorerNetwork,
    service_factory: Optional[Callable[[], ExplorerAPIService]] = None
) -> Blueprint:
    """
    Create the explorer proxy blueprint for a network.

    Args:
        network: Network whose explorer the routes proxy to
        service_factory: Returns the explorer service for a request; by
            default it is built from the current configuration

    Returns:
        Blueprint to register under the network's URL prefix
    """
    bp = Blueprint(f"{network.slug.replace('-', '_')}_explorer", __name__)

    def service() -> ExplorerAPIService:
        if service_factory is not None:
            return service_factory()
        return build_explorer_service(network, get_config())

    # Account routes

    @bp.route('/balance/<address>', methods=['GET'])
    @api_endpoint
    def balance(address):
        return service().get_balance(validate_address(address))

    @bp.route('/balances', methods=['POST'])
    @api_endpoint
    def balances():
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            body = {}
        addresses = validate_addresses(body.get('addresses'))
        return service().get_balances(addresses)

    @bp.route('/transactions/<address>', methods=['GET'])
    @api_endpoint
    def transactions(address):
        validate_address(address)
        return service().get_transactions(address, **paging_params())

    @bp.route('/internal-transactions/<address>', methods=['GET'])
    @api_endpoint
    def internal_transactions(address):
        validate_address(address)
        return service().get_internal_transactions(address, **paging_params())

    @bp.route('/internal-tx/<txhash>', methods=['GET'])
    @bp.route('/internal-transactions-by-txhash/<txhash>', methods=['GET'])
    @api_endpoint
    def internal_transactions_by_hash(txhash):
        return service().get_internal_transactions_by_hash(validate_tx_hash(txhash))

    # Token routes

    @bp.route('/token-transfers/<address>', methods=['GET'])
    @api_endpoint
    def token_transfers(address):
        validate_address(address)
        contract_address = optional_contract_address()
        return service().get_token_transfers(address, contract_address, **paging_params())

    @bp.route('/nft-transfers/<address>', methods=['GET'])
    @api_endpoint
    def nft_transfers(address):
        validate_address(address)
        contract_address = optional_contract_address()
        return service().get_nft_transfers(address, contract_address, **paging_params())

    @bp.route('/token/supply/<contractaddress>', methods=['GET'])
    @api_endpoint
    def token_supply(contractaddress):
        validate_address(contractaddress, field='contractaddress')
        return service().get_token_supply(contractaddress)

    @bp.route('/token/balance/<contractaddress>/<address>', methods=['GET'])
    @api_endpoint
    def token_balance(contractaddress, address):
        validate_address(contractaddress, field='contractaddress')
        validate_address(address)
        return service().get_token_balance(contractaddress, address)

    # Contract routes

    @bp.route('/contract/abi/<address>', methods=['GET'])
    @api_endpoint
    def contract_abi(address):
        return service().get_contract_abi(validate_address(address))

    @bp.route('/contract/source/<address>', methods=['GET'])
    @api_endpoint
    def contract_source(address):
        return service().get_contract_source(validate_address(address))

    # Transaction routes

    @bp.route('/transaction/status/<txhash>', methods=['GET'])
    @api_endpoint
    def transaction_status(txhash):
        return service().get_transaction_status(validate_tx_hash(txhash))

    @bp.route('/transaction/receipt/<txhash>', methods=['GET'])
    @api_endpoint
    def transaction_receipt(txhash):
        return service().get_transaction_receipt_status(validate_tx_hash(txhash))

    # Block routes

    @bp.route('/block/reward/<blockno>', methods=['GET'])
    @api_endpoint
    def block_reward(blockno):
        return service().get_block_reward(validate_block_number(blockno))

    @bp.route('/block/countdown/<blockno>', methods=['GET'])
    @api_endpoint
    def block_countdown(blockno):
        return service().get_block_countdown(validate_block_number(blockno))

    @bp.route('/block/bytimestamp/<timestamp>', methods=['GET'])
    @api_endpoint
    def block_by_timestamp(timestamp):
        closest = validate_choice(
            request.args.get('closest') or 'before', CLOSEST_OPTIONS, 'closest'
        )
        return service().get_block_by_timestamp(parse_unix_timestamp(timestamp), closest)

    return bp
