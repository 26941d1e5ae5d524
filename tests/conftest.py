"""
Shared fixtures for gateway tests.
"""
import pytest

import config as config_module
from config import Config

# Hardhat's first development account; never holds real funds.
TEST_PRIVATE_KEY = '0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80'
TEST_WALLET_ADDRESS = '0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266'

# Uncompressed public key of private key 1 and its address
TEST_PKP_PUBLIC_KEY = (
    '0479be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798'
    '483ada7726a3c4655da4fbfc0e1108a8fd17b448a68554199c47d08ffb10d4b8'
)
TEST_PKP_ADDRESS = '0x7E5F4552091A69125d5DfCb7b8C2659029395Bdf'

VALID_ADDRESS = '0x20e305f7113fc50546D60d6d7588948Ae8f41bA2'
VALID_TX_HASH = '0x' + 'ab' * 32


@pytest.fixture(autouse=True)
def reset_config():
    """Drop the cached configuration between tests."""
    config_module._config = None
    yield
    config_module._config = None


@pytest.fixture
def gateway_config():
    return Config(
        environment='production',
        mantle_explorer_url='https://explorer.mantle.test/api',
        mantle_explorer_api_key='mantle-key',
        base_sepolia_explorer_url='https://api-sepolia.basescan.test/api',
        base_sepolia_explorer_api_key='base-key',
        ethereum_private_key=TEST_PRIVATE_KEY,
        chain_to_send_tx_on='baseSepolia',
        lit_pkp_public_key=TEST_PKP_PUBLIC_KEY,
        lit_capacity_credit_token_id='42',
    )


@pytest.fixture
def app(gateway_config):
    from app import create_app
    application = create_app(gateway_config)
    application.config['TESTING'] = True
    return application


@pytest.fixture
def client(app):
    return app.test_client()
