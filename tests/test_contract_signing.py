"""
Unit tests for the Lit signing orchestration.
"""
import pytest
from unittest.mock import Mock, create_autospec

from config import Config
from lit_action import LIT_ACTION_CODE
from services.capacity_credit_service import CapacityCreditService
from services.contract_signing_service import ContractSigningService
from services.lit_service import SIGNING_LOCK, LitService
from transactions import unsigned_transaction_hash
from utils.exceptions import ChainConfigurationError, SigningError
from tests.conftest import (
    TEST_PKP_ADDRESS,
    TEST_PKP_PUBLIC_KEY,
    TEST_PRIVATE_KEY,
    TEST_WALLET_ADDRESS,
    VALID_ADDRESS,
)

UNSIGNED_TX = {
    'to': VALID_ADDRESS,
    'data': '0x6057361d0000000000000000000000000000000000000000000000000000000000000038',
    'value': '0x0',
    'gasLimit': hex(52000),
    'gasPrice': hex(10 ** 9),
    'nonce': 3,
    'chainId': 84532,
}
STORE_ABI = [{'type': 'function', 'name': 'store', 'inputs': [{'name': 'num', 'type': 'uint256'}]}]


@pytest.fixture
def chain():
    chain = Mock()
    chain.get_balance.return_value = 10 ** 18
    chain.build_contract_transaction.return_value = dict(UNSIGNED_TX)
    chain.build_transfer_transaction.return_value = dict(UNSIGNED_TX)
    chain.send_funding_transaction.return_value = '0x' + 'cd' * 32
    return chain


@pytest.fixture
def lit():
    lit = create_autospec(LitService, instance=True)
    lit.wallet_address = TEST_WALLET_ADDRESS
    lit.mint_pkp.return_value = {
        'tokenId': '0x1', 'publicKey': TEST_PKP_PUBLIC_KEY, 'ethAddress': TEST_PKP_ADDRESS
    }
    lit.get_session_sigs.return_value = {'node-1': 'session'}
    lit.execute_js.return_value = {'success': True, 'response': 'Transaction Sent Successfully'}
    return lit


@pytest.fixture
def credits():
    credits = create_autospec(CapacityCreditService, instance=True)
    credits.mint_capacity_credit.return_value = '77'
    return credits


def make_service(config, chain, lit, credits=None):
    secrets = Mock()
    secrets.get_private_key.return_value = TEST_PRIVATE_KEY
    lit_factory = Mock(return_value=lit)
    chain_factory = Mock(return_value=chain)
    credits_factory = Mock(return_value=credits)
    service = ContractSigningService(
        config,
        secrets_service=secrets,
        chain_service_factory=chain_factory,
        lit_service_factory=lit_factory,
        capacity_credit_service_factory=credits_factory,
    )
    return service, chain_factory, lit_factory


def lit_steps(lit):
    return [c[0] for c in lit.mock_calls]


class TestSignAndExecuteContractTx:
    """Tests for ContractSigningService.sign_and_execute_contract_tx."""

    def test_full_flow_with_configured_pkp(self, gateway_config, chain, lit, credits):
        service, chain_factory, lit_factory = make_service(gateway_config, chain, lit, credits)

        result = service.sign_and_execute_contract_tx(VALID_ADDRESS, STORE_ABI, 'store', [56], '0')

        assert result == {'success': True, 'response': 'Transaction Sent Successfully'}
        assert chain_factory.call_args.args[0].chain_id == 84532
        lit_factory.assert_called_once_with('datil', TEST_PRIVATE_KEY, debug=False)

        assert lit_steps(lit) == [
            'connect', 'connect_contracts', 'get_session_sigs', 'execute_js', 'disconnect'
        ]
        chain.build_contract_transaction.assert_called_once_with(
            VALID_ADDRESS, STORE_ABI, 'store', [56], sender=TEST_PKP_ADDRESS, value_eth='0'
        )
        credits.mint_capacity_credit.assert_not_called()

        session_kwargs = lit.get_session_sigs.call_args.kwargs
        assert session_kwargs['chain'] == 'baseSepolia'
        assert session_kwargs['expiration'].endswith('Z')

        execute_kwargs = lit.execute_js.call_args.kwargs
        assert execute_kwargs['code'] == LIT_ACTION_CODE
        assert execute_kwargs['session_sigs'] == {'node-1': 'session'}
        assert execute_kwargs['js_params'] == {
            'toSign': list(unsigned_transaction_hash(UNSIGNED_TX)),
            'publicKey': TEST_PKP_PUBLIC_KEY,
            'sigName': 'signedTransaction',
            'chain': 'baseSepolia',
            'unsignedTransaction': UNSIGNED_TX,
        }

    def test_flow_runs_under_signing_lock(self, gateway_config, chain, lit):
        held = []
        lit.execute_js.side_effect = lambda *args, **kwargs: held.append(SIGNING_LOCK.locked())
        service, _, _ = make_service(gateway_config, chain, lit)

        service.sign_and_execute_contract_tx(VALID_ADDRESS, STORE_ABI, 'store', [56])

        assert held == [True]
        assert SIGNING_LOCK.locked() is False

    def test_sufficient_balance_skips_funding(self, gateway_config, chain, lit):
        service, _, _ = make_service(gateway_config, chain, lit)

        service.sign_and_execute_contract_tx(VALID_ADDRESS, STORE_ABI, 'store', [56])

        chain.get_balance.assert_called_once_with(TEST_PKP_ADDRESS)
        chain.send_funding_transaction.assert_not_called()

    def test_low_balance_funds_pkp(self, gateway_config, chain, lit):
        chain.get_balance.return_value = 24999
        service, _, _ = make_service(gateway_config, chain, lit)

        service.sign_and_execute_contract_tx(VALID_ADDRESS, STORE_ABI, 'store', [56])

        chain.send_funding_transaction.assert_called_once_with(
            TEST_PRIVATE_KEY, TEST_PKP_ADDRESS, '0.001'
        )

    def test_funding_failure(self, gateway_config, chain, lit):
        chain.get_balance.return_value = 0
        chain.send_funding_transaction.side_effect = RuntimeError('insufficient funds')
        service, _, _ = make_service(gateway_config, chain, lit)

        with pytest.raises(SigningError) as exc_info:
            service.sign_and_execute_contract_tx(VALID_ADDRESS, STORE_ABI, 'store', [56])

        assert exc_info.value.stage == 'fund_pkp'
        lit.execute_js.assert_not_called()

    def test_mints_pkp_after_connecting(self, chain, lit, credits):
        """Minting needs the node client, so connect comes first."""
        config = Config(
            environment='development',
            ethereum_private_key=TEST_PRIVATE_KEY,
            chain_to_send_tx_on='baseSepolia',
        )
        service, _, lit_factory = make_service(config, chain, lit, credits)

        service.sign_and_execute_contract_tx(VALID_ADDRESS, STORE_ABI, 'store', [56])

        lit_factory.assert_called_once_with('datil', TEST_PRIVATE_KEY, debug=True)
        steps = lit_steps(lit)
        assert steps.index('connect') < steps.index('mint_pkp')
        assert steps.index('connect_contracts') < steps.index('mint_pkp')
        chain.build_contract_transaction.assert_called_once_with(
            VALID_ADDRESS, STORE_ABI, 'store', [56], sender=TEST_PKP_ADDRESS, value_eth='0'
        )

    def test_mints_capacity_credit_to_operator(self, chain, lit, credits):
        config = Config(
            ethereum_private_key=TEST_PRIVATE_KEY,
            chain_to_send_tx_on='baseSepolia',
            lit_pkp_public_key=TEST_PKP_PUBLIC_KEY,
            lit_network='datil-test',
        )
        service, _, _ = make_service(config, chain, lit, credits)

        service.sign_and_execute_contract_tx(VALID_ADDRESS, STORE_ABI, 'store', [56])

        service.capacity_credit_service_factory.assert_called_once_with('datil-test')
        credits.mint_capacity_credit.assert_called_once_with(
            TEST_PRIVATE_KEY, requests_per_kilosecond=10, days_until_utc_midnight_expiration=1
        )
        lit.get_session_sigs.assert_called_once()

    def test_capacity_credit_failure(self, chain, lit, credits):
        config = Config(
            ethereum_private_key=TEST_PRIVATE_KEY,
            chain_to_send_tx_on='baseSepolia',
            lit_pkp_public_key=TEST_PKP_PUBLIC_KEY,
        )
        credits.mint_capacity_credit.side_effect = RuntimeError('insufficient funds for gas')
        service, _, _ = make_service(config, chain, lit, credits)

        with pytest.raises(SigningError, match='insufficient funds for gas') as exc_info:
            service.sign_and_execute_contract_tx(VALID_ADDRESS, STORE_ABI, 'store', [56])

        assert exc_info.value.stage == 'capacity_credit'
        lit.get_session_sigs.assert_not_called()
        lit.disconnect.assert_called_once_with()

    def test_missing_settings(self, chain, lit):
        service, chain_factory, lit_factory = make_service(Config(), chain, lit)

        with pytest.raises(ChainConfigurationError) as exc_info:
            service.sign_and_execute_contract_tx(VALID_ADDRESS, STORE_ABI, 'store', [56])

        assert str(exc_info.value) == (
            'Missing required environment variables: ETHEREUM_PRIVATE_KEY, CHAIN_TO_SEND_TX_ON'
        )
        chain_factory.assert_not_called()
        lit_factory.assert_not_called()

    def test_unknown_chain(self, gateway_config, chain, lit):
        gateway_config.chain_to_send_tx_on = 'dogechain'
        service, _, _ = make_service(gateway_config, chain, lit)

        with pytest.raises(ChainConfigurationError, match='Invalid chain configuration for dogechain'):
            service.sign_and_execute_contract_tx(VALID_ADDRESS, STORE_ABI, 'store', [56])

    def test_invalid_pkp_public_key(self, gateway_config, chain, lit):
        gateway_config.lit_pkp_public_key = '0x1234'
        service, _, _ = make_service(gateway_config, chain, lit)

        with pytest.raises(ChainConfigurationError, match='LIT_PKP_PUBLIC_KEY'):
            service.sign_and_execute_contract_tx(VALID_ADDRESS, STORE_ABI, 'store', [56])
        lit.disconnect.assert_called_once_with()

    def test_build_failure(self, gateway_config, chain, lit):
        chain.build_contract_transaction.side_effect = ValueError('execution reverted')
        service, _, _ = make_service(gateway_config, chain, lit)

        with pytest.raises(SigningError, match='execution reverted') as exc_info:
            service.sign_and_execute_contract_tx(VALID_ADDRESS, STORE_ABI, 'store', [56])

        assert exc_info.value.stage == 'build_transaction'
        lit.disconnect.assert_called_once_with()

    def test_execute_failure_still_disconnects(self, gateway_config, chain, lit):
        lit.execute_js.side_effect = SigningError('Lit execute failed: timeout', stage='execute')
        service, _, _ = make_service(gateway_config, chain, lit)

        with pytest.raises(SigningError, match='timeout'):
            service.sign_and_execute_contract_tx(VALID_ADDRESS, STORE_ABI, 'store', [56])

        lit.disconnect.assert_called_once_with()


class TestSignAndSendTestTransaction:

    def test_sends_one_wei_to_operator(self, gateway_config, chain, lit):
        service, _, _ = make_service(gateway_config, chain, lit)

        result = service.sign_and_send_test_transaction()

        assert result['success'] is True
        chain.build_transfer_transaction.assert_called_once_with(
            TEST_PKP_ADDRESS, TEST_WALLET_ADDRESS, 1
        )
        chain.build_contract_transaction.assert_not_called()
        lit.disconnect.assert_called_once_with()
