"""
Signing routes: contract calls co-signed by the Lit network.
"""
from typing import Any, Callable, Dict, List, Optional

from flask import Blueprint, jsonify, request

from config import get_config
from logger_config import get_logger
from services.contract_signing_service import ContractSigningService
from utils.decorators import api_endpoint, error_body, utc_timestamp
from utils.validators import validate_address, validate_contract_call, validate_ether_value

logger = get_logger(__name__)

# SimpleStorage contract used to smoke-test the signing flow
TEST_CONTRACT = {
    'address': '0x20e305f7113fc50546D60d6d7588948Ae8f41bA2',
    'abi': [
        {
            'inputs': [
                {'internalType': 'uint256', 'name': 'num', 'type': 'uint256'},
            ],
            'name': 'store',
            'outputs': [],
            'stateMutability': 'nonpayable',
            'type': 'function',
        },
        {
            'inputs': [],
            'name': 'retrieve',
            'outputs': [
                {'internalType': 'uint256', 'name': '', 'type': 'uint256'},
            ],
            'stateMutability': 'view',
            'type': 'function',
        },
    ],
}
TEST_FUNCTION_NAME = 'store'
TEST_FUNCTION_PARAMS = [56]


def contract_call_response(
    result: Any,
    contract_address: str,
    function_name: str,
    function_params: List[Any],
    failure_message: str
):
    if not result:
        response = jsonify(error_body(failure_message))
        response.status_code = 500
        return response

    return jsonify({
        'success': True,
        'data': result,
        'metadata': {
            'contractAddress': contract_address,
            'functionName': function_name,
            'functionParams': function_params,
            'timestamp': utc_timestamp(),
        },
    })


def create_signing_blueprint(
    service_factory: Optional[Callable[[], ContractSigningService]] = None
) -> Blueprint:
    """
    Create the blueprint for Lit-signed transactions.

    Args:
        service_factory: Returns the signing service for a request; by
            default it is built from the current configuration
    """
    bp = Blueprint('signing', __name__)

    def service() -> ContractSigningService:
        if service_factory is not None:
            return service_factory()
        return ContractSigningService(get_config())

    @bp.route('/test-contract', methods=['GET'])
    @api_endpoint
    def test_contract():
        logger.info(
            f"Executing test contract interaction: contract {TEST_CONTRACT['address']}, "
            f"function {TEST_FUNCTION_NAME}, value {TEST_FUNCTION_PARAMS[0]}"
        )
        result = service().sign_and_execute_contract_tx(
            TEST_CONTRACT['address'],
            TEST_CONTRACT['abi'],
            TEST_FUNCTION_NAME,
            TEST_FUNCTION_PARAMS,
            "0",
        )
        return contract_call_response(
            result, TEST_CONTRACT['address'], TEST_FUNCTION_NAME, TEST_FUNCTION_PARAMS,
            'Test contract interaction failed'
        )

    @bp.route('/contract/execute', methods=['POST'])
    @api_endpoint
    def execute_contract():
        body: Dict[str, Any] = request.get_json(silent=True)
        if not isinstance(body, dict):
            body = {}

        contract_address = validate_address(body.get('contractAddress'), field='contractAddress')
        abi = body.get('abi')
        function_name = body.get('functionName')
        function_params = validate_contract_call(abi, function_name, body.get('functionParams'))
        value = validate_ether_value(body.get('value', '0'))

        logger.info(f'Executing {function_name} on {contract_address} with value {value}')
        result = service().sign_and_execute_contract_tx(
            contract_address, abi, function_name, function_params, value
        )
        return contract_call_response(
            result, contract_address, function_name, function_params,
            'Contract interaction failed'
        )

    @bp.route('/transaction/send-test', methods=['POST'])
    @api_endpoint
    def send_test_transaction():
        result = service().sign_and_send_test_transaction()
        if not result:
            response = jsonify(error_body('Test transaction failed'))
            response.status_code = 500
            return response
        return result

    return bp
