"""
Chain service for RPC reads and transaction building on the signing chain.
"""
from decimal import Decimal
from typing import Any, Dict, List, Optional

from eth_account import Account
from web3 import Web3

from chains import ChainInfo
from logger_config import get_logger
from transactions import apply_gas_buffer, describe_transaction

logger = get_logger(__name__)

TRANSFER_GAS_LIMIT = 21000


class ChainService:
    """Service for web3 operations against one chain."""

    def __init__(self, chain_info: ChainInfo, request_timeout: int = 60) -> None:
        """
        Initialize chain service.

        Args:
            chain_info: Chain to talk to
            request_timeout: RPC request timeout in seconds
        """
        self.chain_info = chain_info
        self.request_timeout = request_timeout
        self._w3: Optional[Web3] = None

    @property
    def w3(self) -> Web3:
        """Lazy initialization of the web3 client."""
        if self._w3 is None:
            self._w3 = Web3(Web3.HTTPProvider(
                self.chain_info.rpc_url,
                request_kwargs={'timeout': self.request_timeout}
            ))
        return self._w3

    def get_balance(self, address: str) -> int:
        return self.w3.eth.get_balance(Web3.to_checksum_address(address))

    def get_gas_price(self) -> int:
        return self.w3.eth.gas_price

    def get_transaction_count(self, address: str) -> int:
        return self.w3.eth.get_transaction_count(Web3.to_checksum_address(address))

    def build_contract_transaction(
        self,
        contract_address: str,
        abi: List[Dict[str, Any]],
        function_name: str,
        params: List[Any],
        sender: str,
        value_eth: str = "0"
    ) -> Dict[str, Any]:
        """
        Build an unsigned legacy transaction calling a contract function.

        Gas is estimated from the sender with the call's value and given a
        20% buffer. Quantities are returned as hex strings.

        Args:
            contract_address: Contract to call
            abi: Contract ABI
            function_name: Function to call
            params: Function arguments
            sender: Address the transaction will be sent from
            value_eth: Ether to attach, as a decimal string

        Returns:
            Unsigned transaction dictionary

        Raises:
            ValueError: If the function or its arguments don't match the ABI
            Web3Exception: If an RPC call fails
        """
        contract = self.w3.eth.contract(
            address=Web3.to_checksum_address(contract_address), abi=abi
        )
        sender = Web3.to_checksum_address(sender)
        value = Web3.to_wei(Decimal(value_eth), 'ether')

        function_call = contract.functions[function_name](*params)
        data = contract.encode_abi(function_name, args=params)

        gas_price = self.get_gas_price()
        estimated_gas = function_call.estimate_gas({'from': sender, 'value': value})
        nonce = self.get_transaction_count(sender)

        unsigned_transaction = {
            'to': contract.address,
            'data': data,
            'value': hex(value),
            'gasLimit': hex(apply_gas_buffer(estimated_gas)),
            'gasPrice': hex(gas_price),
            'nonce': nonce,
            'chainId': self.chain_info.chain_id,
        }
        logger.info(f'Created unsigned transaction: {describe_transaction(unsigned_transaction)}')
        return unsigned_transaction

    def build_transfer_transaction(
        self,
        sender: str,
        to: str,
        value_wei: int
    ) -> Dict[str, Any]:
        """Build an unsigned native-currency transfer from ``sender``."""
        return {
            'to': Web3.to_checksum_address(to),
            'value': hex(value_wei),
            'gasLimit': hex(TRANSFER_GAS_LIMIT),
            'gasPrice': hex(self.get_gas_price()),
            'nonce': self.get_transaction_count(sender),
            'chainId': self.chain_info.chain_id,
        }

    def send_transaction(
        self,
        private_key: str,
        tx: Dict[str, Any],
        receipt_timeout: int = 300
    ) -> Dict[str, Any]:
        """
        Sign a legacy transaction with the operator key, send it and wait
        for the receipt.

        Gas price, nonce and chain id are filled in unless ``tx`` sets them.

        Returns:
            Transaction receipt

        Raises:
            RuntimeError: If the transaction reverts
        """
        account = Account.from_key(private_key)
        tx = {
            'gasPrice': self.get_gas_price(),
            'nonce': self.get_transaction_count(account.address),
            'chainId': self.chain_info.chain_id,
            **tx,
        }
        signed = account.sign_transaction(tx)
        tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        receipt = self.w3.eth.wait_for_transaction_receipt(
            tx_hash, timeout=receipt_timeout, poll_latency=5
        )
        if receipt.get('status') != 1:
            raise RuntimeError(f'Transaction {Web3.to_hex(tx_hash)} reverted')
        return receipt

    def send_funding_transaction(
        self,
        private_key: str,
        to: str,
        value_eth: str = "0.001",
        receipt_timeout: int = 300
    ) -> str:
        """
        Send ether from the operator wallet and wait for the receipt.

        Returns:
            Hex transaction hash

        Raises:
            RuntimeError: If the funding transaction reverts
        """
        receipt = self.send_transaction(private_key, {
            'to': Web3.to_checksum_address(to),
            'value': Web3.to_wei(Decimal(value_eth), 'ether'),
            'gas': TRANSFER_GAS_LIMIT,
        }, receipt_timeout=receipt_timeout)
        tx_hash_hex = Web3.to_hex(receipt['transactionHash'])
        logger.info(f'Funding transaction confirmed: {tx_hash_hex}')
        return tx_hash_hex
