"""
Pure helpers for building and describing unsigned transactions.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import rlp
from eth_utils import from_wei, keccak, to_bytes, to_checksum_address, to_int


def to_quantity(value: Any) -> int:
    """Turn an int or a 0x-prefixed hex quantity into an int."""
    if value is None or value == '':
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.startswith(('0x', '0X')):
        return to_int(hexstr=value)
    return int(value)


def _to_data(value: Any) -> bytes:
    if not value:
        return b''
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return to_bytes(hexstr=value)


def serialize_unsigned_transaction(tx: Dict[str, Any]) -> bytes:
    """
    RLP-encode a legacy transaction for signing.

    With a chain id this is the EIP-155 preimage
    [nonce, gasPrice, gasLimit, to, value, data, chainId, 0, 0].
    """
    fields = [
        to_quantity(tx.get('nonce')),
        to_quantity(tx.get('gasPrice')),
        to_quantity(tx.get('gasLimit', tx.get('gas'))),
        _to_data(tx.get('to')),
        to_quantity(tx.get('value')),
        _to_data(tx.get('data')),
    ]
    chain_id = to_quantity(tx.get('chainId'))
    if chain_id:
        fields.extend([chain_id, 0, 0])
    return rlp.encode(fields)


def unsigned_transaction_hash(tx: Dict[str, Any]) -> bytes:
    """Digest the key-management network signs for this transaction."""
    return keccak(serialize_unsigned_transaction(tx))


def compute_address(public_key: str) -> str:
    """
    Derive the checksum address of an uncompressed secp256k1 public key.

    Accepts hex with or without a 0x prefix and with or without the 04
    uncompressed-point marker.
    """
    key = public_key[2:] if public_key.startswith(('0x', '0X')) else public_key
    if len(key) == 130 and key.startswith('04'):
        key = key[2:]
    if len(key) != 128:
        raise ValueError('Public key must be an uncompressed secp256k1 key')
    return to_checksum_address(keccak(bytes.fromhex(key))[-20:])


def apply_gas_buffer(estimate: int) -> int:
    # 20% on top of the node's estimate
    return estimate * 12 // 10


def describe_transaction(tx: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of an unsigned transaction with human-readable amounts for logs."""
    described = dict(tx)
    described['value'] = str(from_wei(to_quantity(tx.get('value')), 'ether'))
    if 'gasLimit' in tx:
        described['gasLimit'] = str(to_quantity(tx['gasLimit']))
    if 'gasPrice' in tx:
        described['gasPrice'] = str(from_wei(to_quantity(tx['gasPrice']), 'gwei'))
    return described


def session_expiration(now: Optional[datetime] = None, hours: int = 24) -> str:
    """ISO-8601 expiration for a signing session, in UTC."""
    now = now or datetime.now(timezone.utc)
    expires = now.astimezone(timezone.utc) + timedelta(hours=hours)
    return expires.isoformat(timespec='milliseconds').replace('+00:00', 'Z')
