"""
Validators for explorer and signing request input.

Each validator returns the normalized value or raises ValidationError.
"""
import re
from datetime import timezone
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional

from dateutil.parser import parse as parse_date

from utils.exceptions import ValidationError

ADDRESS_RE = re.compile(r'^0x[a-fA-F0-9]{40}$')
TX_HASH_RE = re.compile(r'^0x[a-fA-F0-9]{64}$')

MAX_BATCH_ADDRESSES = 20
SORT_ORDERS = ('asc', 'desc')
CLOSEST_OPTIONS = ('before', 'after')


def is_address(value: Any) -> bool:
    return isinstance(value, str) and bool(ADDRESS_RE.match(value))


def is_tx_hash(value: Any) -> bool:
    return isinstance(value, str) and bool(TX_HASH_RE.match(value))


def validate_address(value: Any, field: str = 'address') -> str:
    if not is_address(value):
        raise ValidationError('Invalid address format', field=field, value=value)
    return value


def validate_tx_hash(value: Any, field: str = 'txhash') -> str:
    if not is_tx_hash(value):
        raise ValidationError('Invalid transaction hash format', field=field, value=value)
    return value


def validate_addresses(value: Any) -> List[str]:
    """
    Validate a batch of addresses for a multi-balance lookup.

    Args:
        value: Request body "addresses" value

    Returns:
        The list of addresses

    Raises:
        ValidationError: If the value is not a list of 1-20 valid addresses
    """
    if (not isinstance(value, list) or len(value) == 0
            or len(value) > MAX_BATCH_ADDRESSES):
        raise ValidationError(
            'Invalid addresses array. Must contain 1-20 addresses.',
            field='addresses', value=value
        )
    for address in value:
        validate_address(address, field='addresses')
    return value


def validate_block_number(value: Any) -> str:
    if not isinstance(value, str) or not value.isdigit():
        raise ValidationError('Invalid block number', field='blockno', value=value)
    return value


def validate_positive_int(value: Any, field: str) -> str:
    text = str(value)
    if not text.isdigit() or int(text) <= 0:
        raise ValidationError(f'Invalid {field}: must be a positive integer', field=field, value=value)
    return text


def validate_block_tag(value: Any, field: str) -> str:
    """Block bounds accept a block number or the "latest" tag."""
    text = str(value)
    if text != 'latest' and not text.isdigit():
        raise ValidationError(f'Invalid {field}', field=field, value=value)
    return text


def validate_choice(value: Any, choices: tuple, field: str) -> str:
    if value not in choices:
        raise ValidationError(
            f"Invalid {field}: must be one of {', '.join(choices)}",
            field=field, value=value
        )
    return value


def parse_unix_timestamp(value: Any) -> str:
    """
    Normalize a timestamp path value to unix seconds.

    Accepts unix seconds as digits, or any date string python-dateutil can
    parse. Naive dates are taken as UTC.
    """
    text = str(value).strip()
    if text.isdigit():
        return text
    try:
        parsed = parse_date(text)
    except (ValueError, OverflowError):
        raise ValidationError('Invalid timestamp', field='timestamp', value=value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return str(int(parsed.timestamp()))


def validate_ether_value(value: Any) -> str:
    """Validate a non-negative decimal ether amount given as a string or number."""
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError('Invalid value: must be a decimal ether amount', field='value', value=value)
    if not amount.is_finite() or amount < 0:
        raise ValidationError('Invalid value: must be a decimal ether amount', field='value', value=value)
    return str(value)


def validate_contract_call(
    abi: Any,
    function_name: Any,
    function_params: Optional[Any]
) -> List[Any]:
    """
    Validate an ABI, a function name present in it, and its call arguments.

    Returns:
        The function params list (empty when not given)
    """
    if not isinstance(abi, list) or len(abi) == 0:
        raise ValidationError('Invalid abi: must be a non-empty array', field='abi')
    if not isinstance(function_name, str) or not function_name:
        raise ValidationError('functionName is required', field='functionName')

    functions = [
        entry for entry in abi
        if isinstance(entry, dict) and entry.get('type', 'function') == 'function'
        and entry.get('name') == function_name
    ]
    if not functions:
        raise ValidationError(
            f'Function {function_name} not found in abi',
            field='functionName', value=function_name
        )

    if function_params is None:
        return []
    if not isinstance(function_params, list):
        raise ValidationError('functionParams must be an array', field='functionParams')
    return function_params
