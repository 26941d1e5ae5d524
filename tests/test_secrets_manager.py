"""
Tests for resolving the operator key through Secrets Manager.
"""
import json

import boto3
import pytest
from moto import mock_aws

from services.secrets_service import SecretsService
from tests.conftest import TEST_PRIVATE_KEY

ENV_PRIVATE_KEY = '0x' + '11' * 32


@pytest.mark.secrets_manager
@mock_aws()
def test_private_key_from_json_secret():
    """Test retrieving the key from a JSON secret."""
    secrets_client = boto3.client('secretsmanager', region_name='us-east-1')
    secrets_client.create_secret(
        Name='gateway/operator',
        SecretString=json.dumps({'private_key': TEST_PRIVATE_KEY})
    )

    service = SecretsService('us-east-1')

    assert service.get_private_key('gateway/operator', None) == TEST_PRIVATE_KEY


@pytest.mark.secrets_manager
@mock_aws()
def test_private_key_from_raw_secret():
    secrets_client = boto3.client('secretsmanager', region_name='us-east-1')
    secrets_client.create_secret(Name='gateway/operator', SecretString=TEST_PRIVATE_KEY)

    service = SecretsService('us-east-1')

    assert service.get_private_key('gateway/operator', None) == TEST_PRIVATE_KEY


@pytest.mark.secrets_manager
@mock_aws()
def test_secrets_manager_takes_priority():
    """Test that Secrets Manager wins over the env var when both exist."""
    secrets_client = boto3.client('secretsmanager', region_name='us-east-1')
    secrets_client.create_secret(
        Name='gateway/operator',
        SecretString=json.dumps({'private_key': TEST_PRIVATE_KEY})
    )

    service = SecretsService('us-east-1')

    assert service.get_private_key('gateway/operator', ENV_PRIVATE_KEY) == TEST_PRIVATE_KEY


@pytest.mark.secrets_manager
@mock_aws()
def test_secret_missing_key_falls_back():
    """Test fallback when the secret exists but has no private_key."""
    secrets_client = boto3.client('secretsmanager', region_name='us-east-1')
    secrets_client.create_secret(Name='gateway/operator', SecretString=json.dumps({}))

    service = SecretsService('us-east-1')

    assert service.get_private_key('gateway/operator', ENV_PRIVATE_KEY) == ENV_PRIVATE_KEY


@pytest.mark.secrets_manager
@mock_aws()
def test_missing_secret_falls_back():
    """Test fallback when Secrets Manager raises for an unknown secret."""
    service = SecretsService('us-east-1')

    assert service.get_private_key('does-not-exist', ENV_PRIVATE_KEY) == ENV_PRIVATE_KEY


@pytest.mark.secrets_manager
@mock_aws()
def test_missing_secret_without_fallback():
    service = SecretsService('us-east-1')

    with pytest.raises(ValueError) as exc_info:
        service.get_private_key('does-not-exist', None)

    assert 'Secret name: does-not-exist' in str(exc_info.value)
