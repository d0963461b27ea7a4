"""Credentials for the remote service, read from AWS Secrets Manager."""
import json
import logging
from typing import Optional

import boto3
from botocore.exceptions import ClientError

from processor.errors import CredentialsError
from processor.models import Credentials

logger = logging.getLogger(__name__)

SECRET_KEYS = {
    'username': 'rwgps_username',
    'password': 'rwgps_password',
    'api_key': 'rwgps_api_key',
    'auth_token': 'rwgps_auth_token',
}


class SecretsManagerCredentialStore:
    """Loads Credentials from one JSON secret."""

    def __init__(self, secret_id: str, region_name: Optional[str] = None):
        self.secret_id = secret_id
        self.client = boto3.client('secretsmanager', region_name=region_name)

    def load(self) -> Credentials:
        """
        Read and parse the secret.

        Returns:
            Credentials built from the secret's keys

        Raises:
            CredentialsError: If the secret cannot be read, is not JSON or
                lacks a key
        """
        try:
            response = self.client.get_secret_value(SecretId=self.secret_id)
        except ClientError as e:
            logger.error(f"Error reading secret {self.secret_id}: {e}")
            raise CredentialsError(f"Could not read secret {self.secret_id}") from e

        try:
            secret = json.loads(response.get('SecretString') or '')
        except ValueError as e:
            raise CredentialsError(f"Secret {self.secret_id} is not valid JSON") from e
        if not isinstance(secret, dict):
            raise CredentialsError(f"Secret {self.secret_id} must be a JSON object")

        missing = [key for key in SECRET_KEYS.values() if not secret.get(key)]
        if missing:
            raise CredentialsError(
                f"Secret {self.secret_id} is missing: {', '.join(missing)}"
            )

        logger.info(f"Loaded credentials from secret {self.secret_id}")
        return Credentials(**{field: secret[key] for field, key in SECRET_KEYS.items()})
