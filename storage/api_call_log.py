"""DynamoDB log of requests made to the remote service."""
import logging
import time
import uuid
from typing import Dict, Mapping, Optional

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

REDACTED = '***'
SENSITIVE_HEADERS = frozenset({'cookie', 'authorization', 'user-password'})


def sanitize_headers(headers: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """Copy request headers with credentials replaced by a marker."""
    return {
        name: REDACTED if name.lower() in SENSITIVE_HEADERS else str(value)
        for name, value in (headers or {}).items()
    }


class ApiCallLog:
    """Records one item per request/response pair."""

    MAX_BODY_LENGTH = 4000
    TTL_DAYS = 14

    def __init__(self, table_name: str, ttl_days: int = TTL_DAYS):
        """
        Initialize DynamoDB table reference.

        Args:
            table_name: Name of the DynamoDB table (hash key 'call_id')
            ttl_days: Days before DynamoDB expires an entry
        """
        self.table_name = table_name
        self.ttl_days = ttl_days
        self.dynamodb = boto3.resource('dynamodb')
        self.table = self.dynamodb.Table(table_name)
        logger.info(f"Initialized ApiCallLog for table: {table_name}")

    def record(
        self,
        operation: str,
        method: str,
        url: str,
        request_headers: Optional[Mapping[str, str]],
        status_code: int,
        response_body: str
    ) -> Optional[str]:
        """
        Store one request/response pair.

        Write failures are logged and otherwise ignored.

        Args:
            operation: Client operation that made the request
            method: HTTP method
            url: Request URL
            request_headers: Request headers; credentials are redacted
            status_code: Response status
            response_body: Response text, truncated before storing

        Returns:
            The new entry's call_id, or None if the write failed
        """
        now = int(time.time())
        body = response_body or ''
        if len(body) > self.MAX_BODY_LENGTH:
            body = body[:self.MAX_BODY_LENGTH] + '...'

        item = {
            'call_id': uuid.uuid4().hex,
            'operation': operation,
            'method': method.upper(),
            'url': url,
            'request_headers': sanitize_headers(request_headers),
            'status_code': status_code,
            'response_body': body,
            'timestamp': now,
            'ttl': now + self.ttl_days * 86400,
        }

        try:
            self.table.put_item(Item=item)
        except ClientError as e:
            logger.error(f"Error writing API call log entry: {e}")
            return None
        return item['call_id']

