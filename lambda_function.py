"""AWS Lambda handler for Ride with GPS ride scheduling operations."""
import inspect
import json
import logging
import os
import time
from typing import Any, Dict, List, Union

from processor.errors import CredentialsError
from processor.models import Dialect, OperationResult
from rwgps.client import RWGPSClient
from rwgps.config import ClientConfig
from storage.api_call_log import ApiCallLog
from storage.credential_store import SecretsManagerCredentialStore

# Client operations callable through the handler
OPERATIONS = frozenset({
    'get_event',
    'edit_event',
    'create_event',
    'delete_event',
    'delete_events',
    'cancel_event',
    'reinstate_event',
    'schedule_event',
    'update_event',
    'import_route',
    'get_route',
    'set_route_expiration',
    'add_event_tags',
    'remove_event_tags',
    'add_route_tags',
    'remove_route_tags',
    'copy_template',
    'lookup_organizers',
    'get_club_members',
})

# Operations whose web-dialect calls need a session opened first
SESSION_OPERATIONS = frozenset({
    'add_event_tags',
    'remove_event_tags',
    'add_route_tags',
    'remove_route_tags',
    'set_route_expiration',
    'copy_template',
    'lookup_organizers',
    'get_club_members',
})

# Operations that write events in the configured write dialect
EVENT_WRITE_OPERATIONS = frozenset({
    'edit_event',
    'cancel_event',
    'reinstate_event',
})

REMOTE_ERROR_TYPES = frozenset({'RemoteError', 'TransportError'})
AUTH_ERROR_TYPES = frozenset({'AuthFailed'})


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    EXTRA_FIELDS = ('operation', 'status_code', 'duration_seconds', 'error_type')

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        for field in self.EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_data[field] = value

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def status_for(result: Union[OperationResult, List[OperationResult]]) -> int:
    """
    HTTP status for an operation outcome.

    Args:
        result: Result of one operation, or one result per item

    Returns:
        200 on success, 401 for a failed login, 502 when the remote
        service or the network failed, 400 for any other failure
    """
    if isinstance(result, list):
        failures = [r for r in result if not r.success]
        return status_for(failures[0]) if failures else 200
    if result.success:
        return 200
    if result.error_type in AUTH_ERROR_TYPES:
        return 401
    if result.error_type in REMOTE_ERROR_TYPES:
        return 502
    return 400


def needs_session(operation: str, params: Dict[str, Any], config: ClientConfig) -> bool:
    """
    Whether the handler must log in before running the operation.

    Event writes need a session when the write dialect is the web dialect,
    and get_event needs one when reading through it.
    """
    if operation in SESSION_OPERATIONS:
        return True
    if operation in EVENT_WRITE_OPERATIONS:
        return config.write_dialect == Dialect.WEB
    if operation == 'get_event':
        dialect = params.get('dialect', Dialect.V1)
        return isinstance(dialect, str) and dialect.lower() == Dialect.WEB
    return False


def _response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    return {'statusCode': status_code, 'body': json.dumps(body, default=str)}


def build_client(config: ClientConfig) -> RWGPSClient:
    """
    Build a client from the secret and optional call log table in the environment.

    Raises:
        CredentialsError: If CREDENTIALS_SECRET_ID is unset or unreadable
    """
    secret_id = os.environ.get('CREDENTIALS_SECRET_ID')
    if not secret_id:
        raise CredentialsError('CREDENTIALS_SECRET_ID is not set')
    credentials = SecretsManagerCredentialStore(secret_id).load()

    table_name = os.environ.get('API_LOG_TABLE')
    call_log = ApiCallLog(table_name) if table_name else None

    return RWGPSClient(credentials, config=config, call_log=call_log)


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler function for ride scheduling operations.

    Args:
        event: Payload of the form {"operation": name, "params": {...}}
        context: Lambda context object

    Returns:
        Response dict with statusCode and the operation result as body
    """
    log_level = os.environ.get('LOG_LEVEL', 'INFO')

    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    start_time = time.time()
    operation = (event or {}).get('operation')
    params = (event or {}).get('params') or {}

    logger.info("Lambda execution started", extra={'operation': operation})

    if operation not in OPERATIONS:
        logger.warning(f"Unknown operation: {operation}")
        return _response(400, {
            'message': f"Unknown operation: {operation}",
            'operations': sorted(OPERATIONS)
        })
    if not isinstance(params, dict):
        return _response(400, {'message': 'params must be an object'})

    try:
        config = ClientConfig.from_env()
        client = build_client(config)

        method = getattr(client, operation)
        try:
            inspect.signature(method).bind(**params)
        except TypeError as e:
            logger.warning(f"Invalid parameters for {operation}: {e}", extra={'operation': operation})
            return _response(400, {'message': f"Invalid parameters for {operation}: {e}"})

        if needs_session(operation, params, config) and not client.login():
            result = OperationResult.failure('Login failed: no session cookie returned', 'AuthFailed')
        else:
            result = method(**params)

        duration = round(time.time() - start_time, 2)
        status_code = status_for(result)
        logger.info(
            "Lambda execution completed",
            extra={
                'operation': operation,
                'status_code': status_code,
                'duration_seconds': duration
            }
        )

        if isinstance(result, list):
            body = {
                'success': status_code == 200,
                'results': [r.to_dict() for r in result]
            }
        else:
            body = result.to_dict()
        body['duration_seconds'] = duration
        return _response(status_code, body)

    except CredentialsError as e:
        logger.error(
            f"Could not load credentials: {e}",
            extra={'operation': operation, 'error_type': e.code}
        )
        return _response(500, {
            'message': 'Could not load credentials',
            'error': str(e),
            'error_type': e.code
        })

    except Exception as e:
        duration = time.time() - start_time

        logger.error(
            f"Lambda execution failed: {str(e)}",
            extra={
                'operation': operation,
                'duration_seconds': round(duration, 2),
                'error_type': type(e).__name__
            },
            exc_info=True
        )

        return _response(500, {
            'message': 'Operation failed',
            'error': str(e),
            'error_type': type(e).__name__,
            'duration_seconds': round(duration, 2)
        })
