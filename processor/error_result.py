"""Turns failed HTTP responses into human-readable failure results."""
import json
import logging

from bs4 import BeautifulSoup

from processor.models import OperationResult

logger = logging.getLogger(__name__)

MAX_RAW_BODY_LENGTH = 200


def is_success_status(status_code) -> bool:
    return isinstance(status_code, int) and 200 <= status_code < 300


def _summarize_html(body: str) -> str:
    soup = BeautifulSoup(body, 'html.parser')
    if soup.title and soup.title.string:
        return soup.title.string.strip()
    return soup.get_text(' ', strip=True)


def _body_detail(body: str) -> str:
    """Best-effort one-line detail extracted from a response body."""
    text = (body or '').strip()
    if not text:
        return ''

    try:
        parsed = json.loads(text)
    except ValueError:
        parsed = None

    if isinstance(parsed, dict):
        for key in ('error', 'message'):
            value = parsed.get(key)
            if value:
                return value if isinstance(value, str) else json.dumps(value)
        errors = parsed.get('errors')
        if errors:
            return errors if isinstance(errors, str) else json.dumps(errors)
        return ''
    if parsed is not None:
        return ''

    if text.startswith('<'):
        text = _summarize_html(text)
    if len(text) <= MAX_RAW_BODY_LENGTH:
        return text
    return text[:MAX_RAW_BODY_LENGTH] + '...'


def build_error_message(response, context: str) -> str:
    """
    Describe a failed response.

    Args:
        response: TransportResponse (or anything with status_code/body_text)
        context: Operation name, e.g. 'Get event'

    Returns:
        Message such as "Get event failed with status 404: Not found"
    """
    status_code = getattr(response, 'status_code', None)
    message = f"{context} failed with status {status_code if status_code is not None else 'unknown'}"
    try:
        detail = _body_detail(getattr(response, 'body_text', ''))
    except Exception as e:
        logger.debug(f"Could not extract error detail: {e}")
        detail = ''
    if detail:
        message += f": {detail}"
    return message


def build_error_result(response, context: str) -> OperationResult:
    """
    Build a failed OperationResult from a response. Never raises.

    Args:
        response: TransportResponse that did not have the expected status
        context: Operation name included in the message

    Returns:
        OperationResult with success False, the message and the status code
    """
    status_code = getattr(response, 'status_code', None)
    return OperationResult.failure(
        build_error_message(response, context),
        error_type='RemoteError',
        status_code=status_code if isinstance(status_code, int) else None
    )
