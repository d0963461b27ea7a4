"""Tag construction and parsing: expiry markers and batch tag payloads."""
import re
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional

from processor.errors import InvalidDate

EXPIRY_TAG_PREFIX = 'EXP:'
EXPIRATION_TAG_PREFIX = 'expires: '
TAG_ACTIONS = ('add', 'remove')
TAGGABLE_KINDS = ('event', 'route')

_EXPIRATION_PATTERN = re.compile(r'^expires:\s*(\d{1,2})/(\d{1,2})/(\d{4})$')


def coerce_date(value) -> date:
    """
    Interpret a date given as date, datetime, 'MM/DD/YYYY' or 'YYYY-MM-DD'.

    Raises:
        InvalidDate: If the value is not a recognizable date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        for fmt in ('%m/%d/%Y', '%Y-%m-%d'):
            try:
                return datetime.strptime(value.strip(), fmt).date()
            except ValueError:
                continue
    raise InvalidDate(f"Invalid date: {value!r}")


def build_expiry_tag(ride_date, offset_days: int) -> str:
    """
    Build the expiry marker for a ride.

    Args:
        ride_date: Date of the ride
        offset_days: Days after the ride at which the resource expires

    Returns:
        Tag such as 'EXP:2025-02-08'
    """
    expiry = coerce_date(ride_date) + timedelta(days=offset_days)
    return f"{EXPIRY_TAG_PREFIX}{expiry.isoformat()}"


def build_expiration_tag(expiry_date) -> str:
    """Build the route expiration tag, e.g. 'expires: 03/15/2025'."""
    return f"{EXPIRATION_TAG_PREFIX}{coerce_date(expiry_date).strftime('%m/%d/%Y')}"


def parse_expiration_tag(tag: Optional[str]) -> Optional[date]:
    if not tag or not isinstance(tag, str):
        return None
    match = _EXPIRATION_PATTERN.match(tag.strip())
    if not match:
        return None
    month, day, year = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def find_expiration_tag(tag_names: Iterable[str]) -> Optional[str]:
    for tag in tag_names or []:
        if isinstance(tag, str) and tag.startswith(EXPIRATION_TAG_PREFIX.rstrip()):
            return tag
    return None


def is_expiration_newer(existing_tag: Optional[str], new_date) -> bool:
    """
    Whether ``new_date`` is strictly later than the date in ``existing_tag``.

    An unparseable or missing tag counts as older than any date.
    """
    existing = parse_expiration_tag(existing_tag)
    if existing is None:
        return True
    return coerce_date(new_date) > existing


def build_batch_tag_payload(kind: str, ids: List[str], action: str, tags: List[str]) -> Dict[str, str]:
    """
    Build the form payload of a batch tag update.

    Args:
        kind: 'event' or 'route'
        ids: Resource ids to update
        action: 'add' or 'remove'
        tags: Tag names

    Returns:
        Form fields with comma-joined ids and tag names

    Raises:
        ValueError: For an unknown kind or action, or empty ids/tags
    """
    if kind not in TAGGABLE_KINDS:
        raise ValueError(f"Invalid resource kind: {kind}")
    if action not in TAG_ACTIONS:
        raise ValueError(f"Invalid tag action: {action}")
    if not ids:
        raise ValueError('At least one id is required')
    if not tags:
        raise ValueError('At least one tag is required')

    return {
        'tag_action': action,
        'tag_names': ','.join(str(t) for t in tags),
        f'{kind}_ids': ','.join(str(i) for i in ids),
    }
