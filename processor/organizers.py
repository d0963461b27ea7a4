"""Organizer (ride leader) matching and id resolution."""
import logging
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from processor.errors import RideSchedulerError
from processor.models import Organizer

logger = logging.getLogger(__name__)

OrganizerLookup = Callable[[List[str]], List[Organizer]]


def _squash(name: str) -> str:
    return ''.join(name.lower().split())


def search_term(name: str) -> str:
    """The lookup endpoint searches by first name only."""
    return name.strip().split(' ')[0]


def find_matching_organizer(results, name: str) -> Optional[Organizer]:
    """
    Find the lookup result whose text equals ``name``.

    Comparison ignores case and whitespace.

    Args:
        results: Lookup results, each a dict with 'id' and 'text'
        name: Full organizer name

    Returns:
        Matching Organizer or None
    """
    if not results or not isinstance(results, list):
        return None
    wanted = _squash(name)
    for result in results:
        if not isinstance(result, dict) or 'text' not in result:
            continue
        if _squash(str(result['text'])) == wanted:
            return Organizer(id=str(result['id']), text=result['text'])
    return None


def split_organizers(values: Iterable) -> Tuple[List[str], List[str]]:
    """Separate numeric organizer ids from organizer names."""
    ids, names = [], []
    for value in values or []:
        if isinstance(value, Organizer):
            ids.append(value.id)
        elif isinstance(value, int) and not isinstance(value, bool):
            ids.append(str(value))
        elif isinstance(value, str) and value.strip().isdigit():
            ids.append(value.strip())
        elif isinstance(value, str) and value.strip():
            names.append(value.strip())
    return ids, names


def resolve_organizer_ids(
    values: Sequence,
    lookup: Optional[OrganizerLookup],
    placeholder_id: Optional[str] = None
) -> Tuple[List[str], List[str]]:
    """
    Resolve organizer ids and names into ids. Failures never abort.

    Names are passed to ``lookup``; names it cannot resolve, or a lookup
    that fails outright, produce warnings. When nothing resolves the list
    degrades to the placeholder id, or stays empty without one.

    Args:
        values: Organizer ids (int or numeric string), names or Organizers
        lookup: Callable mapping names to Organizers
        placeholder_id: Id of the "TBD" organizer

    Returns:
        Tuple of (organizer ids, warnings)
    """
    ids, names = split_organizers(values)
    warnings = []

    if names:
        if lookup is None:
            warnings.append(f"No organizer lookup available for: {', '.join(names)}")
        else:
            try:
                found = lookup(names)
            except RideSchedulerError as e:
                logger.warning(f"Organizer lookup failed: {e}")
                warnings.append(f"Organizer lookup failed: {e}")
                found = []
            for organizer in found:
                if organizer.id is None or organizer.id == placeholder_id or organizer.id == '-1':
                    warnings.append(f"Unknown organizer: {organizer.text}")
                else:
                    ids.append(organizer.id)

    if not ids and placeholder_id:
        ids = [placeholder_id]
    return ids, warnings
