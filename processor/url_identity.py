"""Parsing and reconstruction of event and route URLs."""
import re
from typing import Optional

from processor.errors import InvalidUrl
from processor.models import ResourceIdentity

DEFAULT_HOST = 'ridewithgps.com'
RESOURCE_KINDS = ('event', 'route')


class UrlIdentity:
    """Extracts numeric identifiers from canonical resource URLs of one host."""

    def __init__(self, host: str = DEFAULT_HOST):
        """
        Initialize the matchers for the given host.

        Args:
            host: Host name of the remote service (default: ridewithgps.com)
        """
        self.host = host
        self._patterns = {
            kind: re.compile(
                rf'^https://{re.escape(host)}/{kind}s/(\d+)(?:-[^/?#]*)?/?(?:[?#].*)?$'
            )
            for kind in RESOURCE_KINDS
        }

    def extract_id(self, kind: str, url) -> Optional[str]:
        """
        Extract the numeric id from a resource URL.

        Args:
            kind: Resource kind, 'event' or 'route'
            url: Candidate URL

        Returns:
            The id as a string, or None if the URL is not a URL of that kind
        """
        pattern = self._pattern(kind)
        if not url or not isinstance(url, str):
            return None
        match = pattern.match(url.strip())
        return match.group(1) if match else None

    def parse(self, kind: str, url) -> ResourceIdentity:
        """
        Parse a resource URL into an identity.

        Args:
            kind: Resource kind, 'event' or 'route'
            url: URL such as https://ridewithgps.com/events/12345-slug

        Returns:
            ResourceIdentity for the URL

        Raises:
            InvalidUrl: If the URL is empty, not a string or not of that kind
        """
        if not url or not isinstance(url, str):
            raise InvalidUrl(f"Invalid {kind} URL: must be a non-empty string")
        resource_id = self.extract_id(kind, url)
        if resource_id is None:
            raise InvalidUrl(f"Invalid {kind} URL: could not extract {kind} ID from {url}")
        return ResourceIdentity(kind=kind, id=resource_id, url=url)

    def canonical_url(self, kind: str, resource_id) -> str:
        self._pattern(kind)
        return f"https://{self.host}/{kind}s/{resource_id}"

    def _pattern(self, kind: str):
        try:
            return self._patterns[kind]
        except KeyError:
            raise ValueError(f"Unknown resource kind: {kind}") from None

