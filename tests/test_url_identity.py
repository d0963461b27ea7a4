"""Unit tests for event and route URL parsing."""
import pytest

from processor.errors import InvalidUrl
from processor.url_identity import UrlIdentity


class TestUrlIdentity:
    """Test cases for UrlIdentity."""

    @pytest.fixture
    def urls(self):
        """Create an identity for the default host."""
        return UrlIdentity()

    @pytest.mark.parametrize('url', [
        'https://ridewithgps.com/events/12345',
        'https://ridewithgps.com/events/12345-saturday-b-ride',
        'https://ridewithgps.com/events/12345/',
        'https://ridewithgps.com/events/12345-slug?privacy_code=abc',
        '  https://ridewithgps.com/events/12345  ',
    ])
    def test_extract_id_ignores_slug_and_query(self, urls, url):
        """Test that the id is the same regardless of slug, slash or query."""
        assert urls.extract_id('event', url) == '12345'

    @pytest.mark.parametrize('url', [
        '',
        None,
        42,
        'http://ridewithgps.com/events/12345',
        'https://example.com/events/12345',
        'https://ridewithgps.com/routes/12345',
        'https://ridewithgps.com/events/abc',
        'https://ridewithgps.com/events/12345/edit',
    ])
    def test_extract_id_invalid(self, urls, url):
        """Test that malformed URLs yield None."""
        assert urls.extract_id('event', url) is None

    def test_parse_returns_identity(self, urls):
        """Test parse of a route URL."""
        identity = urls.parse('route', 'https://ridewithgps.com/routes/987-river-loop')

        assert identity.kind == 'route'
        assert identity.id == '987'
        assert identity.url == 'https://ridewithgps.com/routes/987-river-loop'

    def test_parse_and_extract_agree(self, urls):
        """Test that parse fails exactly when extract_id returns None."""
        candidates = [
            'https://ridewithgps.com/events/1',
            'https://ridewithgps.com/events/1-a',
            'https://ridewithgps.com/events/x',
            'https://ridewithgps.com/routes/1',
        ]
        for url in candidates:
            extracted = urls.extract_id('event', url)
            if extracted is None:
                with pytest.raises(InvalidUrl):
                    urls.parse('event', url)
            else:
                assert urls.parse('event', url).id == extracted

    def test_parse_empty_url(self, urls):
        """Test the message for an empty URL."""
        with pytest.raises(InvalidUrl, match='must be a non-empty string'):
            urls.parse('event', '')

    def test_parse_wrong_kind(self, urls):
        """Test the message for a URL of another kind."""
        with pytest.raises(InvalidUrl, match='could not extract event ID'):
            urls.parse('event', 'https://ridewithgps.com/routes/5')

    def test_invalid_url_is_value_error(self, urls):
        """Test that InvalidUrl can be caught as ValueError."""
        with pytest.raises(ValueError):
            urls.parse('route', 'not a url')

    def test_canonical_url(self, urls):
        """Test canonical URL reconstruction."""
        assert urls.canonical_url('event', '12345') == 'https://ridewithgps.com/events/12345'

    def test_unknown_kind(self, urls):
        """Test that an unknown resource kind is rejected."""
        with pytest.raises(ValueError):
            urls.extract_id('trip', 'https://ridewithgps.com/trips/1')

    def test_custom_host(self):
        """Test matching against a configured host."""
        identity = UrlIdentity('staging.ridewithgps.com')

        assert identity.extract_id('event', 'https://staging.ridewithgps.com/events/7') == '7'
        assert identity.extract_id('event', 'https://ridewithgps.com/events/7') is None
        assert identity.canonical_url('route', 3) == 'https://staging.ridewithgps.com/routes/3'
