"""Unit tests for response normalization."""
from datetime import datetime, timedelta, timezone

import pytest

from processor.errors import InvalidEvent
from processor.models import Dialect, NormalizedEvent, Organizer, Visibility
from processor.payload_transformer import to_dialect_payload
from processor.response_normalizer import (
    combine_date_time,
    event_from_fields,
    from_dialect_response,
    normalize_route,
    parse_timestamp,
    unwrap,
)


@pytest.fixture
def v1_body():
    """Create a v1 event response body."""
    return {
        'event': {
            'id': 444070,
            'name': 'Sat B Ride',
            'description': 'Meet at the bakery',
            'start_date': '2025-01-25',
            'start_time': '09:30',
            'end_date': '2025-01-25',
            'end_time': '13:00',
            'time_zone': 'America/Los_Angeles',
            'visibility': 'public',
            'all_day': False,
            'organizers': [{'id': 302732, 'name': 'Toby Ferguson'}],
            'routes': [{'id': 50969472}],
        }
    }


@pytest.fixture
def web_body():
    """Create a legacy event response body."""
    return {
        'id': 444070,
        'name': 'Sat B Ride',
        'desc': 'Meet at the bakery',
        'starts_at': '2025-01-25T09:30:00-08:00',
        'visibility': 0,
        'all_day': '0',
        'organizer_ids': ['302732'],
        'routes': [{'id': 50969472}],
    }


class TestFromDialectResponse:
    """Test cases for from_dialect_response."""

    def test_v1_body(self, v1_body):
        """Test v1 fields map onto the normalized event."""
        event = from_dialect_response(Dialect.V1, v1_body)

        assert event.id == '444070'
        assert event.desc == 'Meet at the bakery'
        assert event.description == 'Meet at the bakery'
        assert event.starts_at == datetime(2025, 1, 25, 9, 30, tzinfo=timezone(timedelta(hours=-8)))
        assert event.ends_at.hour == 13
        assert event.visibility == Visibility.PUBLIC
        assert event.all_day is False
        assert event.organizers == [Organizer(id='302732', text='Toby Ferguson')]
        assert event.organizer_ids == ['302732']
        assert event.route_ids == ['50969472']

    def test_web_body(self, web_body):
        """Test legacy fields map onto the same normalized event."""
        event = from_dialect_response(Dialect.WEB, web_body)

        assert event.id == '444070'
        assert event.desc == 'Meet at the bakery'
        assert event.starts_at == datetime(2025, 1, 25, 9, 30, tzinfo=timezone(timedelta(hours=-8)))
        assert event.organizer_ids == ['302732']
        assert event.organizers is None
        assert event.route_ids == ['50969472']

    def test_dialects_agree(self, v1_body, web_body):
        """Test both dialects describe the same event identically."""
        v1_event = from_dialect_response(Dialect.V1, v1_body)
        web_event = from_dialect_response(Dialect.WEB, web_body)

        assert v1_event.name == web_event.name
        assert v1_event.starts_at == web_event.starts_at
        assert v1_event.organizer_ids == web_event.organizer_ids
        assert v1_event.route_ids == web_event.route_ids

    @pytest.mark.parametrize('dialect', [Dialect.V1, Dialect.WEB])
    def test_round_trip(self, dialect, v1_body):
        """Test payload then response preserves the key fields."""
        original = from_dialect_response(Dialect.V1, v1_body)
        payload = to_dialect_payload(dialect, original)

        restored = from_dialect_response(dialect, payload)

        assert restored.name == original.name
        assert restored.starts_at == original.starts_at
        assert restored.organizer_ids == original.organizer_ids
        assert restored.route_ids == original.route_ids

    @pytest.mark.parametrize('dialect', [Dialect.V1, Dialect.WEB])
    @pytest.mark.parametrize('default_utc_offset', ['-08:00', '-05:00'])
    def test_round_trip_without_zone(self, dialect, default_utc_offset):
        """Test a zone-less UTC start comes back as the same instant."""
        original = NormalizedEvent(name='Ride', starts_at=datetime(2025, 1, 25, 17, 30, tzinfo=timezone.utc))
        payload = to_dialect_payload(dialect, original, default_utc_offset=default_utc_offset)

        restored = from_dialect_response(dialect, payload, default_utc_offset=default_utc_offset)

        assert restored.starts_at == original.starts_at

    def test_v1_without_zone_uses_default_offset(self):
        """Test zone-less v1 times get the configured offset."""
        event = from_dialect_response(
            Dialect.V1,
            {'name': 'Ride', 'start_date': '2025-07-12', 'start_time': '09:00'},
            default_utc_offset='-07:00'
        )

        assert event.starts_at.utcoffset() == timedelta(hours=-7)

    def test_v1_zone_is_dst_aware(self):
        """Test a summer date in a named zone gets daylight time."""
        event = from_dialect_response(Dialect.V1, {
            'name': 'Ride',
            'start_date': '2025-07-12',
            'start_time': '09:00',
            'time_zone': 'America/Los_Angeles',
        })

        assert event.starts_at.utcoffset() == timedelta(hours=-7)

    def test_non_object_body(self):
        """Test that a non-object body raises ValueError."""
        with pytest.raises(ValueError):
            from_dialect_response(Dialect.V1, ['not', 'an', 'event'])


class TestHelpers:
    """Test cases for timestamp and envelope helpers."""

    def test_unwrap(self):
        """Test enveloped and bare bodies."""
        assert unwrap({'event': {'id': 1}}, 'event') == {'id': 1}
        assert unwrap({'id': 1}, 'event') == {'id': 1}

    def test_parse_timestamp(self):
        """Test Z suffix, explicit offsets and naive values."""
        assert parse_timestamp('2025-01-25T17:30:00Z') == datetime(2025, 1, 25, 17, 30, tzinfo=timezone.utc)
        assert parse_timestamp('2025-01-25T09:30:00').utcoffset() == timedelta(hours=-8)
        assert parse_timestamp('') is None
        with pytest.raises(ValueError):
            parse_timestamp('25/01/2025')

    def test_combine_date_time(self):
        """Test missing time and seconds."""
        assert combine_date_time('2025-01-25', None, None).hour == 0
        assert combine_date_time('2025-01-25', '09:30:15', None).second == 15


class TestEventFromFields:
    """Test cases for event_from_fields."""

    def test_from_dict(self):
        """Test caller fields in normalized shape."""
        event = event_from_fields({
            'name': 'Sat B Ride',
            'starts_at': '2025-01-25T09:30:00-08:00',
            'description': 'Meet at the bakery',
            'visibility': 'private',
            'route_ids': [50969472],
        })

        assert event.desc == 'Meet at the bakery'
        assert event.visibility == Visibility.PRIVATE
        assert event.route_ids == ['50969472']
        assert event.organizer_ids is None

    def test_bad_timestamp(self):
        """Test an unparseable timestamp raises InvalidEvent."""
        with pytest.raises(InvalidEvent):
            event_from_fields({'name': 'Ride', 'starts_at': 'tomorrow'})

    def test_bad_visibility(self):
        """Test an unknown visibility raises InvalidEvent."""
        with pytest.raises(InvalidEvent):
            event_from_fields({'name': 'Ride', 'visibility': 'secret'})

    def test_not_a_dict(self):
        """Test non-dict fields are rejected."""
        with pytest.raises(InvalidEvent):
            event_from_fields('Sat B Ride')


class TestNormalizeRoute:
    """Test cases for normalize_route."""

    def test_route_body(self):
        """Test enveloped route with list tags."""
        route = normalize_route(
            {'route': {'id': 987, 'name': 'River Loop', 'user_id': 621846, 'tag_names': ['B Group']}},
            'https://ridewithgps.com'
        )

        assert route.id == '987'
        assert route.url == 'https://ridewithgps.com/routes/987'
        assert route.user_id == '621846'
        assert route.tag_names == ['B Group']
        assert 'raw' not in route.to_dict()

    def test_comma_separated_tags(self):
        """Test tags given as one comma-separated string."""
        route = normalize_route({'id': 1, 'tag_names': 'B Group, expires: 03/15/2025'}, 'https://ridewithgps.com')

        assert route.tag_names == ['B Group', 'expires: 03/15/2025']
