"""Unit tests for edit submission strategies."""
from unittest.mock import Mock

import pytest

from processor.models import NormalizedEvent, TransportResponse
from rwgps.config import DEFAULT_DOUBLE_PUT_FIELDS
from rwgps.edit_strategy import DoublePutStrategy, SinglePutStrategy, make_edit_strategy


class TestEditStrategies:
    """Test cases for single and double PUT submission."""

    def test_single_put(self):
        """Test one submission with the event's own all_day."""
        send = Mock(return_value=TransportResponse(200))

        SinglePutStrategy().submit(NormalizedEvent(name='Ride', all_day=False), send)

        send.assert_called_once_with(False)

    def test_double_put_sequence(self):
        """Test all_day forced on first, then the real value."""
        send = Mock(return_value=TransportResponse(200))
        event = NormalizedEvent(name='Ride', location='Bakery')

        response = DoublePutStrategy(DEFAULT_DOUBLE_PUT_FIELDS).submit(event, send)

        assert [c.args for c in send.call_args_list] == [(True,), (False,)]
        assert response.status_code == 200

    def test_double_put_keeps_all_day_event(self):
        """Test an all-day event stays all-day on the second PUT."""
        send = Mock(return_value=TransportResponse(200))

        DoublePutStrategy(['all_day']).submit(NormalizedEvent(all_day=True), send)

        assert [c.args for c in send.call_args_list] == [(True,), (True,)]

    def test_double_put_skipped_for_unaffected_fields(self):
        """Test a name-only edit needs one PUT."""
        send = Mock(return_value=TransportResponse(200))

        DoublePutStrategy(DEFAULT_DOUBLE_PUT_FIELDS).submit(NormalizedEvent(name='CANCELLED: Ride'), send)

        send.assert_called_once_with(None)

    def test_double_put_first_failure(self, caplog):
        """Test a failed first PUT is returned without a second one."""
        send = Mock(return_value=TransportResponse(422, body_text='{"error": "bad"}'))

        response = DoublePutStrategy(['location']).submit(NormalizedEvent(location='Bakery'), send)

        assert response.status_code == 422
        send.assert_called_once_with(True)
        assert 'First PUT of double submit failed' in caplog.text

    def test_make_edit_strategy(self):
        """Test construction by name."""
        assert isinstance(make_edit_strategy('single', []), SinglePutStrategy)
        strategy = make_edit_strategy('double', ['desc'])
        assert isinstance(strategy, DoublePutStrategy)
        assert strategy.affected_fields == frozenset({'desc'})
        with pytest.raises(ValueError):
            make_edit_strategy('triple', [])
