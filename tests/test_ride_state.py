"""Unit tests for the cancelled/active ride state."""
import pytest

from processor.errors import AlreadyCancelled, NotCancelled
from processor.ride_state import RideState, cancelled_name, reinstated_name


class TestRideState:
    """Test cases for cancel and reinstate name transitions."""

    def test_state_from_name(self):
        """Test state derived from the name prefix."""
        assert RideState.from_name('CANCELLED: Sat B Ride') is RideState.CANCELLED
        assert RideState.from_name('Sat B Ride') is RideState.ACTIVE
        assert RideState.from_name('cancelled: Sat B Ride') is RideState.ACTIVE
        assert RideState.from_name(None) is RideState.ACTIVE

    def test_cancel_then_reinstate_restores_name(self):
        """Test that reinstating a cancelled name yields the original."""
        name = 'Sat B Ride (Jan 25)'

        assert reinstated_name(cancelled_name(name)) == name

    def test_cancel_twice(self):
        """Test that cancelling a cancelled name raises."""
        with pytest.raises(AlreadyCancelled):
            cancelled_name(cancelled_name('Sat B Ride'))

    def test_reinstate_active(self):
        """Test that reinstating an active name raises."""
        with pytest.raises(NotCancelled):
            reinstated_name('Sat B Ride')
