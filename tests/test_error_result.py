"""Unit tests for failure results built from HTTP responses."""
from processor.error_result import build_error_message, build_error_result, is_success_status
from processor.models import TransportResponse


class TestErrorResult:
    """Test cases for build_error_result."""

    def test_json_error_field(self):
        """Test the JSON error field is appended."""
        response = TransportResponse(404, body_text='{"error": "Event not found"}')

        result = build_error_result(response, 'Get event')

        assert result.success is False
        assert result.error == 'Get event failed with status 404: Event not found'
        assert result.error_type == 'RemoteError'
        assert result.status_code == 404

    def test_json_message_field(self):
        """Test the JSON message field is used when there is no error field."""
        response = TransportResponse(422, body_text='{"message": "Name is required"}')

        assert build_error_message(response, 'Create event') == (
            'Create event failed with status 422: Name is required'
        )

    def test_json_errors_list(self):
        """Test a list of errors is serialized."""
        response = TransportResponse(422, body_text='{"errors": ["a", "b"]}')

        assert build_error_message(response, 'Edit event').endswith(': ["a", "b"]')

    def test_html_body_reduced_to_title(self):
        """Test that HTML error pages contribute only their title."""
        html = '<html><head><title>Page Not Found</title></head><body><div>long page</div></body></html>'
        response = TransportResponse(404, body_text=html)

        assert build_error_message(response, 'Get event') == 'Get event failed with status 404: Page Not Found'

    def test_long_raw_body_truncated(self):
        """Test that long text bodies are cut."""
        response = TransportResponse(500, body_text='x' * 500)

        message = build_error_message(response, 'Get route')

        assert message.endswith('...')
        assert len(message) < 300

    def test_empty_body(self):
        """Test the message without a body."""
        response = TransportResponse(401)

        assert build_error_message(response, 'Add route tags') == 'Add route tags failed with status 401'

    def test_to_dict(self):
        """Test the failure serializes with camelCase keys."""
        result = build_error_result(TransportResponse(500, body_text='oops'), 'Delete event')

        assert result.to_dict() == {
            'success': False,
            'error': 'Delete event failed with status 500: oops',
            'errorType': 'RemoteError',
            'statusCode': 500,
        }

    def test_is_success_status(self):
        """Test the 2xx range."""
        assert is_success_status(200)
        assert is_success_status(204)
        assert not is_success_status(302)
        assert not is_success_status(None)
