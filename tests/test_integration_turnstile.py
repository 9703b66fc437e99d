"""
Tests for Turnstile captcha verification.
"""

from urllib.parse import parse_qs
import requests
import responses
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

from integrations import turnstile


def sent_form():
    return parse_qs(responses.calls[0].request.body)


class TestVerify:
    """Test turnstile.verify."""

    @responses.activate
    def test_success(self):
        responses.add(responses.POST, turnstile.SITEVERIFY_URL, json={'success': True}, status=200)

        assert turnstile.verify('token-abc', '203.0.113.7', 'secret-key') is True

        form = sent_form()
        assert form['secret'] == ['secret-key']
        assert form['response'] == ['token-abc']
        assert form['remoteip'] == ['203.0.113.7']

    @responses.activate
    def test_without_client_ip(self):
        """Test remoteip is omitted when the address is unknown."""
        responses.add(responses.POST, turnstile.SITEVERIFY_URL, json={'success': True}, status=200)

        assert turnstile.verify('token-abc', None, 'secret-key') is True
        assert 'remoteip' not in sent_form()

    @responses.activate
    def test_rejected(self):
        responses.add(
            responses.POST, turnstile.SITEVERIFY_URL,
            json={'success': False, 'error-codes': ['invalid-input-response']},
            status=200
        )

        assert turnstile.verify('bad-token', None, 'secret-key') is False

    @responses.activate
    def test_success_must_be_true(self):
        """Test truthy non-boolean success values are not accepted."""
        responses.add(responses.POST, turnstile.SITEVERIFY_URL, json={'success': 'true'}, status=200)

        assert turnstile.verify('token-abc', None, 'secret-key') is False

    @responses.activate
    def test_missing_success_field(self):
        responses.add(responses.POST, turnstile.SITEVERIFY_URL, json={}, status=200)

        assert turnstile.verify('token-abc', None, 'secret-key') is False

    @responses.activate
    def test_non_object_response(self):
        responses.add(responses.POST, turnstile.SITEVERIFY_URL, json=[True], status=200)

        assert turnstile.verify('token-abc', None, 'secret-key') is False

    @responses.activate
    def test_non_json_response(self):
        responses.add(responses.POST, turnstile.SITEVERIFY_URL, body='<html>bad gateway</html>', status=502)

        assert turnstile.verify('token-abc', None, 'secret-key') is False

    @responses.activate
    def test_connection_error(self):
        """Test transport failure fails closed without raising."""
        responses.add(
            responses.POST, turnstile.SITEVERIFY_URL,
            body=requests.ConnectionError("connection refused")
        )

        assert turnstile.verify('token-abc', None, 'secret-key') is False

    @responses.activate
    def test_single_attempt(self):
        responses.add(
            responses.POST, turnstile.SITEVERIFY_URL,
            body=requests.ConnectionError("connection refused")
        )

        turnstile.verify('token-abc', None, 'secret-key')

        assert len(responses.calls) == 1
