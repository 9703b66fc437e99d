"""
Pytest configuration and fixtures for all tests.
"""

import os
import sys
import pytest

# Add src and hooks to Python path before any imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../hooks'))

# Set up test environment variables before importing any modules
os.environ.setdefault('AWS_DEFAULT_REGION', 'us-west-2')
os.environ.setdefault('ENVIRONMENT', 'test')
os.environ.setdefault('ASSET_SOURCE', 'http')
os.environ.setdefault('CF_CAPTCHA_KEY', 'test-captcha-secret')
os.environ.setdefault('RESEND_API_KEY', 're_test_key')


@pytest.fixture
def lambda_context():
    """Mock Lambda context."""
    from unittest.mock import Mock

    context = Mock()
    context.request_id = "test-request-id"
    context.invoked_function_arn = "arn:aws:lambda:us-west-2:123456789012:function:test"
    return context
