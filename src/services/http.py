"""
Shared HTTP session for outbound calls.

Every outbound request (asset downloads, captcha verification, email
delivery) goes through this session with explicit timeouts and no retries.
"""

import logging
import os

import requests
from requests.adapters import HTTPAdapter

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT = float(os.environ.get('HTTP_CONNECT_TIMEOUT', '10'))
READ_TIMEOUT = float(os.environ.get('HTTP_READ_TIMEOUT', '30'))

# (connect, read) tuple accepted by requests
TIMEOUT = (CONNECT_TIMEOUT, READ_TIMEOUT)


def _initialize_session() -> requests.Session:
    """
    Create a requests session with retries disabled.

    Returns:
        requests.Session: Session reused across invocations
    """
    session = requests.Session()
    adapter = HTTPAdapter(max_retries=0)  # 1 attempt total, NO retries
    session.mount('https://', adapter)
    session.mount('http://', adapter)

    logger.info(
        f"HTTP session initialized: connect_timeout={CONNECT_TIMEOUT}s, "
        f"read_timeout={READ_TIMEOUT}s, max_retries=0"
    )
    return session


# Initialize at module import time (reused across invocations)
session = _initialize_session()
