"""
Cloudflare Turnstile verification.

Exchanges a client-supplied captcha token for a pass/fail judgment from the
Turnstile siteverify endpoint.

Usage:
    from integrations import turnstile

    if not turnstile.verify(token, client_ip, secret=os.environ['CF_CAPTCHA_KEY']):
        ...
"""

import logging
from typing import Optional

import requests

from services import http

logger = logging.getLogger(__name__)

SITEVERIFY_URL = 'https://challenges.cloudflare.com/turnstile/v0/siteverify'


def verify(token: str, client_ip: Optional[str], secret: str) -> bool:
    """
    Verify a Turnstile token.

    Fails closed: any transport or parsing failure counts as not verified
    and is logged, never raised. One attempt per call.

    Args:
        token: Token produced by the Turnstile widget
        client_ip: Caller's address, sent as remoteip when present
        secret: Turnstile secret key

    Returns:
        bool: True only if the response's "success" field is true
    """
    form = {
        'secret': secret,
        'response': token,
    }
    if client_ip:
        form['remoteip'] = client_ip

    try:
        response = http.session.post(SITEVERIFY_URL, data=form, timeout=http.TIMEOUT)
        outcome = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning(f"Captcha verification failed ({e.__class__.__name__}): {e}")
        return False

    if not isinstance(outcome, dict):
        logger.warning(f"Captcha verification returned unexpected payload: {outcome!r}")
        return False

    if outcome.get('success') is not True:
        logger.info(f"Captcha rejected: error-codes={outcome.get('error-codes', [])}")
        return False

    return True
