"""
Resend email API client.

Sends an OutboundEmail through the Resend HTTP API and reports the outcome
as an EmailResult rather than raising for provider-side errors.

Usage:
    from integrations import resend_client

    result = resend_client.send_email(email, api_key=os.environ['RESEND_API_KEY'])
    if not result.success:
        ...
"""

import base64
import logging
from typing import Any, Dict

from domain.models import EmailResult, OutboundEmail
from services import http

logger = logging.getLogger(__name__)

RESEND_API_URL = 'https://api.resend.com/emails'


def _build_payload(email: OutboundEmail) -> Dict[str, Any]:
    """Resend JSON payload; attachment content is base64 encoded."""
    return {
        'from': email.from_address,
        'to': email.to,
        'subject': email.subject,
        'html': email.html,
        'attachments': [
            {
                'filename': attachment.filename,
                'content': base64.b64encode(attachment.content).decode('ascii'),
            }
            for attachment in email.attachments
        ],
    }


def send_email(email: OutboundEmail, api_key: str) -> EmailResult:
    """
    Send an email through Resend.

    Args:
        email: Message to send
        api_key: Resend API key

    Returns:
        EmailResult: data on success, error_message when Resend reports an error

    Raises:
        requests.RequestException: On transport failure (no retries)
    """
    response = http.session.post(
        RESEND_API_URL,
        json=_build_payload(email),
        headers={'Authorization': f'Bearer {api_key}'},
        timeout=http.TIMEOUT
    )

    try:
        body = response.json()
    except ValueError:
        body = None

    if response.ok and isinstance(body, dict):
        result = EmailResult(data=body)
        logger.info(f"Email sent: {result!r}")
        return result

    if isinstance(body, dict) and body.get('message'):
        message = body['message']
    else:
        message = f"HTTP {response.status_code}: {response.text[:200]}"

    logger.error(f"Resend error: status={response.status_code}, body={body if body is not None else response.text[:200]}")
    return EmailResult(error_message=message)
