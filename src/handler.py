"""
AWS Lambda handler for diploma requests from API Gateway.

Thin HTTP layer that delegates to DiplomaIssuer.
Policy: POST only; every fault is logged and mapped to a status code by its
ErrorKind, with unexpected faults reported as 500.
"""

import base64
import json
import logging
import os
from typing import Dict, Any, Optional

from domain.diploma_issuer import DiplomaIssuer
from domain.errors import DiplomaServiceError, ErrorKind, MethodNotAllowedError
from domain.models import DiplomaRequest
from services import assets as asset_service

# Configure logging
logger = logging.getLogger()
logger.setLevel(logging.INFO)

# Add console handler for local testing (AWS Lambda provides handlers automatically)
if not logger.handlers:
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    formatter = logging.Formatter('%(levelname)s - %(message)s')
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

# Environment variables
ENVIRONMENT = os.environ.get('ENVIRONMENT', 'dev')
EXPOSE_ERROR_DETAILS = os.environ.get('EXPOSE_ERROR_DETAILS', 'true').lower() == 'true'

# Initialize issuer once at module level (reused across invocations)
diploma_issuer = DiplomaIssuer()


def _get_method(event: Dict[str, Any]) -> str:
    """HTTP method of a REST (v1) or HTTP API (v2) event."""
    method = event.get('httpMethod')
    if not method:
        method = event.get('requestContext', {}).get('http', {}).get('method', '')
    return method.upper()


def _get_header(event: Dict[str, Any], name: str) -> Optional[str]:
    """Case-insensitive header lookup."""
    headers = event.get('headers') or {}
    name = name.lower()
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


def _get_client_ip(event: Dict[str, Any]) -> Optional[str]:
    """
    Caller's address from proxy headers.

    Prefers CF-Connecting-IP, then the first X-Forwarded-For entry.
    """
    client_ip = _get_header(event, 'CF-Connecting-IP')
    if client_ip:
        return client_ip.strip()

    forwarded_for = _get_header(event, 'X-Forwarded-For')
    if forwarded_for:
        return forwarded_for.split(',')[0].strip() or None

    return None


def _parse_body(event: Dict[str, Any]) -> Any:
    """
    Decode the JSON request body.

    Raises:
        ValueError: If the body is not valid JSON (json.JSONDecodeError)
    """
    body = event.get('body') or ''
    if event.get('isBase64Encoded'):
        body = base64.b64decode(body).decode('utf-8')
    return json.loads(body)


def _json_response(status_code: int, payload: Any) -> Dict[str, Any]:
    return {
        'statusCode': status_code,
        'headers': {
            'Content-Type': 'application/json'
        },
        'body': json.dumps(payload)
    }


def _error_response(kind: ErrorKind, message: str) -> Dict[str, Any]:
    if kind is ErrorKind.UPSTREAM and not EXPOSE_ERROR_DETAILS:
        message = kind.label
    return _json_response(kind.status_code, {
        'error': kind.label,
        'message': message
    })


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Issue a diploma and email it to the requester.

    Expected request:
        POST with JSON body
        {
            "email": "john@example.com",
            "username": "John Smith",
            "major": "Computer Science",
            "degree": "Bachelor of Science",
            "token": "<turnstile token>"
        }

    Returns:
        API Gateway proxy response: 200 with the email provider's payload,
        or 400/403/405/500 with a JSON error body
    """
    method = _get_method(event)
    logger.info(f"Environment: {ENVIRONMENT}")
    logger.info(f"Received {method or 'UNKNOWN'} request")

    if method != 'POST':
        error = MethodNotAllowedError("Method Not Allowed")
        logger.warning(f"Rejected method: {method or 'UNKNOWN'}")
        return _error_response(error.kind, str(error))

    try:
        request = DiplomaRequest.from_payload(_parse_body(event))
        client_ip = _get_client_ip(event)

        result = diploma_issuer.issue(request, client_ip)

        return _json_response(200, result.data)

    except DiplomaServiceError as e:
        if e.kind is ErrorKind.UPSTREAM:
            logger.error(f"Diploma request failed: {e}", exc_info=True)
        else:
            logger.warning(f"Diploma request rejected ({e.kind.status_code}): {e}")
        return _error_response(e.kind, str(e))

    except Exception as e:
        logger.error(f"Unhandled error processing diploma request: {str(e)}", exc_info=True)
        return _error_response(ErrorKind.UPSTREAM, str(e))


def health_check(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Simple health check endpoint for monitoring.
    """
    return _json_response(200, {
        'status': 'healthy',
        'environment': ENVIRONMENT,
        'captchaConfigured': bool(os.environ.get('CF_CAPTCHA_KEY')),
        'emailConfigured': bool(os.environ.get('RESEND_API_KEY')),
        'assetSource': asset_service.ASSET_SOURCE
    })
