"""
Diploma issuing pipeline - core business logic.

This module handles the end-to-end processing of a diploma request:
1. Check the captcha token is present
2. Verify the token with Turnstile
3. Check the required text fields are present
4. Generate the diploma PDF
5. Email the PDF to the requester

Failures are raised as DiplomaServiceError subclasses, each carrying the
ErrorKind the handler maps to an HTTP status code.
"""

import logging
import os
import time
from typing import Callable, Optional

from .errors import (
    AuthorizationError, ConfigurationError, EmailDeliveryError, ValidationError,
)
from .models import DiplomaRequest, EmailResult, OutboundEmail
from services import email as email_service
from services.diploma import DiplomaGenerator
from integrations import resend_client
from integrations import turnstile

logger = logging.getLogger(__name__)

CaptchaVerifier = Callable[[str, Optional[str], str], bool]
EmailSender = Callable[[OutboundEmail, str], EmailResult]


def _require_env(name: str) -> str:
    """
    Read a secret from the environment at call time.

    Raises:
        ConfigurationError: If the variable is missing or empty
    """
    value = os.environ.get(name)
    if not value:
        raise ConfigurationError(f"{name} environment variable is not set")
    return value


class DiplomaIssuer:
    """
    Verifies, generates and delivers diplomas.

    Collaborators are injectable so the pipeline can be exercised without
    network access.
    """

    def __init__(
        self,
        verify_captcha: CaptchaVerifier = turnstile.verify,
        generator: Optional[DiplomaGenerator] = None,
        send_email: EmailSender = resend_client.send_email
    ):
        self.verify_captcha = verify_captcha
        self._generator = generator
        self.send_email = send_email

    @property
    def generator(self) -> DiplomaGenerator:
        # Built lazily so a misconfigured asset source surfaces as a request error
        if self._generator is None:
            self._generator = DiplomaGenerator()
        return self._generator

    def issue(self, request: DiplomaRequest, client_ip: Optional[str] = None) -> EmailResult:
        """
        Issue a diploma for a request.

        Args:
            request: Parsed diploma request
            client_ip: Caller's address, passed to captcha verification

        Returns:
            EmailResult: Successful send result

        Raises:
            ValidationError: Token or a required field is missing
            AuthorizationError: Captcha rejected
            ConfigurationError: A secret is not configured
            DocumentGenerationError: The PDF could not be produced
            EmailDeliveryError: The email provider reported an error
        """
        if not request.has_token:
            raise ValidationError("Missing captcha token")

        secret = _require_env('CF_CAPTCHA_KEY')
        if not self.verify_captcha(request.token, client_ip, secret):
            logger.warning(f"Captcha verification failed for client {client_ip or 'unknown'}")
            raise AuthorizationError("Captcha verification failed")
        logger.info(f"Captcha verified for client {client_ip or 'unknown'}")

        if request.missing_fields:
            logger.warning(f"Missing required fields: {request.missing_fields}")
            raise ValidationError("Missing required fields: email, username, major, degree")

        api_key = _require_env('RESEND_API_KEY')

        generation_start = time.time()
        pdf_bytes = self.generator.generate(
            username=request.username,
            major=request.major,
            degree=request.degree
        )
        logger.info(f"Diploma generation completed: {time.time() - generation_start:.3f}s")

        email = email_service.build_diploma_email(request, pdf_bytes)
        result = self.send_email(email, api_key)

        if not result.success:
            raise EmailDeliveryError(f"Failed to send email: {result.error_message}")

        logger.info(f"Diploma issued: to={request.email}, id={result.message_id}")
        return result
