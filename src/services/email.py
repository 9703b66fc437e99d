"""
Diploma email composition.

This module builds the outbound email that carries a generated diploma:
fixed sender and subject, an HTML body rendered from a template, and the
PDF attachment.
"""

import datetime
import logging
import os
from typing import Optional

from domain.models import Attachment, DiplomaRequest, OutboundEmail
from services import templates as template_service

logger = logging.getLogger(__name__)

EMAIL_FROM = os.environ.get('DIPLOMA_EMAIL_FROM', 'chicken@registrar.wcu.edu.pl')
EMAIL_SUBJECT = os.environ.get('DIPLOMA_EMAIL_SUBJECT', 'Your Wild Chicken University Diploma')
EMAIL_TEMPLATE = 'diploma_email.html'


def diploma_filename(username: str) -> str:
    """
    Attachment filename for a diploma.

    Example:
        >>> diploma_filename("John Smith")
        'WCU_Diploma_John_Smith.pdf'
    """
    return f"WCU_Diploma_{username.replace(' ', '_')}.pdf"


def build_diploma_email(
    request: DiplomaRequest,
    pdf_bytes: bytes,
    year: Optional[int] = None
) -> OutboundEmail:
    """
    Compose the diploma email for a request.

    Args:
        request: The validated diploma request
        pdf_bytes: Generated diploma PDF
        year: Graduation year shown in the body (default: current year)

    Returns:
        OutboundEmail: Message ready for the email provider
    """
    if year is None:
        year = datetime.date.today().year

    body = template_service.render_template(
        template_service.load_template(EMAIL_TEMPLATE),
        username=request.username,
        degree=request.degree,
        year=year
    )

    attachment = Attachment.pdf(diploma_filename(request.username), pdf_bytes)
    logger.info(f"Composed diploma email: to={request.email}, attachment={attachment.filename} ({attachment.size:,} bytes)")

    return OutboundEmail(
        from_address=EMAIL_FROM,
        to=request.email,
        subject=EMAIL_SUBJECT,
        html=body,
        attachments=[attachment]
    )
