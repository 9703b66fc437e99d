"""
Data models for the diploma domain.

These type-safe data structures define clear contracts between components.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any

# Fields that must be present (besides the captcha token) to issue a diploma
REQUIRED_FIELDS = ('email', 'username', 'major', 'degree')


def _as_text(value: Any) -> str:
    """Return value if it is a string, otherwise an empty string."""
    return value if isinstance(value, str) else ''


@dataclass
class DiplomaRequest:
    """
    Diploma request parsed from the inbound JSON body.

    Attributes:
        email: Recipient email address
        username: Name printed on the diploma
        major: Major printed on the diploma
        degree: Degree printed on the diploma
        token: Turnstile captcha token
    """
    email: str
    username: str
    major: str
    degree: str
    token: str

    @classmethod
    def from_payload(cls, payload: Any) -> 'DiplomaRequest':
        """
        Build a request from a decoded JSON body.

        Non-string values are treated as absent.

        Raises:
            ValueError: If payload is not a JSON object
        """
        if not isinstance(payload, dict):
            raise ValueError(
                f"Request body must be a JSON object, got {type(payload).__name__}"
            )

        return cls(
            email=_as_text(payload.get('email')),
            username=_as_text(payload.get('username')),
            major=_as_text(payload.get('major')),
            degree=_as_text(payload.get('degree')),
            token=_as_text(payload.get('token')),
        )

    @property
    def has_token(self) -> bool:
        return bool(self.token)

    @property
    def missing_fields(self) -> List[str]:
        """Names of required text fields that are empty."""
        return [name for name in REQUIRED_FIELDS if not getattr(self, name)]


@dataclass
class Attachment:
    """
    Email attachment.

    Attributes:
        filename: Filename shown to the recipient
        content_type: MIME type (e.g., "application/pdf")
        size: Size in bytes
        content: Binary content
    """
    filename: str
    content_type: str
    size: int
    content: bytes

    @classmethod
    def pdf(cls, filename: str, content: bytes) -> 'Attachment':
        return cls(
            filename=filename,
            content_type='application/pdf',
            size=len(content),
            content=content
        )


@dataclass
class OutboundEmail:
    """
    Email ready to hand to the email provider.

    Attributes:
        from_address: Sender address
        to: Recipient address
        subject: Subject line
        html: HTML body
        attachments: Attachments to include
    """
    from_address: str
    to: str
    subject: str
    html: str
    attachments: List[Attachment] = field(default_factory=list)


@dataclass
class EmailResult:
    """
    Result of an email send attempt.

    Either data (the provider's response payload) or error_message is set.
    """
    data: Optional[Dict[str, Any]] = None
    error_message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error_message is None

    @property
    def message_id(self) -> Optional[str]:
        """Provider-assigned message identifier, if any."""
        if self.data:
            return self.data.get('id')
        return None

    def __repr__(self) -> str:
        """Human-readable representation for logging."""
        if self.success:
            return f"EmailResult(success=True, id={self.message_id})"
        else:
            return f"EmailResult(success=False, error={self.error_message})"


@dataclass(frozen=True)
class FieldFill:
    """
    Fill plan for one diploma form field.

    Attributes:
        field_name: Form field name in the template
        text: Text to write
        font_size: Shrunk font size, or None to keep the field's default
        font_key: Asset id of the font to render with
    """
    field_name: str
    text: str
    font_size: Optional[float]
    font_key: str
