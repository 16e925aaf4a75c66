"""Email templates for passcode delivery.

Plain-text and HTML bodies for the email-verification and password-reset
codes. User-supplied values are HTML-escaped before interpolation.
"""

from html import escape

from signup_api.core.config import settings
from signup_api.core.email import EmailMessage

_HTML_LAYOUT = """\
<div style="font-family:Arial,sans-serif;max-width:480px">
  <h2>{heading}</h2>
  <p>Hi {name},</p>
  <p>{intro}</p>
  <div style="font-size:28px;font-weight:700;letter-spacing:4px">{code}</div>
  <p>This code expires in {minutes} minutes.</p>
  <p style="color:#666">{footer}</p>
</div>
"""


def _display_name(name: str | None, email: str) -> str:
    """Fall back to the email's local part when no name is known."""
    if name and name.strip():
        return name.strip()
    return email.split("@", 1)[0]


def _render(
    *,
    to_email: str,
    name: str | None,
    code: str,
    subject: str,
    heading: str,
    intro: str,
    footer: str,
) -> EmailMessage:
    minutes = settings.otp_expiry_minutes
    display = _display_name(name, to_email)
    text = (
        f"Hi {display},\n\n"
        f"{intro}\n\n"
        f"    {code}\n\n"
        f"This code expires in {minutes} minutes.\n"
        f"{footer}\n"
    )
    html = _HTML_LAYOUT.format(
        heading=escape(heading),
        name=escape(display),
        intro=escape(intro),
        code=escape(code),
        minutes=minutes,
        footer=escape(footer),
    )
    return EmailMessage(to=to_email, subject=subject, text=text, html=html)


def render_verification_email(
    *, to_email: str, name: str | None, code: str
) -> EmailMessage:
    """Render the signup email-verification message.

    Args:
        to_email: Recipient (normalized) email.
        name: Account display name, if any.
        code: Plaintext passcode.

    Returns:
        Rendered EmailMessage.
    """
    return _render(
        to_email=to_email,
        name=name,
        code=code,
        subject="Verify your email",
        heading=f"Welcome to {settings.app_name}",
        intro="Use this code to verify your email address:",
        footer="If you didn't create an account, you can safely ignore this email.",
    )


def render_password_reset_email(
    *, to_email: str, name: str | None, code: str
) -> EmailMessage:
    """Render the password-reset message.

    Args:
        to_email: Recipient (normalized) email.
        name: Account display name, if any.
        code: Plaintext passcode.

    Returns:
        Rendered EmailMessage.
    """
    return _render(
        to_email=to_email,
        name=name,
        code=code,
        subject="Reset your password",
        heading="Password reset",
        intro="Use this code to reset your password:",
        footer="If you didn't request a password reset, you can safely ignore this email.",
    )
