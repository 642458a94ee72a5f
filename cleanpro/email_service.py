"""
Email Service using Resend
Emails are written in MJML and compiled to responsive HTML before sending
"""

import logging
from typing import Optional, Union

import resend
from mjml import mjml2html as mjml_to_html

from .config import ADMIN_OTP_TTL_SECONDS, BUSINESS_NAME, EMAIL_FROM_ADDRESS, RESEND_API_KEY
from .email_templates import admin_invitation_template, password_reset_template

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


class EmailDeliveryError(Exception):
    """Raised when an email could not be handed to the provider"""


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    result = mjml_to_html(mjml_content)
    errors = getattr(result, "errors", None) or (result.get("errors") if isinstance(result, dict) else None)
    if errors:
        logger.warning(f"MJML compilation warnings: {errors}")
    if isinstance(result, dict):
        return result.get("html", "")
    return getattr(result, "html", str(result))


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email through Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address

    Returns:
        Send response dict
    """
    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise EmailDeliveryError("Email service not configured")

    recipients = [to] if isinstance(to, str) else to
    html_content = compile_mjml_to_html(mjml_content)

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        response = resend.Emails.send(
            {
                "from": from_address or EMAIL_FROM_ADDRESS,
                "to": recipients,
                "subject": subject,
                "html": html_content,
            }
        )
        logger.info("✅ Email sent successfully via Resend")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise EmailDeliveryError(f"Failed to send email: {e}") from e


# ============================================
# Pre-built Emails
# ============================================


async def send_admin_invitation_email(to: str, name: str, otp: str, role: str) -> dict:
    """Send the one-time setup code to a newly created admin"""
    mjml_content = admin_invitation_template(name, otp, role, ADMIN_OTP_TTL_SECONDS // 3600)
    return await send_email(
        to=to,
        subject=f"Your {BUSINESS_NAME} admin account",
        mjml_content=mjml_content,
    )


async def send_password_reset_email(to: str, name: str, reset_link: str) -> dict:
    """Send password reset email"""
    mjml_content = password_reset_template(name, reset_link)
    return await send_email(
        to=to,
        subject=f"Reset Your Password - {BUSINESS_NAME}",
        mjml_content=mjml_content,
    )
