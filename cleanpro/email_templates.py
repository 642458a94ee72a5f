"""
MJML Email Templates
Transactional emails for customers and admins, compiled to HTML by email_service
"""

from html import escape
from typing import Optional

from .config import BUSINESS_NAME, FRONTEND_URL

THEME = {
    "primary": "#0ea5e9",
    "primary_dark": "#0284c7",
    "primary_light": "#e0f2fe",
    "background": "#f8fafc",
    "card_bg": "#ffffff",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "warning": "#f59e0b",
}


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section background-color="{THEME['card_bg']}" padding="0 40px 32px 40px">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="12px 0"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="{THEME['card_bg']}" padding="32px 40px 8px 40px">
          <mj-column>
            <mj-text font-size="20px" font-weight="700" color="{THEME['primary_dark']}" padding="0">
              {escape(BUSINESS_NAME)}
            </mj-text>
            <mj-divider border-color="{THEME['border']}" border-width="1px" padding="24px 0 0 0" />
          </mj-column>
        </mj-section>

        <mj-section background-color="{THEME['card_bg']}" padding="24px 40px 16px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>
            {content_sections}
          </mj-column>
        </mj-section>
        {cta_section}
        <mj-section padding="24px 20px">
          <mj-column>
            <mj-text align="center" font-size="12px" color="{THEME['text_muted']}">
              {escape(BUSINESS_NAME)} &middot; This is an automated message, please do not reply.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def admin_invitation_template(name: str, otp: str, role: str, expires_hours: int) -> str:
    """One-time code for a newly created admin account"""
    role_label = "Main admin" if role == "main_admin" else "Sub-admin"
    content = f"""
            <mj-text>
              Hi {escape(name)},
            </mj-text>
            <mj-text>
              An administrator account ({role_label}) has been created for you. Use the one-time
              code below together with your email address to set your password on first login.
            </mj-text>
            <mj-text align="center" font-size="32px" font-weight="700" letter-spacing="8px"
                     color="{THEME['text_primary']}" container-background-color="{THEME['primary_light']}"
                     padding="16px 0">
              {otp}
            </mj-text>
            <mj-text font-size="14px" color="{THEME['warning']}">
              This code expires in {expires_hours} hours and can only be used once.
            </mj-text>
    """
    return get_base_template(
        title="Your admin account is ready",
        preview_text="Your one-time code to set up your admin password",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/admin/first-login",
        cta_label="Set up my password",
    )


def password_reset_template(name: str, reset_link: str) -> str:
    """Password reset MJML template"""
    content = f"""
            <mj-text>
              Hi {escape(name)},
            </mj-text>
            <mj-text>
              We received a request to reset your password. The link below is valid for one hour.
            </mj-text>
            <mj-text font-size="14px" color="{THEME['text_muted']}">
              If you didn't request this, you can safely ignore this email.
            </mj-text>
    """
    return get_base_template(
        title="Reset your password",
        preview_text="Reset your password",
        content_sections=content,
        cta_url=reset_link,
        cta_label="Reset password",
    )
