"""Email templates for verification and password reset."""

import html

from src.identity.core.config import get_settings
from src.identity.core.notifications.email import EmailMessage

# Shared email styles
_BODY_STYLE = (
    "font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; "
    "line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;"
)
_BUTTON_STYLE = (
    "background-color: #2563eb; color: white; padding: 12px 24px; "
    "text-decoration: none; border-radius: 6px; display: inline-block; font-weight: 500;"
)
_LINK_STYLE = "color: #2563eb; word-break: break-all;"
_MUTED_STYLE = "color: #666; font-size: 14px;"


def _render_html(title: str, full_name: str, message: str, label: str, url: str, footer: str) -> str:
    safe_name = html.escape(full_name)
    safe_url = html.escape(url, quote=True)
    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
</head>
<body style="{_BODY_STYLE}">
    <h1 style="color: #2563eb; margin-bottom: 24px;">{title}</h1>
    <p>Hi {safe_name},</p>
    <p>{message}</p>
    <p style="margin: 32px 0;">
        <a href="{safe_url}" style="{_BUTTON_STYLE}">{label}</a>
    </p>
    <p style="{_MUTED_STYLE}">
        Or copy and paste this link into your browser:<br>
        <a href="{safe_url}" style="{_LINK_STYLE}">{safe_url}</a>
    </p>
    <p style="{_MUTED_STYLE} margin-top: 32px;">{footer}</p>
</body>
</html>"""


def email_verification_message(
    full_name: str, token: str, redirect_url: str, is_email_change: bool = False
) -> EmailMessage:
    """Build the verification email (registration or email change)."""
    settings = get_settings()
    verification_url = f"{redirect_url.rstrip('/')}/verify-email?token={token}"

    if is_email_change:
        message = (
            "You have requested to change your email address. To complete this change, "
            "please verify your new email address by clicking the button below:"
        )
        footer = (
            "If you didn't request this change, please ignore this email or contact "
            "support if you're concerned about your account security."
        )
    else:
        message = (
            "Thank you for registering with us. To complete your registration, "
            "please verify your email address by clicking the button below:"
        )
        footer = "If you didn't create an account, please ignore this email."

    text = f"Hi {full_name},\n\n{message}\n\n{verification_url}\n\n{footer}\n"
    return EmailMessage(
        subject=f"{settings.app_name} - Verify Your Email Address",
        html=_render_html(
            "Verify your email", full_name, message, "Verify Email", verification_url, footer
        ),
        text=text,
    )


def password_reset_message(full_name: str, token: str, redirect_url: str) -> EmailMessage:
    """Build the password reset email."""
    settings = get_settings()
    reset_url = f"{redirect_url.rstrip('/')}/reset-password?token={token}"
    message = (
        "We received a request to reset your password. Click the button below to "
        f"choose a new one. This link expires in {settings.password_reset_expire_minutes} minutes."
    )
    footer = "If you didn't request a password reset, you can safely ignore this email."

    text = f"Hi {full_name},\n\n{message}\n\n{reset_url}\n\n{footer}\n"
    return EmailMessage(
        subject=f"{settings.app_name} - Password Reset Request",
        html=_render_html(
            "Reset your password", full_name, message, "Reset Password", reset_url, footer
        ),
        text=text,
    )
