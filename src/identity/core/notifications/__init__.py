"""Notification utilities - email.

Re-exports all notification-related names for convenience.
"""

from src.identity.core.notifications.email import EmailMessage, EmailSender, get_email_sender
from src.identity.core.notifications.templates import (
    email_verification_message,
    password_reset_message,
)

__all__ = [
    "EmailMessage",
    "EmailSender",
    "email_verification_message",
    "get_email_sender",
    "password_reset_message",
]
