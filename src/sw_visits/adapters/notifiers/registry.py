"""
Notifier factory: returns the configured provider for a channel.
"""
from functools import lru_cache
from typing import Literal

from django.conf import settings

from sw_visits.adapters.notifiers.base import BaseNotifier
from sw_visits.adapters.notifiers.email.sendgrid import SendGridEmail
from sw_visits.adapters.notifiers.log_only import LogOnlyNotifier


@lru_cache
def get_email_notifier(key: str = "sendgrid") -> BaseNotifier:
    if not settings.SENDGRID_API_KEY:
        return LogOnlyNotifier()
    return SendGridEmail(
        api_key=settings.SENDGRID_API_KEY,
        from_email=settings.DEFAULT_FROM_EMAIL,
    )


def get_notifier(channel: Literal["email"] = "email") -> BaseNotifier:
    """
    Returns the notifier for `channel`.

    - 'email' → SendGridEmail, or LogOnlyNotifier without SENDGRID_API_KEY
    """
    if channel == "email":
        return get_email_notifier()
    raise ValueError(f"Unknown notification channel: {channel}")
