"""Factory notifier factory.

Provides get_notifier() / set_notifier() to swap implementations:
- FakeNotifier for development and testing (NOTIFIER_ADAPTER unset or "fake")
- SmtpNotifier for production (NOTIFIER_ADAPTER=smtp)
"""

import os

from procurement.fulfillment.settings import get_settings
from procurement.notifier.fake_notifier import FakeNotifier
from procurement.notifier.port import Notifier
from procurement.notifier.smtp_notifier import SmtpNotifier

_current_notifier: Notifier | None = None


def get_notifier() -> Notifier:
    """Return the current notifier, chosen by NOTIFIER_ADAPTER on first use."""
    global _current_notifier
    if _current_notifier is None:
        if os.environ.get("NOTIFIER_ADAPTER", "fake").lower() == "smtp":
            _current_notifier = SmtpNotifier(timeout=get_settings().notify_timeout_seconds)
        else:
            _current_notifier = FakeNotifier()
    return _current_notifier


def set_notifier(notifier: Notifier) -> None:
    """Override the active notifier (useful for tests)."""
    global _current_notifier
    _current_notifier = notifier


def reset_notifier() -> None:
    """Reset to the default notifier."""
    global _current_notifier
    _current_notifier = None
