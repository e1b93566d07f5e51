"""Notifier registry.

Provides singleton access to the customer notifier. Uses the fake adapter by
default; a real delivery adapter can be installed with set_notifier().
"""

from checkout.notifications.fake_adapter import FakeNotifier
from checkout.notifications.port import CustomerNotifier

_current_notifier: CustomerNotifier | None = None


def get_notifier() -> CustomerNotifier:
    global _current_notifier
    if _current_notifier is None:
        _current_notifier = FakeNotifier()
    return _current_notifier


def set_notifier(notifier: CustomerNotifier) -> None:
    """Override the active notifier (useful for tests)."""
    global _current_notifier
    _current_notifier = notifier


def reset_notifier() -> None:
    global _current_notifier
    _current_notifier = None
