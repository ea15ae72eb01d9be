"""
Actions Module
Background engines that act on stored data
"""

from .reminder_engine import (
    Reminder,
    ReminderScanner,
    due_reminders,
    log_notifier,
)


__all__ = [
    "Reminder",
    "ReminderScanner",
    "due_reminders",
    "log_notifier",
]
