"""Reminder handling tied to settlement."""

from debt_ledger.reminders.coupling import ReminderCoupling

__all__ = ["ReminderCoupling"]
