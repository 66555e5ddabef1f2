"""
Reminder Coupling

Once a transaction is fully settled, its pending reminders are pointless.
The settlement engine calls clear_for_transaction() on every SETTLED
outcome; nothing else in the ledger touches reminders.

Two policies:
- "cancel" (default): reminders stay in storage with status CANCELLED,
  so the history of what the user was reminded about is kept
- "delete": reminders are physically removed
"""

from typing import Optional
from uuid import UUID

import structlog

from debt_ledger.config.settings import ReminderClearPolicy
from debt_ledger.models.ledger import (
    Reminder,
    ReminderStatus,
    ReminderTargetType,
)
from debt_ledger.services.storage import ReminderStorageInterface


logger = structlog.get_logger(__name__)


class ReminderCoupling:
    """Clears reminders attached to settled transactions."""

    def __init__(
        self,
        storage: ReminderStorageInterface,
        policy: ReminderClearPolicy = "cancel",
    ):
        if policy not in ("cancel", "delete"):
            raise ValueError(f"Unknown reminder clear policy: {policy}")
        self._storage = storage
        self._policy = policy

    @property
    def policy(self) -> str:
        return self._policy

    async def clear_for_transaction(self, transaction_id: UUID) -> list[Reminder]:
        """
        Clear every UPCOMING reminder targeting the transaction.

        Reminders already DONE, SNOOZED or CANCELLED are left alone.
        Calling this twice is harmless: the second call finds nothing.

        Returns:
            The reminders as they were before clearing
        """
        reminders = await self._storage.list_reminders(
            target_type=ReminderTargetType.TRANSACTION,
            target_id=transaction_id,
            status=ReminderStatus.UPCOMING,
        )

        for reminder in reminders:
            if self._policy == "delete":
                await self._storage.delete_reminder(reminder.id)
            else:
                await self._storage.update_reminder(
                    reminder.model_copy(update={"status": ReminderStatus.CANCELLED})
                )

        if reminders:
            logger.info(
                "reminders_cleared",
                transaction_id=str(transaction_id),
                count=len(reminders),
                policy=self._policy,
            )
        return reminders

    async def upcoming_count(self, target_type: Optional[ReminderTargetType] = None) -> int:
        """Number of reminders still waiting to fire."""
        reminders = await self._storage.list_reminders(
            target_type=target_type,
            status=ReminderStatus.UPCOMING,
        )
        return len(reminders)
