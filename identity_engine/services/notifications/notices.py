"""
Notification Service
Queues account notices; delivery problems never fail the caller.
"""
import logging

from identity_engine.models.account import Account

logger = logging.getLogger(__name__)


def _recipient(account: Account) -> dict:
    return {"id": account.id, "name": account.name, "email": account.email}


class NotificationService:

    def send_account_merged_notice(self, survivor: Account, removed: Account, explanation: str) -> None:
        """Enqueues both merge notices. Failures are logged, not raised."""
        try:
            # broker is only configured when the first notice goes out
            from identity_engine.services.background.tasks import deliver_account_merged_notice

            deliver_account_merged_notice.send(_recipient(survivor), _recipient(removed), explanation)
            logger.info(f"Queued merge notices for {removed.id} → {survivor.id}")
        except Exception as e:
            logger.error(f"Failed to queue merge notices for {removed.id} → {survivor.id}: {e}", exc_info=True)
