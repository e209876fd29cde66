"""
Dramatiq Background Tasks
Delivers account notices outside the request that triggered them
"""
import logging
from typing import Dict

import dramatiq
import httpx

from identity_engine.core.config import settings
from identity_engine.services.background.broker import broker  # noqa: F401 (binds actors)

logger = logging.getLogger(__name__)


def _relay_mail(http_client: httpx.Client, to: Dict[str, str], subject: str, body: str) -> None:
    headers = {}
    if settings.mail_relay_token:
        headers["Authorization"] = f"Bearer {settings.mail_relay_token}"
    response = http_client.post(
        settings.mail_relay_url,
        headers=headers,
        json={
            "from": settings.mail_sender,
            "to": {"name": to["name"], "email": to["email"]},
            "subject": subject,
            "text": body,
        }
    )
    response.raise_for_status()


def merge_notice_bodies(kept: Dict[str, str], removed: Dict[str, str], explanation: str) -> Dict[str, str]:
    """Plain-text notices for both sides of a merge, keyed by recipient role."""
    return {
        "kept": (
            f"Hi {kept['name']},\n\n"
            f"The account {removed['name']} <{removed['email']}> has been merged into your account.\n\n"
            f"{explanation}\n"
        ),
        "removed": (
            f"Hi {removed['name']},\n\n"
            f"Your account has been merged into {kept['name']} <{kept['email']}> and no longer exists.\n\n"
            f"{explanation}\n"
        ),
    }


@dramatiq.actor(max_retries=3, time_limit=60000)
def deliver_account_merged_notice(kept: Dict[str, str], removed: Dict[str, str], explanation: str):
    """
    Sends the merge notice to the surviving and to the removed account.

    Args:
        kept: {id, name, email} of the surviving account
        removed: {id, name, email} of the deleted account
        explanation: Why the accounts were merged
    """
    bodies = merge_notice_bodies(kept, removed, explanation)

    if not settings.mail_relay_url:
        logger.info(
            f"Mail relay not configured, merge notice for {removed['id']} → {kept['id']} not sent"
        )
        return

    with httpx.Client(timeout=httpx.Timeout(30.0)) as http_client:
        _relay_mail(http_client, removed, "Your account has been merged", bodies["removed"])
        _relay_mail(http_client, kept, "Another account has been merged into yours", bodies["kept"])

    logger.info(f"✅ Merge notices sent for {removed['id']} → {kept['id']}")
