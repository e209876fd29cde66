"""
Email Confirmation
Confirms a pending email address and reconciles accounts that claimed the
same address in the meantime (OAuth logins, other local registrations).
"""
import logging
from dataclasses import dataclass
from typing import Optional

from identity_engine.core.errors import EmailTokenInvalid
from identity_engine.models.account import Account, EmailStatus, EmailStatusCode, as_utc, unique, utc_now
from identity_engine.services.accounts import AccountAuditLog, AccountRepository
from identity_engine.services.identity.candidates import CandidateFinder
from identity_engine.services.identity.escalator import ConflictEscalator
from identity_engine.services.identity.reaper import PendingRegistrationReaper
from identity_engine.services.merge import AccountMergeEngine

logger = logging.getLogger(__name__)

EMAIL_VALIDATION_EXPLANATION = (
    "During the email validation, another account with the same email was created and validated. "
    "If that wasn't you, you should be worried and contact us immediately!"
)
TOKEN_FAILURE_MESSAGE = "No such token or token expired."


@dataclass
class ConfirmationResult:
    account: Account
    merged_count: int
    deleted_count: int
    previous_code: EmailStatusCode
    message: str


class EmailConfirmation:

    def __init__(
        self,
        accounts: AccountRepository,
        finder: CandidateFinder,
        reaper: PendingRegistrationReaper,
        engine: AccountMergeEngine,
        escalator: ConflictEscalator,
        audit: AccountAuditLog
    ):
        self.accounts = accounts
        self.finder = finder
        self.reaper = reaper
        self.engine = engine
        self.escalator = escalator
        self.audit = audit

    def _account_for_token(self, token: str) -> Account:
        account = self.accounts.find_by_email_token(token)
        if account is None:
            logger.warning(f"No user found with email token \"{token}\".")
            raise EmailTokenInvalid(TOKEN_FAILURE_MESSAGE)

        expires_at = account.email_status.expires_at
        if expires_at is not None and as_utc(expires_at) < utc_now():
            logger.warning(f"Email token \"{token}\" for user <{account.email}> is expired ({expires_at}).")
            raise EmailTokenInvalid(TOKEN_FAILURE_MESSAGE)

        return account

    async def confirm(self, token: str, keep_id: Optional[str] = None) -> ConfirmationResult:
        """
        Confirms the email address pending behind `token`.

        Args:
            token: Confirmation token sent by email
            keep_id: Survivor chosen by the caller after a MergeConflict

        Raises:
            EmailTokenInvalid: Unknown or expired token
            MergeConflict: Other confirmed accounts use the address
            InvalidMergeSelection: `keep_id` is not among the conflicting accounts
        """
        account = self._account_for_token(token)

        # the survivor of a merge may carry a different status
        previous_code = account.email_status.code
        email = account.email_status.value or account.email
        logger.info(f"Email {email} confirmed.")

        deleted = 0
        others = []
        for other in self.finder.find_by_email(email, exclude_id=account.id):
            if other.email_status.is_pending_registration:
                # nothing worth merging, credentials are on the confirming account
                self.reaper.remove(other, f"same email <{email}> confirmed by {account.id}")
                deleted += 1
            else:
                others.append(other)
        logger.info(f"Found {len(others)} confirmed and {deleted} unconfirmed dupe users for {email}.")

        if len(others) == 1 and not others[0].is_local:
            account = await self.engine.merge(account, others[0])
        elif others:
            account = await self.escalator.resolve([account, *others], EMAIL_VALIDATION_EXPLANATION, keep_id)

        if previous_code == EmailStatusCode.PENDING_REGISTRATION:
            account.is_active = True
            event, message = "registration_email_confirmed", "Email successfully validated. You may login now."
            logger.info(f"User email <{account.email}> for pending registration confirmed.")
        else:
            account.email = email
            event, message = "email_confirmed", "Email validated and updated."
            logger.info(f"User email <{email}> confirmed.")

        account.email_status = EmailStatus(code=EmailStatusCode.CONFIRMED)
        account.validated_emails = unique([*account.validated_emails, email])
        account.emails = unique([*account.emails, email])

        account = self.accounts.save(account)
        self.audit.success(account, event, {"email": account.email})

        return ConfirmationResult(
            account=account,
            merged_count=len(others),
            deleted_count=deleted,
            previous_code=previous_code,
            message=message,
        )
