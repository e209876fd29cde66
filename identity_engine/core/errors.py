"""
Error Taxonomy
Exceptions raised by identity resolution and account merging.

Every IdentityError carries the HTTP status it maps to. MergeConflict is a
control-flow signal (the caller must resubmit with an explicit survivor),
not a failure.
"""
from typing import List, Optional

from identity_engine.models.schemas.auth import AccountSummary


class IdentityError(Exception):
    """Base class for all errors surfaced by the identity engine."""

    status_code = 400

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {"error": self.message}


class ProfileIncomplete(IdentityError):
    """Provider payload lacks a user id or any email address."""


class ProviderIdentityConflict(IdentityError):
    """Caller is already linked to a different identity at the same provider."""


class InvalidMergeSelection(IdentityError):
    """The survivor chosen by the caller is not one of the conflicting accounts."""


class EmailTokenInvalid(IdentityError):
    """Confirmation token is unknown or expired."""

    status_code = 404


class MergeConflict(IdentityError):
    """
    Several accounts match and none may be picked automatically.

    `candidates` holds the conflicting Account objects, serialized as account
    summaries so the caller can show them. The caller has to resubmit with
    the id of the account to keep.
    """

    status_code = 409

    def __init__(self, explanation: str, candidates: List):
        super().__init__("Conflicted users, must merge.")
        self.explanation = explanation
        self.candidates = list(candidates)

    @property
    def candidate_ids(self) -> List[str]:
        return [c.id for c in self.candidates]

    def to_dict(self) -> dict:
        return {
            "error": self.message,
            "explanation": self.explanation,
            "candidates": [AccountSummary.from_account(c).model_dump(mode="json") for c in self.candidates],
        }


class ReferenceMigrationFailure(IdentityError):
    """Infrastructure error while moving references; safe to retry wholesale."""

    status_code = 500

    def __init__(self, message: str, keep_id: str, discard_id: str):
        super().__init__(message)
        self.keep_id = keep_id
        self.discard_id = discard_id

    def to_dict(self) -> dict:
        # internals stay in the logs
        return {"error": "Account merge failed, please try again."}


class DocumentStoreError(Exception):
    """Raised by DocumentStore implementations on any backend failure."""

    def __init__(self, message: str, collection: Optional[str] = None):
        super().__init__(message)
        self.collection = collection
