"""
Accounts
Repository and collaborators around the accounts collection
"""
from identity_engine.services.accounts.repository import AccountRepository
from identity_engine.services.accounts.acl import AccessControl
from identity_engine.services.accounts.audit import AccountAuditLog

__all__ = [
    "AccountRepository",
    "AccessControl",
    "AccountAuditLog",
]
