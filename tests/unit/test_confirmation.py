"""
Unit tests for email confirmation
"""

from datetime import timedelta

import pytest

from identity_engine.core.errors import EmailTokenInvalid, MergeConflict
from identity_engine.models.account import EmailStatusCode, utc_now
from identity_engine.services.identity.confirmation import EMAIL_VALIDATION_EXPLANATION


def user_ids(store):
    return sorted(d["id"] for d in store.all("users"))


def pending_registration(make_account, id="local", email="local@vpdb.io", **fields):
    return make_account(
        id, email,
        status=EmailStatusCode.PENDING_REGISTRATION,
        token=f"token-{id}",
        expires_at=utc_now() + timedelta(days=1),
        pending_value=email,
        is_local=True,
        password_hash="hash",
        password_salt="salt",
        **fields
    )


@pytest.mark.asyncio
async def test_pending_update_without_conflicts(service, store, make_account):
    make_account(
        "user", "old@vpdb.io",
        status=EmailStatusCode.PENDING_UPDATE,
        validated_emails=["old@vpdb.io"],
        token="tkn",
        expires_at=utc_now() + timedelta(days=1),
        pending_value="new@vpdb.io",
        is_active=True,
    )

    result = await service.confirm_email("tkn")

    account = result.account
    assert account.email == "new@vpdb.io"
    assert account.email_status.code == EmailStatusCode.CONFIRMED
    assert account.email_status.token is None
    assert account.validated_emails == ["old@vpdb.io", "new@vpdb.io"]
    assert "new@vpdb.io" in account.emails
    assert result.previous_code == EmailStatusCode.PENDING_UPDATE
    assert result.merged_count == 0
    assert result.deleted_count == 0
    assert result.message == "Email validated and updated."
    assert user_ids(store) == ["user"]
    assert store.get("users", "user")["email"] == "new@vpdb.io"


@pytest.mark.asyncio
async def test_pending_registration_is_activated(service, store, make_account):
    pending_registration(make_account)

    result = await service.confirm_email("token-local")

    assert result.account.is_active is True
    assert result.account.email == "local@vpdb.io"
    assert result.account.validated_emails == ["local@vpdb.io"]
    assert result.previous_code == EmailStatusCode.PENDING_REGISTRATION
    assert result.message == "Email successfully validated. You may login now."
    assert any(e["event"] == "registration_email_confirmed" for e in store.all("log_users"))


@pytest.mark.asyncio
async def test_unknown_token(service):
    with pytest.raises(EmailTokenInvalid) as exc_info:
        await service.confirm_email("nope")
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_expired_token(service, make_account):
    make_account(
        "user", "old@vpdb.io",
        status=EmailStatusCode.PENDING_UPDATE,
        token="tkn",
        expires_at=utc_now() - timedelta(minutes=1),
        pending_value="new@vpdb.io",
    )

    with pytest.raises(EmailTokenInvalid):
        await service.confirm_email("tkn")


@pytest.mark.asyncio
@pytest.mark.parametrize("offset,valid", [(timedelta(hours=1), True), (-timedelta(hours=1), False)])
async def test_naive_expiry_is_read_as_utc(service, store, make_account, offset, valid):
    make_account(
        "user", "old@vpdb.io",
        status=EmailStatusCode.PENDING_UPDATE,
        token="tkn",
        pending_value="new@vpdb.io",
    )
    document = store.get("users", "user")
    document["email_status"]["expires_at"] = (utc_now() + offset).replace(tzinfo=None).isoformat()
    store.save("users", document)

    if valid:
        result = await service.confirm_email("tkn")
        assert result.account.email == "new@vpdb.io"
    else:
        with pytest.raises(EmailTokenInvalid):
            await service.confirm_email("tkn")


@pytest.mark.asyncio
async def test_other_pending_registrations_are_deleted(service, store, make_account):
    pending_registration(make_account, "first")
    pending_registration(make_account, "second")

    result = await service.confirm_email("token-second")

    assert result.deleted_count == 1
    assert result.merged_count == 0
    assert user_ids(store) == ["second"]


@pytest.mark.asyncio
async def test_single_oauth_account_is_merged_silently(service, store, make_account, notifications):
    make_account("oauth", "local@vpdb.io", is_local=False, credits=4)
    pending_registration(make_account)
    store.insert("comments", {"id": "c1", "from_user": "oauth"})

    result = await service.confirm_email("token-local")

    assert result.merged_count == 1
    assert result.account.id == "local"
    assert result.account.is_active is True
    assert result.account.credits == 4
    assert result.previous_code == EmailStatusCode.PENDING_REGISTRATION
    assert user_ids(store) == ["local"]
    assert store.get("comments", "c1")["from_user"] == "local"
    notifications.send_account_merged_notice.assert_not_called()


@pytest.mark.asyncio
async def test_local_account_with_same_email_escalates(service, store, make_account):
    make_account("other-local", "local@vpdb.io", is_local=True, password_hash="other")
    pending_registration(make_account)

    with pytest.raises(MergeConflict) as exc_info:
        await service.confirm_email("token-local")

    assert exc_info.value.explanation == EMAIL_VALIDATION_EXPLANATION
    assert exc_info.value.candidate_ids == ["local", "other-local"]
    assert user_ids(store) == ["local", "other-local"]


@pytest.mark.asyncio
async def test_escalation_resolved_with_keep_id(service, store, make_account, notifications):
    make_account("other-local", "local@vpdb.io", is_local=True, password_hash="other")
    pending_registration(make_account)

    result = await service.confirm_email("token-local", keep_id="other-local")

    assert result.account.id == "other-local"
    assert result.account.is_active is True
    assert result.account.email_status.code == EmailStatusCode.CONFIRMED
    assert result.previous_code == EmailStatusCode.PENDING_REGISTRATION
    assert user_ids(store) == ["other-local"]
    notifications.send_account_merged_notice.assert_called_once()
