"""
Unit tests for provider profile normalization
"""

import pytest

from identity_engine.core.errors import ProfileIncomplete, ProviderIdentityConflict
from identity_engine.services.identity.normalizer import email_local_part, normalize_email, normalize_profile


def test_passport_profile():
    raw = {
        "id": 1234,
        "displayName": "Jérôme B.",
        "username": "jerome",
        "emails": [{"value": " Jerome@Example.COM "}, {"value": "jerome@example.com"}, {"value": "j@work.io"}],
        "photos": [{"value": "https://avatars.example.com/1234"}],
        "_json": {"id": 1234, "login": "jerome"},
    }

    profile = normalize_profile("github", raw)

    assert profile.provider_id == "1234"
    assert profile.emails == ["jerome@example.com", "j@work.io"]
    assert profile.primary_email == "jerome@example.com"
    assert profile.display_name == "Jérôme B."
    assert profile.username == "jerome"
    assert profile.avatar_url == "https://avatars.example.com/1234"
    assert profile.raw_payload == {"id": 1234, "login": "jerome"}


def test_flat_github_profile():
    raw = {"id": 99, "login": "octocat", "email": "octo@github.com", "avatar_url": "https://gh/octo.png"}

    profile = normalize_profile("github", raw)

    assert profile.provider_id == "99"
    assert profile.display_name == "octocat"
    assert profile.username == "octocat"
    assert profile.avatar_url == "https://gh/octo.png"


def test_flat_google_profile():
    raw = {"sub": "10987", "name": "Ada Lovelace", "email": "ADA@gmail.com", "picture": "https://g/ada.jpg"}

    profile = normalize_profile("google", raw)

    assert profile.provider_id == "10987"
    assert profile.emails == ["ada@gmail.com"]
    assert profile.display_name == "Ada Lovelace"
    assert profile.avatar_url == "https://g/ada.jpg"


def test_ips_board_profile():
    raw = {"member_id": 42, "displayName": "Pinball Wizard", "email": "wizard@vpu.com"}

    profile = normalize_profile("ips:vpu", raw)

    assert profile.provider == "ips:vpu"
    assert profile.provider_id == "42"


def test_display_name_falls_back_to_given_name_then_email():
    with_given = normalize_profile("google", {"sub": "1", "email": "x@y.z", "name": {"givenName": "Grace"}})
    with_family = normalize_profile("google", {"sub": "1", "email": "x@y.z", "name": {"familyName": "Hopper"}})
    bare = normalize_profile("google", {"sub": "1", "email": "grace.hopper@navy.mil"})

    assert with_given.display_name == "Grace"
    assert with_family.display_name == "Hopper"
    assert bare.display_name == "grace.hopper"


@pytest.mark.parametrize("raw", [
    None,
    {},
    {"id": "1"},
    {"id": "1", "emails": []},
    {"email": "no-id@example.com"},
    {"id": "  ", "email": "blank-id@example.com"},
])
def test_incomplete_profiles_are_rejected(raw):
    with pytest.raises(ProfileIncomplete):
        normalize_profile("github", raw)


def test_caller_linked_to_other_provider_identity(make_account):
    from identity_engine.models.account import LinkedProviderIdentity

    caller = make_account("caller", "caller@vpdb.io", providers={"github": LinkedProviderIdentity(id="1")})

    with pytest.raises(ProviderIdentityConflict):
        normalize_profile("github", {"id": "2", "email": "caller@vpdb.io"}, caller)

    # same identity again is fine
    assert normalize_profile("github", {"id": "1", "email": "caller@vpdb.io"}, caller).provider_id == "1"


def test_email_helpers():
    assert normalize_email("  John.Doe@Company.COM ") == "john.doe@company.com"
    assert normalize_email(None) == ""
    assert email_local_part("john.doe@company.com") == "john.doe"
    assert email_local_part("no-at-sign") == "no-at-sign"
