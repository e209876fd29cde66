"""
Provider Profile Normalizer
Turns raw provider payloads into one canonical profile shape.

Supported payload shapes:
- passport style: {id, displayName, username, name: {givenName, familyName},
  emails: [{value}], photos: [{value}], _json}
- flat GitHub style: {id, login, name, email, avatar_url}
- flat Google style: {sub, name, email, picture}
- flat IPS style: {member_id, displayName, email, photo}
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from identity_engine.core.errors import ProfileIncomplete, ProviderIdentityConflict
from identity_engine.models.account import Account, unique

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    """
    Normalize email address for comparison.

    Returns:
        Lowercase, trimmed email
    """
    if not email:
        return ""
    return email.strip().lower()


def email_local_part(email: str) -> str:
    """john.doe@company.com → john.doe"""
    if not email or "@" not in email:
        return email or ""
    return email[:email.index("@")]


@dataclass
class NormalizedProfile:
    provider: str
    provider_id: str
    emails: List[str]
    display_name: str
    avatar_url: Optional[str] = None
    username: Optional[str] = None
    raw_payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def primary_email(self) -> str:
        return self.emails[0]


# ============================================================================
# FIELD EXTRACTION
# ============================================================================

def _first_value(items) -> Optional[str]:
    if isinstance(items, list):
        for item in items:
            value = item.get("value") if isinstance(item, dict) else item
            if value:
                return value
    return None


def _emails(raw: Dict[str, Any]) -> List[str]:
    found = []
    if isinstance(raw.get("emails"), list):
        for item in raw["emails"]:
            found.append(item.get("value") if isinstance(item, dict) else item)
    if raw.get("email"):
        found.append(raw["email"])
    return unique(normalize_email(e) for e in found if isinstance(e, str))


def _id(raw: Dict[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = raw.get(key)
        if value is not None and str(value).strip():
            return str(value).strip()
    return None


def _display_name(raw: Dict[str, Any], emails: List[str]) -> str:
    name = raw.get("name") if isinstance(raw.get("name"), dict) else {}
    flat_name = raw.get("name") if isinstance(raw.get("name"), str) else None
    return (
        raw.get("displayName")
        or flat_name
        or raw.get("username")
        or raw.get("login")
        or name.get("givenName")
        or name.get("familyName")
        or email_local_part(emails[0])
    )


def _passport(raw: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": _id(raw, "id"),
        "username": raw.get("username"),
        "avatar_url": _first_value(raw.get("photos")),
        "payload": raw.get("_json") or {k: v for k, v in raw.items() if k != "_json"},
    }


def _github(raw: Dict[str, Any]) -> Dict[str, Any]:
    extracted = _passport(raw)
    extracted["username"] = raw.get("username") or raw.get("login")
    extracted["avatar_url"] = extracted["avatar_url"] or raw.get("avatar_url")
    return extracted


def _google(raw: Dict[str, Any]) -> Dict[str, Any]:
    extracted = _passport(raw)
    extracted["id"] = _id(raw, "id", "sub")
    extracted["avatar_url"] = extracted["avatar_url"] or raw.get("picture")
    return extracted


def _ips(raw: Dict[str, Any]) -> Dict[str, Any]:
    extracted = _passport(raw)
    extracted["id"] = _id(raw, "id", "member_id")
    extracted["avatar_url"] = extracted["avatar_url"] or raw.get("photo")
    return extracted


EXTRACTORS: Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
    "github": _github,
    "google": _google,
    "ips": _ips,
}


def _extractor_for(provider: str) -> Callable[[Dict[str, Any]], Dict[str, Any]]:
    # IPS boards are configured as "ips:<board>", e.g. "ips:vpu"
    return EXTRACTORS.get(provider.split(":")[0].lower(), _passport)


# ============================================================================
# NORMALIZER
# ============================================================================

def normalize_profile(
    provider: str,
    raw_profile: Optional[Dict[str, Any]],
    caller: Optional[Account] = None
) -> NormalizedProfile:
    """
    Canonicalizes a raw provider payload.

    Args:
        provider: Provider name ("github", "google", "ips:vpu", ...)
        raw_profile: Payload as received from the provider
        caller: Already authenticated account, if any

    Raises:
        ProfileIncomplete: No payload, no user id or no email address
        ProviderIdentityConflict: Caller is linked to another id at this provider
    """
    if not raw_profile:
        logger.warning(f"[{provider}] No profile data received.")
        raise ProfileIncomplete(f"No profile received from {provider}.")

    extracted = _extractor_for(provider)(raw_profile)
    emails = _emails(raw_profile)

    if not emails:
        logger.warning(f"[{provider}] Profile data does not contain any email address: {raw_profile}")
        raise ProfileIncomplete(f"Received profile from {provider} does not contain any email address.")

    if not extracted["id"]:
        logger.warning(f"[{provider}] Profile data does not contain any user ID: {raw_profile}")
        raise ProfileIncomplete(f"Received profile from {provider} does not contain user id.")

    linked_id = caller.provider_id(provider) if caller else None
    if linked_id and linked_id != extracted["id"]:
        raise ProviderIdentityConflict(f"Profile at {provider} is already linked to ID {linked_id}")

    return NormalizedProfile(
        provider=provider,
        provider_id=extracted["id"],
        emails=emails,
        display_name=_display_name(raw_profile, emails),
        avatar_url=extracted["avatar_url"],
        username=extracted["username"],
        raw_payload=extracted["payload"],
    )
