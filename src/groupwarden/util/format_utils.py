import hashlib
from datetime import datetime, timezone

PHONE_SUFFIXES = ("@s.whatsapp.net", "@g.us")


def identity_to_phone(identity: str | None) -> str:
    """Strip the transport domain and device suffix from an identity.

    ``"31612345678:4@s.whatsapp.net"`` becomes ``"31612345678"``. Identities
    in other formats (for example ``"abc@lid"``) keep their domain.
    """
    if not identity:
        return ""
    value = identity
    for suffix in PHONE_SUFFIXES:
        value = value.replace(suffix, "")
    return value.split(":")[0]


def phone_to_identity(phone: str) -> str:
    """Return a transport identity for ``phone``, leaving full identities untouched."""
    if "@" in phone:
        return phone
    return f"{phone}@s.whatsapp.net"


def mask_phone(phone: str | None) -> str:
    """Partially mask a phone number for logs and admin alerts (``3161****78``)."""
    if not phone:
        return "****"
    clean = identity_to_phone(phone)
    if len(clean) > 6:
        return f"{clean[:4]}****{clean[-2:]}"
    return "****"


def hash_phone(phone: str) -> str:
    """SHA-256 hex digest of a phone number."""
    return hashlib.sha256(phone.encode("utf-8")).hexdigest()


def truncate(text: str, limit: int = 100) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def humanize_timestamp(value: int | float) -> str:
    """Render unix seconds as ``YYYY-MM-DD HH:MM:SS UTC``."""
    return datetime.fromtimestamp(value, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
