"""Cache key builders. Single place for key format.

Key components must not contain CACHE_KEY_SEP to avoid ambiguous or
colliding keys.
"""

from merchant_verification.core.constants import (
    CACHE_KEY_SEP,
    CACHE_PREFIX_MERCHANT_VERIFICATION,
)


def _validate_key_component(value: str, name: str) -> None:
    """Raise ValueError if value is empty or contains the cache key separator.

    Args:
        value: String component used in a cache key.
        name: Name of the component (for error message).

    Raises:
        ValueError: If value is empty or contains CACHE_KEY_SEP.
    """
    if not value:
        raise ValueError(f"Cache key component {name!r} must not be empty")
    if CACHE_KEY_SEP in value:
        raise ValueError(
            f"Cache key component {name!r} must not contain separator {CACHE_KEY_SEP!r}"
        )


def merchant_verification_key(merchant_id: str) -> str:
    """Cache key for a merchant's verification outcome (merchant_verification:<id>)."""
    _validate_key_component(merchant_id, "merchant_id")
    return f"{CACHE_PREFIX_MERCHANT_VERIFICATION}{CACHE_KEY_SEP}{merchant_id}"


def encode_outcome(outcome: bool) -> str:
    """Serialize a boolean outcome as stored in the cache ("true"/"false")."""
    return "true" if outcome else "false"


def decode_outcome(raw: str | bytes | None) -> bool | None:
    """Parse a stored outcome; None for absent or unrecognized values."""
    if raw is None:
        return None
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    if raw == "true":
        return True
    if raw == "false":
        return False
    return None
