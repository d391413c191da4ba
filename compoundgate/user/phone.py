"""Phone number normalization helpers.

Phone numbers reach the service in several shapes: E.164 from the phone
identity provider (``+201001234567``), and whatever an admin typed
(``0100 123-4567``, ``(555) 123-4567``). Normalization here is purely
syntactic. The only country-aware rule is the Egyptian local/international
pair ``0XXXXXXXXXX`` <-> ``+20XXXXXXXXXX``.
"""

import re

_PUNCTUATION_RE = re.compile(r"[\s\-().]")
_SPACES_RE = re.compile(r"\s")
_SPACES_AND_DASHES_RE = re.compile(r"[\s\-]")

EGYPT_COUNTRY_CODE = "20"
SUFFIX_DIGITS = 10


def normalize_phone(phone: str | None) -> str:
    """Strip whitespace, dashes, parentheses and dots (keeps a leading ``+``)."""
    if not phone:
        return ""
    return _PUNCTUATION_RE.sub("", phone)


def phone_key(phone: str | None) -> str | None:
    """Uniqueness key for a stored phone: normalized, without the ``+``.

    Returns None for empty input so users without a phone never collide.
    """
    key = normalize_phone(phone).lstrip("+")
    return key or None


def phone_suffix(phone: str | None) -> str:
    """Last ten digits of the normalized phone (the whole value if shorter)."""
    return normalize_phone(phone).lstrip("+")[-SUFFIX_DIGITS:]


def phone_variants(phone: str | None) -> list[str]:
    """Every stored form a given phone might have been saved under.

    Order is stable (raw input first) and duplicates/empties are dropped.
    """
    if not phone:
        return []

    normalized = normalize_phone(phone)
    without_plus = normalized.lstrip("+")

    candidates = [
        phone,
        normalized,
        _SPACES_RE.sub("", phone),
        _SPACES_AND_DASHES_RE.sub("", phone),
        f"+{without_plus}" if without_plus else "",
        without_plus,
    ]

    # TODO: replace with a country-code table if compounds outside Egypt onboard
    if without_plus.startswith(EGYPT_COUNTRY_CODE) and not normalized.startswith(
        "00"
    ):
        local = without_plus[len(EGYPT_COUNTRY_CODE) :]
        candidates.append(f"0{local}")
    elif normalized.startswith("0") and not normalized.startswith("00"):
        national = normalized[1:]
        candidates.append(f"+{EGYPT_COUNTRY_CODE}{national}")
        candidates.append(f"{EGYPT_COUNTRY_CODE}{national}")

    return list(dict.fromkeys(c for c in candidates if c))


def same_phone(a: str | None, b: str | None) -> bool:
    """Whether two phones name the same line, across stored variants."""
    if not a or not b:
        return False
    key = phone_key(a)
    if key and key in {phone_key(v) for v in phone_variants(b)}:
        return True
    suffix = phone_suffix(a)
    return len(suffix) == SUFFIX_DIGITS and suffix == phone_suffix(b)


def to_e164(phone: str) -> str:
    """Best-effort E.164 form expected by the phone verification provider."""
    normalized = normalize_phone(phone)
    if normalized.startswith("+"):
        return normalized
    if normalized.startswith("00"):
        return f"+{normalized[2:]}"
    if normalized.startswith("0"):
        return f"+{EGYPT_COUNTRY_CODE}{normalized[1:]}"
    return f"+{normalized}"


def mask_phone(phone: str | None) -> str:
    """Log-safe rendering that keeps only the last four digits."""
    digits = phone_key(phone) or ""
    if len(digits) <= 4:
        return "***"
    return f"***{digits[-4:]}"
