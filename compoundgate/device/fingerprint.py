"""Device fingerprinting.

A low-entropy identifier derived from browser environment signals. It is not
a security credential: a browser update changes it and the owner simply falls
back to OTP. The hash must stay bit-for-bit identical to the one browser
clients compute, so fingerprints stored by either side keep matching.
"""

from dataclasses import dataclass

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
_SEPARATOR = "|"


@dataclass(frozen=True)
class DeviceInfo:
    """Environment signals collected by the client."""

    user_agent: str
    screen_resolution: str
    timezone: str
    language: str
    platform: str
    cookie_enabled: bool
    do_not_track: str | None
    color_depth: int
    pixel_ratio: float


def _js_string(value: bool | int | float) -> str:
    """Render a value the way ``Value.prototype.toString`` would."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def _rolling_hash(text: str) -> int:
    """``h = h * 31 + c`` over UTF-16 code units, wrapped to signed 32 bits."""
    encoded = text.encode("utf-16-le")
    h = 0
    for i in range(0, len(encoded), 2):
        code_unit = encoded[i] | (encoded[i + 1] << 8)
        h = (h * 31 + code_unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


def fingerprint_source(info: DeviceInfo) -> str:
    """The ``|``-joined string that gets hashed. ``do_not_track`` is excluded."""
    return _SEPARATOR.join(
        [
            info.user_agent,
            info.screen_resolution,
            info.timezone,
            info.language,
            info.platform,
            _js_string(info.cookie_enabled),
            _js_string(info.color_depth),
            _js_string(info.pixel_ratio),
        ]
    )


def generate_device_fingerprint(info: DeviceInfo) -> str:
    return _to_base36(abs(_rolling_hash(fingerprint_source(info))))


def is_same_device(stored_fingerprint: str, current_fingerprint: str) -> bool:
    return stored_fingerprint == current_fingerprint
