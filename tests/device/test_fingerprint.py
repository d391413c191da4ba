"""Tests for compoundgate/device/fingerprint.py - Browser-compatible fingerprints."""

from dataclasses import replace

import pytest

from compoundgate.device.fingerprint import (
    DeviceInfo,
    _rolling_hash,
    _to_base36,
    fingerprint_source,
    generate_device_fingerprint,
    is_same_device,
)

DEVICE = DeviceInfo(
    user_agent="Mozilla/5.0 (iPhone; CPU iPhone OS 17_4 like Mac OS X)",
    screen_resolution="390x844",
    timezone="Africa/Cairo",
    language="ar-EG",
    platform="iPhone",
    cookie_enabled=True,
    do_not_track=None,
    color_depth=24,
    pixel_ratio=3.0,
)


class TestRollingHash:
    """Values must match ``String.prototype`` based hashing in browsers."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [("", 0), ("a", 97), ("ab", 3105)],
    )
    def test_known_values(self, text, expected):
        assert _rolling_hash(text) == expected

    def test_wraps_to_signed_32_bits(self):
        assert _rolling_hash("polygenelubricants") == -(2**31)

    def test_hashes_utf16_code_units(self):
        """Characters outside the BMP contribute both surrogate halves."""
        assert _rolling_hash("\U0001f600") == 0xD83D * 31 + 0xDE00


class TestToBase36:
    def test_zero(self):
        assert _to_base36(0) == "0"

    def test_values(self):
        assert _to_base36(97) == "2p"
        assert _to_base36(2**31) == "zik0zk"


class TestFingerprintSource:
    def test_joins_signals_in_order(self):
        assert fingerprint_source(DEVICE) == (
            "Mozilla/5.0 (iPhone; CPU iPhone OS 17_4 like Mac OS X)"
            "|390x844|Africa/Cairo|ar-EG|iPhone|true|24|3"
        )

    def test_fractional_pixel_ratio(self):
        source = fingerprint_source(replace(DEVICE, pixel_ratio=1.5, cookie_enabled=False))

        assert source.endswith("|false|24|1.5")


class TestGenerateDeviceFingerprint:
    def test_is_lowercase_base36(self):
        fingerprint = generate_device_fingerprint(DEVICE)

        assert fingerprint
        assert set(fingerprint) <= set("0123456789abcdefghijklmnopqrstuvwxyz")

    def test_do_not_track_is_ignored(self):
        assert generate_device_fingerprint(
            replace(DEVICE, do_not_track="1")
        ) == generate_device_fingerprint(DEVICE)

    def test_signal_change_changes_fingerprint(self):
        assert generate_device_fingerprint(
            replace(DEVICE, screen_resolution="1170x2532")
        ) != generate_device_fingerprint(DEVICE)

    def test_is_same_device(self):
        fingerprint = generate_device_fingerprint(DEVICE)

        assert is_same_device(fingerprint, generate_device_fingerprint(DEVICE))
        assert not is_same_device(fingerprint, "other")
