"""Tests for compoundgate/user/phone.py - Phone normalization helpers."""

import pytest
from hypothesis import given
from hypothesis import settings as hypothesis_settings
from hypothesis import strategies as st

from compoundgate.user.phone import (
    mask_phone,
    normalize_phone,
    phone_key,
    phone_suffix,
    phone_variants,
    same_phone,
    to_e164,
)

national_numbers = st.from_regex(r"\A[1-9][0-9]{9}\Z")


class TestNormalizePhone:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("+20 100 123 4567", "+201001234567"),
            ("0100-123-4567", "01001234567"),
            ("(555) 123.4567", "5551234567"),
            ("", ""),
            (None, ""),
        ],
    )
    def test_strips_punctuation(self, raw, expected):
        assert normalize_phone(raw) == expected

    def test_phone_key_drops_plus(self):
        assert phone_key("+20 100 123 4567") == "201001234567"

    def test_phone_key_empty_is_none(self):
        """Users without a phone never collide on the unique key."""
        assert phone_key(None) is None
        assert phone_key(" - ") is None

    def test_suffix_keeps_last_ten_digits(self):
        assert phone_suffix("+1 (555) 123-4567") == "5551234567"
        assert phone_suffix("12345") == "12345"


class TestPhoneVariants:
    def test_egyptian_international_includes_local_form(self):
        variants = phone_variants("+201001234567")

        assert variants[0] == "+201001234567"
        assert "201001234567" in variants
        assert "01001234567" in variants

    def test_egyptian_local_includes_international_forms(self):
        variants = phone_variants("0100 123 4567")

        assert variants[0] == "0100 123 4567"
        assert "01001234567" in variants
        assert "+201001234567" in variants
        assert "201001234567" in variants

    def test_no_duplicates_or_empties(self):
        variants = phone_variants("+201001234567")

        assert len(variants) == len(set(variants))
        assert "" not in variants

    def test_empty_input(self):
        assert phone_variants("") == []
        assert phone_variants(None) == []

    def test_double_zero_prefix_is_not_treated_as_local(self):
        variants = phone_variants("00201001234567")

        assert "+200201001234567" not in variants
        assert "01001234567" not in variants

    @hypothesis_settings(max_examples=50)
    @given(national=national_numbers)
    def test_local_and_international_share_a_key(self, national):
        """Property: 0XXXXXXXXXX and +20XXXXXXXXXX reach each other's stored key."""
        local = f"0{national}"
        international = f"+20{national}"

        local_keys = {phone_key(v) for v in phone_variants(local)}
        international_keys = {phone_key(v) for v in phone_variants(international)}

        assert phone_key(international) in local_keys
        assert phone_key(local) in international_keys


class TestSamePhone:
    @pytest.mark.parametrize(
        ("stored", "claimed"),
        [
            ("01001234567", "+201001234567"),
            ("+20 100 123 4567", "+201001234567"),
            ("201001234567", "0100-123-4567"),
        ],
    )
    def test_variants_of_one_line(self, stored, claimed):
        assert same_phone(stored, claimed) is True

    @pytest.mark.parametrize(
        ("stored", "claimed"),
        [
            ("+201001234567", "+15559990000"),
            ("+201001234567", None),
            (None, "+201001234567"),
            ("4567", "+201001234567"),
        ],
    )
    def test_different_or_missing(self, stored, claimed):
        assert same_phone(stored, claimed) is False


class TestToE164:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("+20 100 123 4567", "+201001234567"),
            ("01001234567", "+201001234567"),
            ("00201001234567", "+201001234567"),
            ("201001234567", "+201001234567"),
        ],
    )
    def test_formats(self, raw, expected):
        assert to_e164(raw) == expected


class TestMaskPhone:
    def test_keeps_last_four_digits(self):
        assert mask_phone("+201001234567") == "***4567"

    def test_short_or_missing(self):
        assert mask_phone("123") == "***"
        assert mask_phone(None) == "***"
