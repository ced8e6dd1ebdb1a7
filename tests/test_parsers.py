"""Tests for the shared normalizers."""

import pytest

from implantparts_mcp.parsers import (
    approx_equal,
    classify_rotation_protection,
    clean_text,
    normalize_platform,
    rotation_protection_matches,
    to_number,
)


class TestToNumber:
    """Tests for to_number function."""

    @pytest.mark.parametrize("input_val,expected", [
        ("4,1 mm", 4.1),
        ("4.1", 4.1),
        ("Ø 5,0 mm", 5.0),
        ("12", 12.0),
        ("15°", 15.0),
        ("4.1.2", 4.1),
        (".5", 0.5),
        ("5.", 5.0),
        (4.1, 4.1),
        (15, 15.0),
        (0, 0.0),
    ])
    def test_parses(self, input_val, expected):
        assert to_number(input_val) == pytest.approx(expected)

    @pytest.mark.parametrize("input_val", [
        None, "", "abc", ".", "mm", True, False, float("nan"), float("inf"),
    ])
    def test_not_a_number(self, input_val):
        """Unparseable input returns None instead of raising."""
        assert to_number(input_val) is None

    @pytest.mark.parametrize("input_val", [-15, -15.0, "-15", "-15°"])
    def test_sign_dropped_for_strings_and_numbers(self, input_val):
        assert to_number(input_val) == 15.0


class TestApproxEqual:
    """Tests for the 0.11 mm tolerance relation."""

    @pytest.mark.parametrize("a,b", [
        (4.1, "4,1"),
        (4.0, 4.1),
        ("5,0 mm", 5.05),
        (3.75, 3.8),
    ])
    def test_equal_within_tolerance(self, a, b):
        assert approx_equal(a, b)

    @pytest.mark.parametrize("a,b", [
        (4.0, 4.12),
        (3.5, 3.75),
        (None, 4.1),
        ("", 4.1),
        ("abc", "abc"),
    ])
    def test_not_equal(self, a, b):
        assert not approx_equal(a, b)

    @pytest.mark.parametrize("a,b", [
        (4.1, 4.0), (4.0, 4.12), ("3,75", 3.7), (None, 1), (5, "5,1 mm"), (4.2, 4.31),
    ])
    def test_symmetric(self, a, b):
        assert approx_equal(a, b) == approx_equal(b, a)

    def test_negative_number_matches_its_string(self):
        assert approx_equal(-15, "-15")
        assert approx_equal("-15", -15.0)

    def test_custom_epsilon(self):
        assert approx_equal(4.0, 4.4, epsilon=0.5)
        assert not approx_equal(4.0, 4.1, epsilon=0.05)


class TestNormalizePlatform:
    """Tests for normalize_platform function."""

    @pytest.mark.parametrize("input_val,expected", [
        ("6", "P06"),
        ("06", "P06"),
        ("p6", "P06"),
        (" P 07 ", "P07"),
        ("P12", "P12"),
        (7, "P07"),
        ("P123", "P123"),
        ("nobel active", "NOBELACTIVE"),
    ])
    def test_normalize(self, input_val, expected):
        assert normalize_platform(input_val) == expected

    @pytest.mark.parametrize("input_val", [None, "", "   "])
    def test_empty_returns_none(self, input_val):
        assert normalize_platform(input_val) is None


class TestClassifyRotationProtection:
    """Tests for the bilingual with/without detector."""

    @pytest.mark.parametrize("text", [
        "mit", "Mit Rotationsschutz", "with", "ja", "YES", "rotation", "R-Schutz", "rschutz",
    ])
    def test_with(self, text):
        assert classify_rotation_protection(text) == "with"

    @pytest.mark.parametrize("text", ["ohne", "without", "nein", "No", "ohne Rotationsschutz"])
    def test_without(self, text):
        assert classify_rotation_protection(text) == "without"

    @pytest.mark.parametrize("text", [None, "", "vielleicht", "notch", "rotationsfrei"])
    def test_unknown_is_empty(self, text):
        """Unrecognized text gives no opinion."""
        assert classify_rotation_protection(text) == ""


class TestRotationProtectionMatches:
    """Record-side matching of rotationsschutz text."""

    def test_no_wanted_value_matches_everything(self):
        assert rotation_protection_matches(None, "")
        assert rotation_protection_matches("ohne", "")

    @pytest.mark.parametrize("field", ["mit Rotationsschutz", "ja", "R-Schutz", "with rotation"])
    def test_with(self, field):
        assert rotation_protection_matches(field, "with")
        assert not rotation_protection_matches(field, "without")

    @pytest.mark.parametrize("field", ["ohne Rotationsschutz", "ohne R-Schutz", "nein"])
    def test_negation_wins_on_record(self, field):
        assert rotation_protection_matches(field, "without")
        assert not rotation_protection_matches(field, "with")

    def test_empty_field_matches_neither(self):
        assert not rotation_protection_matches("", "with")
        assert not rotation_protection_matches(None, "without")


def test_clean_text():
    assert clean_text(None) == ""
    assert clean_text("  Abutment ") == "Abutment"
    assert clean_text(4.1) == "4.1"
