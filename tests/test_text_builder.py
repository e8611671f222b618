"""Normalization, suggested ids and resource file parsing."""

import pytest

from locscan.core.models import NO_TEXT_DETECTED, ResourceEntry, TextBlock, extracted_texts
from locscan.core.text_builder import (
    ResourceFormatError,
    detect_resource_format,
    generate_suggested_id,
    load_resource_map,
    normalize_text,
    parse_json_resources,
    parse_resources,
    parse_xml_resources,
    resource_entries,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Welcome to our application", "welcome to our application"),
        ("  Forgot   your\npassword? ", "forgot your password"),
        ("Hello %1$s, you have %2$d new", "hello placeholder you have placeholder new"),
        ("Sign\tin", "sign in"),
        ("!!!", ""),
    ],
)
def test_normalize_text(raw, expected):
    assert normalize_text(raw) == expected


@pytest.mark.parametrize(
    "raw",
    ["Privacy Policy!", "  Line one\nline TWO  ", "%1$s of %2$d", "Café – 50% off", ""],
)
def test_normalize_is_idempotent(raw):
    once = normalize_text(raw)
    assert normalize_text(once) == once


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Privacy Policy!", "privacy_policy"),
        ("Forgot your password?", "forgot_your_password"),
        ("Terms of Service", "terms_of_service"),
        ("This is a very long sentence that keeps going", "this_is_a_very_long_sentence_t"),
    ],
)
def test_generate_suggested_id(raw, expected):
    assert generate_suggested_id(raw) == expected
    assert generate_suggested_id(raw) == generate_suggested_id(raw)


def test_suggested_id_length_is_capped():
    assert len(generate_suggested_id("word " * 40)) == 30


class TestResourceParsing:
    XML = """<?xml version="1.0" encoding="utf-8"?>
<resources>
    <string name="welcome_message">Welcome to
        our application</string>
    <string name="empty"></string>
    <string name="tap_here">Tap <b>here</b></string>
    <string name="welcome_message">Duplicate</string>
</resources>
"""

    def test_detect_format(self):
        assert detect_resource_format(self.XML) == "xml"
        assert detect_resource_format('  {"a": "b"}') == "json"
        assert detect_resource_format("a=b") is None

    def test_parse_xml(self):
        assert parse_xml_resources(self.XML) == {
            "welcome_message": "Welcome to our application",
            "tap_here": "Tap here",
        }

    def test_parse_json_flattens_nested_objects(self):
        content = '{"title": "  Settings ", "menu": {"file": "File", "count": 3}, "n": 3, "blank": ""}'

        assert parse_json_resources(content) == {"title": "Settings", "menu.file": "File"}

    def test_unsupported_format(self):
        with pytest.raises(ResourceFormatError):
            parse_resources("welcome_message=Welcome")

    def test_broken_xml(self):
        with pytest.raises(ResourceFormatError):
            parse_resources("<resources><string name='a'>x</resources>")

    def test_broken_json(self):
        with pytest.raises(ResourceFormatError):
            parse_resources('{"a": ')

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "strings.xml"
        path.write_text(self.XML, encoding="utf-8")

        mapping = load_resource_map(path)

        assert mapping["welcome_message"] == "Welcome to our application"
        assert resource_entries(mapping)[0] == ResourceEntry("welcome_message", "Welcome to our application")


def test_extracted_texts_adapter():
    items = [
        "  Privacy Policy ",
        {"text": "Terms of Service", "confidence": "0.94"},
        TextBlock("Sign in\nto continue", "88.00"),
        "",
        TextBlock(NO_TEXT_DETECTED, "0.0"),
        5,
        "Privacy Policy",
    ]

    assert extracted_texts(items) == ["Privacy Policy", "Terms of Service", "Sign in\nto continue", "Privacy Policy"]
    assert extracted_texts(items, dedupe=True) == ["Privacy Policy", "Terms of Service", "Sign in\nto continue"]
