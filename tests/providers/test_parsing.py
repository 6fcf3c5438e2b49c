"""Tests for JSON payload extraction from provider responses."""

import pytest

from inkpress.common.errors import ProviderParseError
from inkpress.providers.parsing import extract_json_payload


class TestExtractJsonPayload:
    def test_plain_object(self):
        assert extract_json_payload('{"title": "T", "sections": []}') == {
            "title": "T",
            "sections": [],
        }

    def test_fenced_block(self):
        text = 'Here is the outline:\n```json\n{"title": "Fenced"}\n```\nEnjoy!'
        assert extract_json_payload(text) == {"title": "Fenced"}

    def test_object_wrapped_in_prose(self):
        text = 'Sure! {"title": "Inline", "n": 2} Hope this helps.'
        assert extract_json_payload(text) == {"title": "Inline", "n": 2}

    def test_array_payload(self):
        assert extract_json_payload('Result: [{"a": 1}, {"a": 2}]') == [{"a": 1}, {"a": 2}]

    def test_braces_inside_strings_are_ignored(self):
        text = 'prefix {"heading": "Use {curly} braces", "note": "a \\"quoted\\" }"} suffix'
        payload = extract_json_payload(text)
        assert payload["heading"] == "Use {curly} braces"
        assert payload["note"] == 'a "quoted" }'

    def test_first_well_formed_payload_wins(self):
        text = '{broken json} then {"ok": true}'
        assert extract_json_payload(text) == {"ok": True}

    def test_bare_scalar_is_not_a_payload(self):
        with pytest.raises(ProviderParseError):
            extract_json_payload("42")

    def test_empty_response_raises(self):
        with pytest.raises(ProviderParseError) as exc_info:
            extract_json_payload("   ", stage="outline")
        assert exc_info.value.stage == "outline"

    def test_no_payload_keeps_raw_text(self):
        with pytest.raises(ProviderParseError) as exc_info:
            extract_json_payload("I cannot help with that.", stage="outline")
        assert exc_info.value.raw_text == "I cannot help with that."
