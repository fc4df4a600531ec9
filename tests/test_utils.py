# FILE: tests/test_utils.py
"""
Tests for fault-tolerant JSON loading and AI response extraction.
"""

import logging

import pytest

from archdoc.errors import MalformedPayloadError
from archdoc.utils import Utils


@pytest.fixture
def utils():
    return Utils()


# =============================================================================
# JSON loading
# =============================================================================

class TestFaultTolerantJson:
    """commentjson -> yaml -> json_repair."""

    def test_plain_json(self, utils):
        assert utils.load_fault_tolerant_json('{"a": [1, 2]}') == {"a": [1, 2]}

    def test_fenced_json(self, utils):
        assert utils.load_fault_tolerant_json('```json\n{"section": "modules"}\n```') == {"section": "modules"}

    def test_comments(self, utils):
        text = '{\n  "name": "Auth", // the auth module\n  "status": "planned"\n}'
        assert utils.load_fault_tolerant_json(text) == {"name": "Auth", "status": "planned"}

    def test_trailing_commas(self, utils):
        assert utils.load_fault_tolerant_json('{"a": [1, 2,],}') == {"a": [1, 2]}

    def test_empty_containers_are_valid(self, utils):
        assert utils.load_fault_tolerant_json("[]") == []
        assert utils.load_fault_tolerant_json("{}") == {}

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_empty_input(self, utils, text):
        with pytest.raises(MalformedPayloadError):
            utils.load_fault_tolerant_json(text)

    def test_unparseable_text_is_logged(self, utils, caplog):
        with caplog.at_level(logging.WARNING, logger="archdoc"):
            with pytest.raises(MalformedPayloadError):
                utils.load_fault_tolerant_json("not json at all")
        assert any("[JSON] parsing failed" in record.getMessage() for record in caplog.records)

    def test_fences_are_stripped(self, utils):
        assert utils.clean_triple_backticks("```python\nx = 1\n```") == "x = 1\n"
        assert utils._coerce_field_to_str({"a": 1}) == '{\n  "a": 1\n}'
        assert utils._coerce_field_to_str("  padded ") == "padded"


# =============================================================================
# AI response extraction
# =============================================================================

UPDATE_TEXT = (
    "I added the billing module.\n"
    "```json\n"
    '{"section": "modules", "data": [{"name": "Billing"}]}\n'
    "```\n"
    "[CANVAS:architecture:update]"
)

CREATE_TEXT = (
    "Here is the proposed architecture.\n"
    "```json\n"
    '{"tech_stack": {"frontend": ["React"]}, "modules": [{"name": "Core"}]}\n'
    "```"
)


class TestExtraction:
    """Marker and fenced block handling."""

    def test_marker(self, utils):
        marker, clean = utils.extract_marker(UPDATE_TEXT)
        assert marker == ("architecture", "update")
        assert "[CANVAS" not in clean
        assert clean.startswith("I added the billing module.")

    def test_no_marker(self, utils):
        assert utils.extract_marker("just text") == (None, "just text")

    def test_json_block(self, utils):
        assert utils.extract_json_block(UPDATE_TEXT) == '{"section": "modules", "data": [{"name": "Billing"}]}'
        assert utils.extract_json_block("no block here") is None

    def test_classify(self, utils):
        assert utils.classify_ai_response(UPDATE_TEXT) == "update"
        assert utils.classify_ai_response(CREATE_TEXT) == "create"
        assert utils.classify_ai_response("What database do you prefer?") is None

    def test_section_block_without_marker_is_update(self, utils):
        text = '```json\n{"section": "endpoints", "data": [{"path": "/x"}]}\n```'
        assert utils.classify_ai_response(text) == "update"

    def test_create_marker(self, utils):
        assert utils.classify_ai_response("Done. [CANVAS:architecture:create]") == "create"
