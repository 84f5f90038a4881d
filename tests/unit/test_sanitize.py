"""Unit tests for customer text sanitisation."""

import pytest
from libs.common.sanitize import MAX_REFERENCE_LENGTH, sanitize_reference, strip_html


@pytest.mark.unit
def test_script_block_is_removed():
    assert strip_html("<script>alert(1)</script>Hoodie") == "Hoodie"


@pytest.mark.unit
def test_event_handler_and_tags_are_removed():
    cleaned = strip_html('<img src=x onerror="alert(1)">Cap')
    assert cleaned == "Cap"


@pytest.mark.unit
def test_javascript_url_is_neutralised():
    assert "javascript" not in strip_html('<a href="javascript:alert(1)">x</a>').lower()


@pytest.mark.unit
def test_no_angle_brackets_survive():
    cleaned = strip_html("1 < 2 and 3 > 2 <b")
    assert "<" not in cleaned
    assert ">" not in cleaned


@pytest.mark.unit
def test_plain_text_is_unchanged():
    assert strip_html("12 Long Street, Cape Town") == "12 Long Street, Cape Town"


@pytest.mark.unit
def test_whitespace_is_collapsed():
    assert strip_html("  Thandi \n  Mokoena ") == "Thandi Mokoena"


@pytest.mark.unit
def test_reference_keeps_allowed_characters():
    assert sanitize_reference("T_abc-123.x=") == "T_abc-123.x="


@pytest.mark.unit
def test_reference_strips_path_and_query_characters():
    assert sanitize_reference("abc/../x?y=1&z") == "abc..xy=1z"


@pytest.mark.unit
def test_reference_is_length_bounded():
    assert len(sanitize_reference("a" * 500)) == MAX_REFERENCE_LENGTH
