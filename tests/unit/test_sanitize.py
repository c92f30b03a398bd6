"""Unit tests for input sanitization helpers."""

import pytest

from projekt_l.utils.sanitize import contains_angle_brackets, is_safe_input, sanitize_html, sanitize_text


@pytest.mark.unit
class TestSanitize:
    def test_sanitize_text_strips_tags_and_scripts(self):
        assert sanitize_text("<p>Hallo <b>Welt</b></p><script>alert(1)</script>") == "Hallo Welt"

    def test_sanitize_html_keeps_whitelist(self):
        assert sanitize_html("<b>fett</b> <u>weg</u>") == "<b>fett</b> weg"

    def test_sanitize_html_drops_unsafe_links(self):
        assert sanitize_html('<a href="javascript:alert(1)">x</a>') == "<a>x</a>"
        assert sanitize_html('<a href="https://example.com" onclick="x()">x</a>') == (
            '<a href="https://example.com">x</a>'
        )

    def test_sanitize_html_closes_open_tags(self):
        assert sanitize_html("<em>offen") == "<em>offen</em>"

    def test_sanitize_html_escapes_text(self):
        assert sanitize_html("1 &lt; 2") == "1 &lt; 2"

    @pytest.mark.parametrize(
        "value,safe",
        [
            ("Ganz normaler Text", True),
            ("<script>alert(1)</script>", False),
            ("JavaScript:void(0)", False),
            ('<img src=x onerror="x">', False),
        ],
    )
    def test_is_safe_input(self, value, safe):
        assert is_safe_input(value) is safe

    def test_contains_angle_brackets(self):
        assert contains_angle_brackets("a < b") is True
        assert contains_angle_brackets("a b") is False
