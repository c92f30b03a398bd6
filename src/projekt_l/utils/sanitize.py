"""Input sanitization helpers used by request schemas."""

import re
from html import escape
from html.parser import HTMLParser
from typing import List, Optional

ALLOWED_TAGS = {"b", "i", "em", "strong", "a", "br"}
ALLOWED_URL_SCHEMES = ("http://", "https://", "mailto:")

_UNSAFE_PATTERNS = [
    re.compile(r"<\s*script", re.IGNORECASE),
    re.compile(r"javascript\s*:", re.IGNORECASE),
    re.compile(r"\bon\w+\s*=", re.IGNORECASE),
]


class _TagStripper(HTMLParser):
    """Collects text content and drops every tag."""

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.parts: List[str] = []
        self._skip_depth = 0

    def handle_starttag(self, tag, attrs):
        if tag in ("script", "style"):
            self._skip_depth += 1

    def handle_endtag(self, tag):
        if tag in ("script", "style") and self._skip_depth:
            self._skip_depth -= 1

    def handle_data(self, data):
        if not self._skip_depth:
            self.parts.append(data)


class _HtmlWhitelist(HTMLParser):
    """Re-emits only whitelisted tags; text is escaped."""

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.parts: List[str] = []
        self._open: List[str] = []
        self._skip_depth = 0

    def handle_starttag(self, tag, attrs):
        if tag in ("script", "style"):
            self._skip_depth += 1
            return
        if self._skip_depth or tag not in ALLOWED_TAGS:
            return
        if tag == "br":
            self.parts.append("<br>")
            return
        if tag == "a":
            href = _safe_href(dict(attrs).get("href"))
            self.parts.append(f'<a href="{escape(href)}">' if href else "<a>")
        else:
            self.parts.append(f"<{tag}>")
        self._open.append(tag)

    def handle_startendtag(self, tag, attrs):
        if tag == "br" and not self._skip_depth:
            self.parts.append("<br>")

    def handle_endtag(self, tag):
        if tag in ("script", "style"):
            if self._skip_depth:
                self._skip_depth -= 1
            return
        if self._skip_depth or tag not in self._open or tag == "br":
            return
        # Close anything left open inside this tag
        while self._open:
            open_tag = self._open.pop()
            self.parts.append(f"</{open_tag}>")
            if open_tag == tag:
                break

    def handle_data(self, data):
        if not self._skip_depth:
            self.parts.append(escape(data, quote=False))

    def close(self):
        super().close()
        while self._open:
            self.parts.append(f"</{self._open.pop()}>")


def _safe_href(href: Optional[str]) -> Optional[str]:
    if not href:
        return None
    href = href.strip()
    if href.lower().startswith(ALLOWED_URL_SCHEMES):
        return href
    return None


def sanitize_text(value: str) -> str:
    """Strip every HTML tag and return plain text."""
    parser = _TagStripper()
    parser.feed(value)
    parser.close()
    return "".join(parser.parts).strip()


def sanitize_html(value: str) -> str:
    """Keep b, i, em, strong, br and a(href) tags; drop everything else."""
    parser = _HtmlWhitelist()
    parser.feed(value)
    parser.close()
    return "".join(parser.parts).strip()


def is_safe_input(value: str) -> bool:
    """Reject script tags, javascript: URLs and inline event handlers."""
    return not any(pattern.search(value) for pattern in _UNSAFE_PATTERNS)


def contains_angle_brackets(value: str) -> bool:
    return "<" in value or ">" in value
