"""Input sanitisation for customer-supplied text.

Checkout metadata is echoed back by Paystack and later rendered in admin
views and order emails, so every string is reduced to plain text before it
is forwarded or stored.

Usage:
    from libs.common.sanitize import strip_html

    strip_html("<script>alert(1)</script>Hoodie")  # "Hoodie"
"""

import re
_SCRIPT_BLOCK = re.compile(r"<\s*script\b[^>]*>.*?<\s*/\s*script\s*>", re.I | re.S)
_STYLE_BLOCK = re.compile(r"<\s*style\b[^>]*>.*?<\s*/\s*style\s*>", re.I | re.S)
_EVENT_HANDLER = re.compile(
    r"\bon[a-z]+\s*=\s*(\"[^\"]*\"|'[^']*'|[^\s>]+)", re.I
)
_JS_URL = re.compile(r"javascript\s*:", re.I)
_TAG = re.compile(r"<[^>]*>")
_WHITESPACE = re.compile(r"\s+")

# Paystack references are alphanumeric with a few separators.
_REFERENCE_DISALLOWED = re.compile(r"[^A-Za-z0-9_.=\-]")
MAX_REFERENCE_LENGTH = 100


def strip_html(value: str) -> str:
    """
    Remove script/style blocks, inline event handlers and any remaining tags.

    Angle brackets never survive: anything left after tag removal is dropped
    too, so the result is safe to interpolate into HTML.
    """
    cleaned = _SCRIPT_BLOCK.sub("", value)
    cleaned = _STYLE_BLOCK.sub("", cleaned)
    cleaned = _EVENT_HANDLER.sub("", cleaned)
    cleaned = _JS_URL.sub("", cleaned)
    cleaned = _TAG.sub("", cleaned)
    cleaned = cleaned.replace("<", "").replace(">", "")
    return _WHITESPACE.sub(" ", cleaned).strip()


def sanitize_reference(reference: str) -> str:
    """Keep only characters that may safely appear in a gateway URL path."""
    return _REFERENCE_DISALLOWED.sub("", reference.strip())[:MAX_REFERENCE_LENGTH]
