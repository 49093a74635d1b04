import html
import re

_SCRIPT_STYLE_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")
_BLANK_LINES_RE = re.compile(r"\n\s*\n+")
_SPACES_RE = re.compile(r"[ \t\r\f\v]+")


def strip_html(text: str | None) -> str:
    """Remove HTML markup from a text and decode entities.

    Script and style blocks are dropped with their content, every other tag is
    removed, runs of blank lines collapse into one and the result is trimmed.

    Args:
        text (str | None): Text that may contain HTML.

    Returns:
        str: The plain text.
    """
    if not text:
        return ""
    text = _SCRIPT_STYLE_RE.sub("", text)
    text = _TAG_RE.sub("", text)
    text = html.unescape(text)
    text = "\n".join(_SPACES_RE.sub(" ", line).strip() for line in text.splitlines())
    return _BLANK_LINES_RE.sub("\n\n", text).strip()
