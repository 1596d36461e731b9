"""Shared text processing utilities.

HTML clean-up for story bodies (PRX descriptions often arrive with Word
markup pasted in) and file name helpers for media URLs.
"""

import html
import os
import re
import unicodedata
from html.parser import HTMLParser
from typing import List, Optional
from urllib.parse import unquote, urlparse

ALLOWED_TAGS = frozenset({
    'a', 'p', 'strong', 'em', 'ul', 'ol', 'li', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6',
})
ALLOWED_ATTRS = {
    'a': ('href', 'title', 'target', 'rel'),
}
# Elements whose text is never content (scripts, Word's <xml> blocks, ...)
DROP_CONTENT_TAGS = frozenset({'script', 'style', 'head', 'title', 'xml', 'template', 'noscript'})


class _AllowListSanitizer(HTMLParser):
    """Re-emit only allow-listed tags; every other tag is stripped, not escaped."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=False)
        self.out: List[str] = []
        self.skip_stack: List[str] = []

    def handle_starttag(self, tag, attrs):
        """Emit allow-listed start tags with their allow-listed attributes."""
        if tag in DROP_CONTENT_TAGS:
            self.skip_stack.append(tag)
            return
        if self.skip_stack or tag not in ALLOWED_TAGS:
            return
        keep = ALLOWED_ATTRS.get(tag, ())
        attr_str = ''.join(
            f' {k}="{html.escape(v or "", quote=True)}"' for k, v in attrs if k in keep
        )
        self.out.append(f'<{tag}{attr_str}>')

    def handle_endtag(self, tag):
        if self.skip_stack:
            if tag == self.skip_stack[-1]:
                self.skip_stack.pop()
            return
        if tag in ALLOWED_TAGS:
            self.out.append(f'</{tag}>')

    def handle_data(self, data):
        """Emit text as given (like the no-markup path); only a stray ``<`` is escaped."""
        if not self.skip_stack:
            self.out.append(data.replace('<', '&lt;'))

    def handle_entityref(self, name):
        """Preserve entity references such as &nbsp;."""
        if not self.skip_stack:
            self.out.append(f'&{name};')

    def handle_charref(self, name):
        """Preserve numeric character references such as &#8217;."""
        if not self.skip_stack:
            self.out.append(f'&#{name};')

    # Comments (including Word's <!--[if gte mso 9]> blocks), doctypes and
    # processing instructions fall through HTMLParser's no-op handlers.


def sanitize_html(text: Optional[str]) -> str:
    """Reduce story HTML to the allow-listed tags.

    Disallowed markup is stripped (its text kept), except for elements like
    ``<script>`` and ``<style>`` whose contents are dropped entirely.

    Examples:
        >>> sanitize_html("<p>Hi</p><script>bad()</script>")
        '<p>Hi</p>'
        >>> sanitize_html('<div class="x"><strong>Bold</strong></div>')
        '<strong>Bold</strong>'
    """
    if not text:
        return ''
    if '<' not in text:
        return text

    parser = _AllowListSanitizer()
    parser.feed(text)
    parser.close()
    return ''.join(parser.out)


def strip_all_tags(text: Optional[str]) -> str:
    """Remove every tag and unescape entities (used for log previews)."""
    if not text:
        return ''
    text = re.sub(r"<[^>]+>", "", text)
    return html.unescape(text).strip()


def truncate(text: Optional[str], limit: int = 100) -> str:
    """Shorten *text* to *limit* characters, appending an ellipsis when cut."""
    text = text or ''
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + '...'


def filename_from_url(url: Optional[str]) -> str:
    """Return the last path segment of *url* (query and fragment ignored)."""
    if not url:
        return ''
    path = urlparse(url).path or ''
    return os.path.basename(unquote(path))


def normalize_filename(name: Optional[str]) -> str:
    """Normalize a file name for dedup comparisons.

    Lowercases, strips accents, and collapses whitespace to hyphens so
    ``My Clip.MP3`` and ``my-clip.mp3`` compare equal.
    """
    if not name:
        return ''
    nfkd = unicodedata.normalize('NFKD', name)
    ascii_name = ''.join(c for c in nfkd if not unicodedata.combining(c))
    ascii_name = re.sub(r"\s+", "-", ascii_name.strip())
    return ascii_name.lower()


__all__ = [
    'ALLOWED_TAGS',
    'sanitize_html',
    'strip_all_tags',
    'truncate',
    'filename_from_url',
    'normalize_filename',
]
