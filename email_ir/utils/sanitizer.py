"""
Email IR Body Sanitizer

Strips token-heavy content that carries no classification signal
(embedded images, base64 blobs, styles, scripts, comments, tracking
pixels) before an email body is sent to the inference provider.
"""

import html
import re
from typing import Optional

# Ordered (pattern, replacement) pipeline
BASE64_IMAGE_PATTERN = re.compile(r'data:image/[^;]+;base64,[A-Za-z0-9+/=]+', re.IGNORECASE)
BASE64_BLOB_PATTERN = re.compile(r'base64,[A-Za-z0-9+/=]{100,}', re.IGNORECASE)
STYLE_BLOCK_PATTERN = re.compile(r'<style[^>]*>.*?</style>', re.IGNORECASE | re.DOTALL)
INLINE_STYLE_PATTERN = re.compile(r'\sstyle\s*=\s*(?:"[^"]*"|\'[^\']*\')', re.IGNORECASE)
COMMENT_PATTERN = re.compile(r'<!--.*?-->', re.DOTALL)
SCRIPT_PATTERN = re.compile(r'<script[^>]*>.*?</script>', re.IGNORECASE | re.DOTALL)
TRACKING_PIXEL_PATTERN = re.compile(
    r'<img[^>]*(?:width|height)\s*=\s*["\']?1["\']?(?![0-9])[^>]*>',
    re.IGNORECASE
)
EMPTY_TAG_PATTERN = re.compile(r'<(\w+)[^>]*>\s*</\1>', re.IGNORECASE)
WHITESPACE_PATTERN = re.compile(r'\s+')
INLINE_WHITESPACE_PATTERN = re.compile(r'[^\S\n]+')

BLOCK_END_PATTERN = re.compile(r'</(?:p|div|h[1-6]|li|tr)>|<br\s*/?>', re.IGNORECASE)
TAG_PATTERN = re.compile(r'<[^>]+>')


def sanitize_email_body(html_body: Optional[str], max_chars: Optional[int] = None) -> str:
    """
    Reduce an HTML body to the content that matters for classification.

    Args:
        html_body: Raw HTML body
        max_chars: Optional hard cap on the returned length

    Returns:
        Cleaned body, whitespace collapsed
    """
    if not html_body:
        return ""

    cleaned = BASE64_IMAGE_PATTERN.sub('[IMAGE]', html_body)
    cleaned = BASE64_BLOB_PATTERN.sub('[BASE64_CONTENT]', cleaned)
    cleaned = STYLE_BLOCK_PATTERN.sub('', cleaned)
    cleaned = INLINE_STYLE_PATTERN.sub('', cleaned)
    cleaned = COMMENT_PATTERN.sub('', cleaned)
    cleaned = SCRIPT_PATTERN.sub('', cleaned)
    cleaned = TRACKING_PIXEL_PATTERN.sub('[TRACKING_PIXEL]', cleaned)
    cleaned = EMPTY_TAG_PATTERN.sub('', cleaned)
    cleaned = WHITESPACE_PATTERN.sub(' ', cleaned).strip()

    if max_chars and len(cleaned) > max_chars:
        cleaned = cleaned[:max_chars] + ' [TRUNCATED]'
    return cleaned


def html_to_plain_text(html_text: Optional[str]) -> str:
    """Drop all tags and decode entities, keeping one line per block element."""
    if not html_text:
        return ""

    text = BLOCK_END_PATTERN.sub('\n', html_text)
    text = html.unescape(TAG_PATTERN.sub('', text))
    lines = (INLINE_WHITESPACE_PATTERN.sub(' ', line).strip() for line in text.split('\n'))
    return '\n'.join(line for line in lines if line)


def body_for_analysis(html_body: Optional[str], subject: Optional[str], max_chars: Optional[int] = None) -> str:
    """Sanitized body, falling back to the subject when the body is empty."""
    return sanitize_email_body(html_body, max_chars=max_chars) or (subject or "").strip() or "No body content"
