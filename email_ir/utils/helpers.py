"""
Email IR Helper Functions

Utility functions used throughout the application.
"""

import re
import uuid
from datetime import datetime, timezone
from typing import List
from urllib.parse import urlparse


# ============================================================================
# ID and Timestamp Generation
# ============================================================================

def generate_run_id() -> str:
    """Generate a unique pipeline run ID."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(timezone.utc)


# ============================================================================
# Pattern Extraction
# ============================================================================

URL_PATTERN = re.compile(
    r'https?://[^\s<>"\'\)\]]+|'
    r'www\.[^\s<>"\'\)\]]+',
    re.IGNORECASE
)


def extract_urls(text: str) -> List[str]:
    """Extract all URLs from text, trailing punctuation stripped."""
    if not text:
        return []
    return [url.rstrip('.,;:!?') for url in URL_PATTERN.findall(text)]


def normalize_url(url: str) -> str:
    """Lower-case scheme and host, drop trailing slash, for comparison."""
    url = url.strip()
    if url.lower().startswith('www.'):
        url = 'http://' + url
    parsed = urlparse(url)
    normalized = f"{parsed.scheme.lower()}://{parsed.netloc.lower()}{parsed.path}"
    if parsed.query:
        normalized += f"?{parsed.query}"
    return normalized.rstrip('/')

