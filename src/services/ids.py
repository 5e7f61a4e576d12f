# src/services/ids.py
import re
from typing import Optional

# Tried in order; the first match wins.
_YT_PATTERNS = (
    re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/)([^&\n?#]+)"),
    re.compile(r"youtube\.com/v/([^&\n?#]+)"),
    re.compile(r"youtube\.com/watch\?.*v=([^&\n?#]+)"),
)


def extract_video_id(url: str) -> Optional[str]:
    """Return the YouTube video id in `url`, or None if no known form matches."""
    if not isinstance(url, str):
        return None
    for pattern in _YT_PATTERNS:
        m = pattern.search(url)
        if m:
            return m.group(1)
    return None
