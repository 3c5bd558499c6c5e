# src/services/ids.py
import re
from typing import Literal, Optional, Tuple
from urllib.parse import urlparse

from .errors import InvalidURLError

Platform = Literal["youtube", "instagram"]

# Regex simplificado para YouTube
_YT_RE = re.compile(
    r"(?:youtu\.be/|youtube\.com/(?:watch\?v=|embed/|shorts/|live/))([A-Za-z0-9_-]{6,})"
)

# Regex simplificado para Instagram (post/reel)
_IG_RE = re.compile(
    r"instagram\.com/(?:reel|p)/([A-Za-z0-9_-]{5,})"
)


def detect_platform_and_id(url: str) -> Optional[Tuple[Platform, str]]:
    """Returns (platform, item id) for YouTube/Instagram links, None for anything else."""
    m = _YT_RE.search(url)
    if m:
        return "youtube", m.group(1)
    m = _IG_RE.search(url)
    if m:
        return "instagram", m.group(1)
    return None


def validate_http_url(url: str) -> str:
    candidate = (url or "").strip()
    parsed = urlparse(candidate)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidURLError(f"Not a valid http(s) URL: {url!r}")
    return candidate
