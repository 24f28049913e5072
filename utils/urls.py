"""URL checks shared by tools that hand a user-supplied address to an external client."""
from typing import Optional
from urllib.parse import urlparse

ALLOWED_SCHEMES = ("http", "https")


def validate_page_url(url: str) -> Optional[str]:
    """Return an error message when `url` is not an absolute http(s) URL, else None."""
    if not url or not url.strip():
        return "url must not be empty"
    u = urlparse(url.strip())
    if u.scheme.lower() not in ALLOWED_SCHEMES:
        return f"only {'/'.join(ALLOWED_SCHEMES)} allowed, got '{u.scheme or 'none'}'"
    if not u.hostname:
        return "url has no host"
    return None
