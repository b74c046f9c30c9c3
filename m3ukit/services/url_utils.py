"""Stream URL helpers for comparing and deduplicating entries."""
import hashlib
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

AUTH_PARAMETERS = frozenset((
    "username", "password", "token", "auth", "key", "apikey",
    "api_key", "access_token", "user", "pass", "pwd",
))


def stripped_url(url: str) -> str:
    """URL without credential query parameters; other parameters keep their order."""
    parts = urlsplit(url)
    if not parts.query:
        return url

    kept = [
        (name, value)
        for name, value in parse_qsl(parts.query, keep_blank_values=True)
        if name.lower() not in AUTH_PARAMETERS
    ]
    return urlunsplit(parts._replace(query=urlencode(kept)))


def deduplication_hash(url: str) -> str:
    """First 16 hex characters of the SHA-256 of the stripped URL."""
    return hashlib.sha256(stripped_url(url).encode("utf-8")).hexdigest()[:16]


def is_equivalent(url: str, other: str) -> bool:
    """True when both URLs point to the same stream once credentials are removed."""
    return stripped_url(url) == stripped_url(other)


def base_stream_url(url: str) -> str:
    """URL with the whole query string removed."""
    return urlunsplit(urlsplit(url)._replace(query=""))
