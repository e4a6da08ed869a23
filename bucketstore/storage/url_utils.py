"""
URL and key helpers shared by the storage backends.
"""

import mimetypes
import posixpath
from pathlib import PurePosixPath
from urllib.parse import quote, unquote, urlsplit, urlunsplit

# Characters left unescaped in URL paths, beyond letters, digits and "_.-~"
PATH_SAFE_CHARS = "/!$&'()*+,;=:@"


def has_http_scheme(url: str) -> bool:
    return url.startswith("http://") or url.startswith("https://")


def ensure_scheme(url: str, secure: bool = False) -> str:
    """Prefix a bare ``host[:port][/path]`` with an HTTP scheme."""
    if has_http_scheme(url):
        return url
    return f"{'https' if secure else 'http'}://{url.lstrip('/')}"


def hostname(url: str) -> str:
    """
    Extract ``host[:port]`` from a URL or bare host string.

    Unparseable input is returned unchanged.
    """
    try:
        return urlsplit(ensure_scheme(url.strip())).netloc
    except ValueError:
        return url


def join_url(prefix: str, key: str, secure: bool = False) -> str:
    """
    Join an object key onto a URL prefix.

    Args:
        prefix: Base URL, with or without scheme, possibly with a path
        key: Object key, leading slashes are ignored
        secure: Scheme to assume when the prefix has none

    Returns:
        The joined URL with a cleaned, percent-encoded path
    """
    parts = urlsplit(ensure_scheme(prefix, secure))
    path = posixpath.normpath(posixpath.join("/", unquote(parts.path), key.lstrip("/")))
    path = quote(path, safe=PATH_SAFE_CHARS)
    return urlunsplit((parts.scheme, parts.netloc, path, parts.query, parts.fragment))


def normalize_key(key: str) -> str:
    """Strip the leading slash from an object key."""
    return key.lstrip("/")


def guess_content_type(key: str) -> str:
    """Get the MIME content type for an object key."""
    content_type, _ = mimetypes.guess_type(PurePosixPath(key).name)
    return content_type or "application/octet-stream"


__all__ = [
    "ensure_scheme",
    "guess_content_type",
    "has_http_scheme",
    "hostname",
    "join_url",
    "normalize_key",
]
