"""
Opaque bucket URIs.

A ``BucketURI`` is a durable ``scheme://bucket/key`` reference to a stored
object. It is turned into a fetchable URL only when it is read, by looking
the bucket up in a ``BackendRegistry``. Resolution never raises: blank
references resolve to the fallback URL and anything that cannot be resolved
is passed through unchanged.
"""

import json
from typing import Any, Optional, Tuple
from urllib.parse import urlsplit

from pydantic import GetCoreSchemaHandler
from pydantic_core import core_schema

from .registry import BackendRegistry, get_registry

KNOWN_SCHEMES = frozenset({"minio", "s3", "qiniu"})

DEFAULT_FALLBACK_URL = "http://127.0.0.1:9000/default/unknown.png"

_fallback_url = DEFAULT_FALLBACK_URL


def set_fallback_url(url: str) -> None:
    """Set the URL returned for blank references. Call once at startup."""
    global _fallback_url
    _fallback_url = url


def get_fallback_url() -> str:
    """Get the URL returned for blank references."""
    return _fallback_url


def is_blank(value: str) -> bool:
    return len(value.strip()) == 0


def _has_control_chars(value: str) -> bool:
    return any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in value)


class BucketURI:
    """Lazily resolved reference to an object in a registered bucket."""

    __slots__ = ("_value",)

    def __init__(self, value: str = ""):
        if isinstance(value, BucketURI):
            value = value.raw
        self._value = str(value)

    @classmethod
    def build(cls, scheme: str, bucket: str, key: str) -> "BucketURI":
        """Build a ``scheme://bucket/key`` reference."""
        if key.startswith("/"):
            key = key[1:]
        return cls(f"{scheme}://{bucket}/{key}")

    @property
    def raw(self) -> str:
        """The unresolved reference."""
        return self._value

    def parts(self) -> Optional[Tuple[str, str, str]]:
        """
        Parse the reference.

        Returns:
            ``(scheme, bucket, path)`` or None when the value is not a URL
        """
        # A scheme must start the reference; leading whitespace would be stripped by urlsplit
        if self._value[:1].isspace() or _has_control_chars(self._value):
            return None
        try:
            parsed = urlsplit(self._value)
            # Accessing the port validates it
            parsed.port
        except ValueError:
            return None
        # Userinfo is not part of the bucket name
        bucket = parsed.netloc.rpartition("@")[2]
        return parsed.scheme, bucket, parsed.path

    def resolve(self, registry: Optional[BackendRegistry] = None) -> str:
        """
        Resolve the reference to an externally fetchable URL.

        Args:
            registry: Registry to look the bucket up in, defaults to the
                process-wide registry

        Returns:
            ``http://<host>/<bucket>/<key>`` for a registered bucket of a
            known scheme, the fallback URL for a blank reference, and the
            raw reference otherwise
        """
        if is_blank(self._value):
            return get_fallback_url()

        parts = self.parts()
        if parts is None:
            return self._value

        scheme, bucket, path = parts
        if registry is None:
            registry = get_registry()

        host, found = registry.lookup(scheme, bucket)
        if not found:
            return self._value

        if scheme in KNOWN_SCHEMES:
            return f"http://{host}/{bucket}{path}"
        return self._value

    def to_json(self, registry: Optional[BackendRegistry] = None) -> str:
        """Encode the resolved URL as a JSON string literal."""
        return json.dumps(self.resolve(registry))

    def __str__(self) -> str:
        return self.resolve()

    def __repr__(self) -> str:
        return f"BucketURI({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, BucketURI):
            return self._value == other._value
        if isinstance(other, str):
            return self._value == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)

    def __bool__(self) -> bool:
        return bool(self._value)

    @classmethod
    def _validate(cls, value: Any) -> "BucketURI":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            return cls(value)
        raise ValueError(f"Expected a string bucket URI, got {type(value).__name__}")

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: GetCoreSchemaHandler) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.plain_serializer_function_ser_schema(
                lambda uri: uri.resolve(),
                return_schema=core_schema.str_schema(),
            ),
        )


def json_default(obj: Any) -> Any:
    """``default=`` hook for ``json.dumps`` that resolves bucket URIs."""
    if isinstance(obj, BucketURI):
        return obj.resolve()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


__all__ = [
    "BucketURI",
    "DEFAULT_FALLBACK_URL",
    "KNOWN_SCHEMES",
    "get_fallback_url",
    "is_blank",
    "json_default",
    "set_fallback_url",
]
