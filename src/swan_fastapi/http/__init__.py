"""HTTP helpers: JSON client calls and SPA fallback routing."""

from swan_fastapi.http.client import get_json, read_as_json
from swan_fastapi.http.fallback import (
    FallbackMiddleware,
    has_extension,
    starts_with_segments,
    use_fallback,
)


__all__ = [
    "FallbackMiddleware",
    "get_json",
    "has_extension",
    "read_as_json",
    "starts_with_segments",
    "use_fallback",
]
