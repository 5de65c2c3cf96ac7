from .decorator import (
    cached,
    invalidate_cache,
    invalidate_tag,
)

__all__ = [
    "cached",
    "invalidate_cache",
    "invalidate_tag",
]
