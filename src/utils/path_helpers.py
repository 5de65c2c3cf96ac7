"""Route classification for the authentication middleware."""

import re
from enum import Enum
from functools import lru_cache

from src.api.core.constants import (
    SERVICE_AUTH_PATTERNS,
    SKIP_AUTH_PATHS,
    SKIP_AUTH_PATTERNS,
)


class AuthMode(str, Enum):
    PUBLIC = "public"
    SERVICE = "service"
    USER = "user"


def _normalize(path: str) -> str:
    return path.rstrip("/") or "/"


def path_matches(path: str, allowed_paths: set[str]) -> bool:
    """Exact match that ignores a trailing slash on either side."""
    return _normalize(path) in {_normalize(allowed) for allowed in allowed_paths}


@lru_cache(maxsize=None)
def _compiled(pattern: str) -> re.Pattern:
    return re.compile(pattern)


def path_matches_pattern(
    path: str, patterns: list[tuple[str | None, str]], method: str | None = None
) -> bool:
    """Match against (method, regex) rules. A None method matches any method."""
    for allowed_method, pattern in patterns:
        if allowed_method and method and allowed_method.upper() != method.upper():
            continue
        if _compiled(pattern).match(path):
            return True
    return False


def auth_mode_for(path: str, method: str) -> AuthMode:
    """How a request to ``path`` must authenticate."""
    if path_matches(path, SKIP_AUTH_PATHS) or path_matches_pattern(
        path, SKIP_AUTH_PATTERNS, method
    ):
        return AuthMode.PUBLIC
    if path_matches_pattern(path, SERVICE_AUTH_PATTERNS, method):
        return AuthMode.SERVICE
    return AuthMode.USER
