"""Document-store query operator denylists."""

from __future__ import annotations

from pathlib import Path

import structlog
import yaml

logger = structlog.get_logger()

_PROFILES_PATH = Path(__file__).parent / "query_operators.yaml"

DEFAULT_PROFILE = "mongodb"

# Reserved prefix for query operators in the document store's syntax
OPERATOR_PREFIX = "$"

# Cache loaded profiles
_profiles: dict[str, frozenset[str]] | None = None


def _load_profiles() -> dict[str, frozenset[str]]:
    """Load operator profiles from YAML, caching after first load."""
    global _profiles
    if _profiles is not None:
        return _profiles
    if not _PROFILES_PATH.exists():
        logger.error("query_operator_profiles_not_found", path=str(_PROFILES_PATH))
        _profiles = {}
        return _profiles
    with open(_PROFILES_PATH) as f:
        raw = yaml.safe_load(f) or {}
    _profiles = {name: frozenset(keys or ()) for name, keys in raw.items()}
    return _profiles


def reset_profiles_cache() -> None:
    """Reset the profiles cache (for testing)."""
    global _profiles
    _profiles = None


def get_denylist(profile: str = DEFAULT_PROFILE) -> frozenset[str]:
    """Return the operator denylist for a profile, falling back to the default."""
    profiles = _load_profiles()
    if profile not in profiles:
        logger.warning("unknown_query_operator_profile", profile=profile, fallback=DEFAULT_PROFILE)
    return profiles.get(profile, profiles.get(DEFAULT_PROFILE, frozenset()))


def is_operator_key(key: str, denylist: frozenset[str]) -> bool:
    """Return True if a mapping key is query-operator syntax."""
    return key.startswith(OPERATOR_PREFIX) or key in denylist
