"""
Logical cache keys.

Keys are built from the slugs the HTTP routes already carry, so a cache check
never needs a database lookup first. The distributed tier prefixes them with
its namespace; the memory tier and stats use them as-is.

    homepage
    town:{town_slug}
    person:{town_slug}/{person_slug}
"""

from directory_cache.core.config.constants import KEY_HOMEPAGE, KEY_PREFIX_PERSON, KEY_PREFIX_TOWN
from directory_cache.core.exceptions import CacheKeyError


def _require_slug(name: str, value: str) -> str:
    if not value or not value.strip():
        raise CacheKeyError(f"{name} must not be empty", details={"field": name})
    return value.strip()


def homepage_key() -> str:
    return KEY_HOMEPAGE


def town_key(town_slug: str) -> str:
    return f"{KEY_PREFIX_TOWN}:{_require_slug('town_slug', town_slug)}"


def person_key(town_slug: str, person_slug: str) -> str:
    town = _require_slug("town_slug", town_slug)
    person = _require_slug("person_slug", person_slug)
    return f"{KEY_PREFIX_PERSON}:{town}/{person}"
