"""
Directory Data Source Protocol

The database is the only source of truth for page data. The cache core never
talks to it directly; it depends on this protocol so the persistence layer
can be anything (an ORM session, an HTTP backend, an in-memory fixture).

Contract:
- Calls are awaited and side-effect free
- "Not found" is `None`, never an exception
- Any exception raised is a real database failure and propagates to the
  caller unchanged (the cache has no other source to fall back to)
"""

from typing import Protocol, runtime_checkable

from directory_cache.data.models import (
    HomepageRow,
    PersonRow,
    SupportMapMetadata,
    SystemDefaults,
    TownRow,
)


@runtime_checkable
class DirectoryDataSource(Protocol):
    """
    Read-only access to directory rows.

    Implementations:
    - Production: ORM-backed repository
    - Tests: tests/test_fixtures/data_factory.FakeDirectory
    """

    async def fetch_homepage(self) -> HomepageRow:
        """Active towns with detained counts, the latest detained persons and the total."""
        ...

    async def fetch_town(self, town_slug: str) -> TownRow | None:
        """Active town with its detained persons, newest first."""
        ...

    async def fetch_person(self, town_slug: str, person_slug: str) -> PersonRow | None:
        """Active person in an active town, with images, comments, stories and history."""
        ...

    async def fetch_system_defaults(self) -> SystemDefaults:
        ...

    async def fetch_support_map_metadata(self, person_id: str) -> SupportMapMetadata:
        ...
