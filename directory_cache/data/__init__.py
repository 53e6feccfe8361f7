"""
Data Module

Database collaborator contract and the row types it returns.
"""

from directory_cache.data.models import (
    Comment,
    DetentionCenter,
    DetentionCenterSummary,
    HistoryNote,
    HomepageRow,
    ImageRef,
    NamedRef,
    PersonImage,
    PersonRow,
    RecentPerson,
    Story,
    SupportMapMetadata,
    SystemDefaults,
    TownDetail,
    TownPerson,
    TownRef,
    TownRow,
    TownSummary,
)
from directory_cache.data.source import DirectoryDataSource

__all__ = [
    "DirectoryDataSource",
    "Comment",
    "DetentionCenter",
    "DetentionCenterSummary",
    "HistoryNote",
    "HomepageRow",
    "ImageRef",
    "NamedRef",
    "PersonImage",
    "PersonRow",
    "RecentPerson",
    "Story",
    "SupportMapMetadata",
    "SystemDefaults",
    "TownDetail",
    "TownPerson",
    "TownRef",
    "TownRow",
    "TownSummary",
]
