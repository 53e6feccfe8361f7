"""
Directory Row Types

Plain dataclasses describing what the database collaborator returns. They may
carry datetimes, dates and Decimals; the entity cache modules turn them into
cache-safe dicts before anything is stored.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal


@dataclass
class NamedRef:
    """Layout or theme reference."""

    id: str
    name: str


@dataclass
class ImageRef:
    """Stored image metadata (never the image bytes)."""

    id: str
    storage_type: str = "database"
    s3_key: str | None = None
    mime_type: str = "image/jpeg"
    size: int = 0
    width: int | None = None
    height: int | None = None
    caption: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class TownRef:
    name: str
    slug: str
    state: str


# =============================================================================
# Homepage
# =============================================================================


@dataclass
class TownSummary:
    id: str
    name: str
    slug: str
    state: str
    detained_count: int = 0


@dataclass
class RecentPerson:
    id: str
    first_name: str
    last_name: str
    slug: str
    town: TownRef
    last_seen_date: datetime | None = None
    primary_image: ImageRef | None = None


@dataclass
class HomepageRow:
    towns: list[TownSummary] = field(default_factory=list)
    recent_persons: list[RecentPerson] = field(default_factory=list)
    total_detained: int = 0


# =============================================================================
# Town page
# =============================================================================


@dataclass
class DetentionCenterSummary:
    id: str
    name: str
    city: str
    state: str


@dataclass
class TownPerson:
    id: str
    first_name: str
    last_name: str
    slug: str
    created_at: datetime
    last_seen_date: datetime | None = None
    date_of_birth: date | None = None
    story: str | None = None
    detention_center: DetentionCenterSummary | None = None
    comment_count: int = 0
    primary_image: ImageRef | None = None


@dataclass
class TownRow:
    id: str
    name: str
    slug: str
    state: str
    layout: NamedRef | None = None
    theme: NamedRef | None = None
    persons: list[TownPerson] = field(default_factory=list)


# =============================================================================
# Person page
# =============================================================================


@dataclass
class TownDetail:
    id: str
    name: str
    slug: str
    state: str
    layout: NamedRef | None = None
    theme: NamedRef | None = None


@dataclass
class DetentionCenter:
    id: str
    name: str
    city: str
    state: str
    facility_type: str | None = None
    address: str | None = None
    phone: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    image: ImageRef | None = None


@dataclass
class PersonImage:
    image: ImageRef
    image_type: str = "gallery"
    sequence_number: int = 0


@dataclass
class Comment:
    id: str
    content: str
    created_at: datetime
    updated_at: datetime
    first_name: str | None = None
    last_name: str | None = None
    occupation: str | None = None
    city: str | None = None
    state: str | None = None
    show_occupation: bool = False
    show_city_state: bool = False
    show_comment: bool = True
    display_name_only: bool = False
    wants_to_help_more: bool = False
    type: str = "support"
    visibility: str = "public"
    approved_at: datetime | None = None


@dataclass
class Story:
    id: str
    language: str
    story_type: str
    content: str
    created_at: datetime
    updated_at: datetime


@dataclass
class HistoryNote:
    id: str
    description: str
    date: datetime
    created_by_username: str
    created_at: datetime
    updated_at: datetime


@dataclass
class PersonRow:
    id: str
    first_name: str
    last_name: str
    slug: str
    status: str
    town: TownDetail
    created_at: datetime
    updated_at: datetime
    middle_name: str | None = None
    date_of_birth: date | None = None
    place_of_birth: str | None = None
    country_of_origin: str | None = None
    story: str | None = None
    detention_story: str | None = None
    family_message: str | None = None
    last_seen_date: datetime | None = None
    last_seen_location: str | None = None
    is_active: bool = True
    is_found: bool = False
    detention_date: datetime | None = None
    last_heard_from_date: datetime | None = None
    release_date: datetime | None = None
    next_court_date: datetime | None = None
    court_location: str | None = None
    case_number: str | None = None
    bond_amount: Decimal | None = None
    bond_status: str | None = None
    represented_by_lawyer: bool = False
    show_detention_info: bool = True
    show_last_heard_from: bool = True
    show_detention_date: bool = True
    show_community_support: bool = True
    layout: NamedRef | None = None
    theme: NamedRef | None = None
    detention_center: DetentionCenter | None = None
    images: list[PersonImage] = field(default_factory=list)
    comments: list[Comment] = field(default_factory=list)
    stories: list[Story] = field(default_factory=list)
    history: list[HistoryNote] = field(default_factory=list)


@dataclass
class SystemDefaults:
    """Site-wide layout and theme used when a person/town has none."""

    layout: NamedRef | None = None
    theme: NamedRef | None = None


@dataclass
class SupportMapMetadata:
    has_ip_addresses: bool = False
    message_location_count: int = 0
    support_location_count: int = 0
