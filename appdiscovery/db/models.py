"""
Pydantic models for catalog records and crawl bookkeeping.

ScrapedItem is transient (extractor output). CrawlSession, MatchAttempt
and CatalogEntry mirror rows of the import_sessions, itunes_match_attempts
and apps tables. CanonicalCandidate is one iTunes Search API result.
"""

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any, List, Union
from pydantic import BaseModel, Field, field_validator, ConfigDict


# Legacy sessions carry the page only in their name: "Productivity - Page 3"
LEGACY_PAGE_LABEL = re.compile(r" - Page (\d+)$")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PageStatus(str, Enum):
    """Lifecycle of one tracked listing page."""
    SCRAPED = "scraped"
    IMPORTED = "imported"
    FAILED = "failed"


class SourceType(str, Enum):
    BULK_PAGE = "BULK_PAGE"
    BULK_CATEGORY = "BULK_CATEGORY"
    MANUAL = "MANUAL"


class MatchStatus(str, Enum):
    FOUND = "found"
    FAILED = "failed"
    CONFIRMED = "confirmed"


class ScrapedItem(BaseModel):
    """
    One software record recovered from a listing or detail page.

    Every field except name has a default so that a partially broken
    page still yields a usable record.
    """
    name: str = Field(..., min_length=1, description="Display name")
    developer: str = Field(default="Unknown")
    version: str = Field(default="Unknown")
    price: Optional[float] = Field(None, ge=0, description="Price in dollars, 0 for free")
    rating: Optional[float] = Field(None, ge=0, le=5)
    description: str = Field(default="No description available")
    category: str = Field(default="Unknown")
    requirements: List[str] = Field(default_factory=list)
    screenshots: List[str] = Field(default_factory=list)
    icon_url: Optional[str] = None
    source_url: str = Field(default="", description="Detail page URL on the source site")
    developer_website_url: Optional[str] = None
    last_updated: datetime = Field(default_factory=_utcnow)
    file_size: Optional[str] = None
    architecture: Optional[str] = None

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("name cannot be empty")
        return v.strip()

    @field_validator("developer", "version", "category", mode="before")
    @classmethod
    def default_unknown(cls, v: Optional[str]) -> str:
        if v is None or not str(v).strip():
            return "Unknown"
        return v

    @field_validator("description", mode="before")
    @classmethod
    def default_description(cls, v: Optional[str]) -> str:
        if v is None or not str(v).strip():
            return "No description available"
        return v

    @property
    def is_free(self) -> bool:
        return self.price == 0


class CrawlSession(BaseModel):
    """
    One row of the crawl-session log.

    The set of rows for a category URL is the crawl cursor: the next page
    to fetch is one past the highest page number recorded.
    """
    id: Optional[Union[int, str]] = None
    session_name: str = Field(..., min_length=1)
    category_url: str = Field(..., min_length=1)
    source_type: SourceType = Field(default=SourceType.BULK_PAGE)
    page_status: Optional[PageStatus] = None
    page_number: Optional[int] = Field(None, ge=1)
    apps_imported: int = Field(default=0, ge=0)
    apps_skipped: int = Field(default=0, ge=0)
    created_at: Optional[str] = None
    completed_at: Optional[str] = None

    model_config = ConfigDict(
        str_strip_whitespace=True,
        extra="ignore",
    )

    @property
    def resolved_page_number(self) -> Optional[int]:
        """Page number from the structured column, else from a legacy name."""
        if self.page_number is not None:
            return self.page_number
        match = LEGACY_PAGE_LABEL.search(self.session_name or "")
        if match:
            return int(match.group(1))
        return None

    def to_row(self) -> Dict[str, Any]:
        """Row for insertion (server-generated columns left out)."""
        return self.model_dump(mode="json", exclude={"id", "created_at"})


class MatchAttempt(BaseModel):
    """Outcome of one reconciliation attempt against the canonical search API."""
    id: Optional[Union[int, str]] = None
    app_id: Union[int, str]
    search_term: str = Field(..., min_length=1)
    developer_name: Optional[str] = None
    itunes_response: Optional[Dict[str, Any]] = None
    confidence_score: float = Field(default=0.0, ge=0.0, le=1.0)
    status: MatchStatus
    mas_id: Optional[str] = None
    mas_url: Optional[str] = None
    error_message: Optional[str] = None
    created_at: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    def to_row(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude={"id", "created_at"})


class CatalogEntry(BaseModel):
    """The subset of an apps row this backend reads."""
    id: Union[int, str]
    name: str
    developer: Optional[str] = None
    mas_id: Optional[str] = None
    mas_url: Optional[str] = None
    is_on_mas: bool = False
    website_url: Optional[str] = None
    macupdate_url: Optional[str] = None
    source: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("mas_id", mode="before")
    @classmethod
    def coerce_mas_id(cls, v: Any) -> Optional[str]:
        if v is None or v == "":
            return None
        return str(v)

    @property
    def needs_canonical(self) -> bool:
        """True while either canonical identifier is still missing."""
        return not (self.mas_id and self.mas_url)


class CanonicalCandidate(BaseModel):
    """One result of the iTunes Search API; unknown keys are preserved."""
    track_id: int = Field(..., alias="trackId")
    track_name: str = Field(default="", alias="trackName")
    artist_name: str = Field(default="", alias="artistName")
    track_view_url: Optional[str] = Field(None, alias="trackViewUrl")
    artwork_url_100: Optional[str] = Field(None, alias="artworkUrl100")
    artwork_url_512: Optional[str] = Field(None, alias="artworkUrl512")
    price: Optional[float] = None
    average_user_rating: Optional[float] = Field(None, alias="averageUserRating")
    user_rating_count: Optional[int] = Field(None, alias="userRatingCount")
    release_date: Optional[str] = Field(None, alias="releaseDate")
    version: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    def raw(self) -> Dict[str, Any]:
        """The result as the API returned it."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
