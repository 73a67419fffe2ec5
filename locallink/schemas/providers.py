"""
Raw provider payloads, one explicit model per provider.

Connectors validate every item into these models at their boundary; the
Normalizer only ever sees validated records. Unknown provider fields are
ignored.
"""

from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# ── OpenStreetMap (Overpass) ──────────────────────────────────────────────────


class OsmCenter(BaseModel):
    lat: float
    lon: float


class OsmElement(BaseModel):
    """A map feature with free-form key/value tags."""

    model_config = ConfigDict(extra="ignore")

    type: Literal["node", "way", "relation"]
    id: int
    lat: Optional[float] = None
    lon: Optional[float] = None
    center: Optional[OsmCenter] = None
    tags: dict[str, str] = Field(default_factory=dict)

    @property
    def latitude(self) -> Optional[float]:
        if self.lat is not None:
            return self.lat
        return self.center.lat if self.center else None

    @property
    def longitude(self) -> Optional[float]:
        if self.lon is not None:
            return self.lon
        return self.center.lon if self.center else None


class OverpassResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    elements: list[dict] = Field(default_factory=list)


# ── Yelp Fusion ───────────────────────────────────────────────────────────────


class YelpCategory(BaseModel):
    alias: str
    title: str = ""


class YelpCoordinates(BaseModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class YelpLocation(BaseModel):
    model_config = ConfigDict(extra="ignore")

    address1: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    display_address: list[str] = Field(default_factory=list)


class YelpBusiness(BaseModel):
    """A structured directory listing from /businesses/search."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    alias: Optional[str] = None
    categories: list[YelpCategory] = Field(default_factory=list)
    rating: Optional[float] = None
    review_count: int = 0
    price: Optional[str] = None
    display_phone: Optional[str] = None
    url: Optional[str] = None
    image_url: Optional[str] = None
    is_closed: Optional[bool] = None
    coordinates: YelpCoordinates = Field(default_factory=YelpCoordinates)
    location: YelpLocation = Field(default_factory=YelpLocation)
    transactions: list[str] = Field(default_factory=list)


class YelpSearchResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    businesses: list[dict] = Field(default_factory=list)
    total: int = 0


class YelpOpenRange(BaseModel):
    day: int
    start: str
    end: str
    is_overnight: bool = False


class YelpHoursBlock(BaseModel):
    model_config = ConfigDict(extra="ignore")

    open: list[YelpOpenRange] = Field(default_factory=list)
    hours_type: Optional[str] = None


class YelpBusinessDetails(BaseModel):
    """The subset of /businesses/{id} used for single-item enrichment."""

    model_config = ConfigDict(extra="ignore")

    id: str
    url: Optional[str] = None
    photos: list[str] = Field(default_factory=list)
    hours: list[YelpHoursBlock] = Field(default_factory=list)


# Any record a connector can hand to the Normalizer
RawRecord = Union[OsmElement, YelpBusiness]
