"""Listing domain models."""

from dataclasses import dataclass
from enum import StrEnum

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
)

from listing_studio.domain.errors import ValidationFailure

MIN_PHOTOS = 3
MAX_PHOTOS = 8

StrictNumber = StrictInt | StrictFloat


class PropertyCategory(StrEnum):
    """Supported property categories."""

    APARTMENT = "apartment"
    HOUSE = "house"
    LAND = "land"


@dataclass(frozen=True, order=True)
class PhotoIdentity:
    """Identity used to compare photos across submissions."""

    name: str
    size: int
    last_modified: int


@dataclass(frozen=True)
class Photo:
    """An uploaded photo with its raw bytes."""

    name: str
    size: int
    last_modified: int
    mime_type: str
    data: bytes = b""

    @property
    def identity(self) -> PhotoIdentity:
        return PhotoIdentity(self.name, self.size, self.last_modified)


@dataclass(frozen=True)
class FormSnapshot:
    """One submitted set of property facts and photos."""

    photos: tuple[Photo, ...]
    address: str
    category: PropertyCategory
    layout: str | None = None
    size: float | None = None
    highlights: str | None = None


def validate_snapshot(snapshot: FormSnapshot) -> FormSnapshot:
    """Reject snapshots that may not enter the generation pipeline."""
    if not MIN_PHOTOS <= len(snapshot.photos) <= MAX_PHOTOS:
        raise ValidationFailure(
            f"Upload between {MIN_PHOTOS} and {MAX_PHOTOS} photos "
            f"(got {len(snapshot.photos)})."
        )
    names = [photo.name for photo in snapshot.photos]
    if len(set(names)) != len(names):
        raise ValidationFailure("Photo file names must be unique.")
    if not snapshot.address.strip():
        raise ValidationFailure("Address is required.")
    if snapshot.size is not None and snapshot.size <= 0:
        raise ValidationFailure("Size must be a positive number.")
    return snapshot


class Location(BaseModel):
    """Geographic coordinates of the property."""

    model_config = ConfigDict(frozen=True)

    lat: StrictNumber
    lng: StrictNumber


class PointOfInterest(BaseModel):
    """A place of interest near the property."""

    model_config = ConfigDict(frozen=True)

    name: StrictStr
    type: StrictStr
    lat: StrictNumber
    lng: StrictNumber


class ListingResult(BaseModel):
    """Structured listing produced by the generation service."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: StrictStr
    description: StrictStr
    estimated_price: StrictInt = Field(alias="estimatedPrice", ge=0)
    location: Location
    nearby_pois: tuple[PointOfInterest, ...] = Field(alias="nearbyPois")


class DescriptionResult(BaseModel):
    """Structured output of a description-only regeneration."""

    description: StrictStr


@dataclass(frozen=True)
class SessionEntry:
    """Most recent successful submission and its result."""

    snapshot: FormSnapshot
    result: ListingResult
