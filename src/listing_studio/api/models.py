"""Pydantic models for the listing HTTP API."""

import base64
import binascii

from pydantic import BaseModel, Field, field_validator

from listing_studio.domain.listings import (
    FormSnapshot,
    ListingResult,
    Photo,
    PropertyCategory,
)
from listing_studio.domain.staging import StagingTask


class PhotoPayload(BaseModel):
    """Uploaded photo with base64-encoded content."""

    name: str
    last_modified: int
    mime_type: str = "image/jpeg"
    data: str

    @field_validator("data")
    @classmethod
    def _check_base64(cls, value: str) -> str:
        try:
            base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("data must be base64 encoded") from exc
        return value

    def to_photo(self) -> Photo:
        raw = base64.b64decode(self.data)
        return Photo(
            name=self.name,
            size=len(raw),
            last_modified=self.last_modified,
            mime_type=self.mime_type,
            data=raw,
        )


class ListingRequest(BaseModel):
    """Submitted property facts and photos."""

    photos: list[PhotoPayload]
    address: str
    property_type: PropertyCategory
    layout: str | None = None
    size: float | None = None
    highlights: str | None = None

    def to_snapshot(self) -> FormSnapshot:
        return FormSnapshot(
            photos=tuple(photo.to_photo() for photo in self.photos),
            address=self.address,
            category=self.property_type,
            layout=self.layout or None,
            size=self.size,
            highlights=self.highlights or None,
        )


class ListingResponse(BaseModel):
    """Generated listing and the path that produced it."""

    listing: ListingResult
    skipped_image_analysis: bool = False


class StagingRequest(BaseModel):
    """Names of photos to virtually stage."""

    photo_names: list[str] = Field(default_factory=list)


class StagingTaskView(BaseModel):
    """Serialized staging task."""

    key: int
    photo_name: str
    state: str
    mime_type: str | None = None
    data: str | None = None
    error: str | None = None

    @classmethod
    def from_task(cls, task: StagingTask) -> "StagingTaskView":
        enhanced = task.enhanced
        return cls(
            key=task.key,
            photo_name=task.source.name,
            state=task.state.value,
            mime_type=enhanced.mime_type if enhanced else None,
            data=base64.b64encode(enhanced.data).decode("utf-8") if enhanced else None,
            error=task.error,
        )


class StagingStatus(BaseModel):
    """Current staging tasks and the aggregate flags."""

    tasks: list[StagingTaskView]
    any_failed: bool
    done: bool
