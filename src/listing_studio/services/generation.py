"""Gateway to the remote generation service."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from listing_studio.domain.errors import GenerationFailure, StagingFailure
from listing_studio.domain.listings import DescriptionResult, ListingResult
from listing_studio.domain.staging import EnhancedPhoto
from listing_studio.services.prompts import ImageAttachment

_logger = logging.getLogger(__name__)

_NUMBER = {"type": "number"}

LISTING_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "description": {"type": "string"},
        "estimatedPrice": {"type": "integer"},
        "location": {
            "type": "object",
            "properties": {"lat": _NUMBER, "lng": _NUMBER},
            "required": ["lat", "lng"],
            "additionalProperties": False,
        },
        "nearbyPois": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "type": {"type": "string"},
                    "lat": _NUMBER,
                    "lng": _NUMBER,
                },
                "required": ["name", "type", "lat", "lng"],
                "additionalProperties": False,
            },
        },
    },
    "required": ["title", "description", "estimatedPrice", "location", "nearbyPois"],
    "additionalProperties": False,
}

DESCRIPTION_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {"description": {"type": "string"}},
    "required": ["description"],
    "additionalProperties": False,
}

STAGING_PROMPT = (
    "Virtually stage this room for a real-estate listing. Furnish and decorate it "
    "in a modern, tasteful style that suits the space. Keep the architecture, "
    "walls, windows, floor and camera angle exactly as they are and make the "
    "result look photorealistic."
)


@dataclass(frozen=True)
class ContentPart:
    """One part of a multimodal response."""

    mime_type: str
    data: bytes


class GenerationClient(Protocol):
    """Interface for the multimodal generation backend."""

    async def generate_structured(
        self,
        *,
        prompt: str,
        images: Sequence[ImageAttachment],
        schema: dict[str, object],
        schema_name: str,
    ) -> str:
        """Return the raw JSON text produced for the given schema."""

    async def edit_image(
        self, *, prompt: str, image: ImageAttachment
    ) -> list[ContentPart]:
        """Return the content parts produced for an image edit."""


@dataclass
class ListingGateway:
    """Stateless operations against the generation service."""

    client: GenerationClient

    async def generate_full_listing(
        self, instruction: str, attachments: Sequence[ImageAttachment]
    ) -> ListingResult:
        """Generate a complete listing, validated against the listing schema."""
        raw = await self._generate(instruction, attachments, LISTING_SCHEMA, "listing")
        try:
            return ListingResult.model_validate_json(raw)
        except ValidationError as exc:
            _logger.warning("Listing response failed validation: %s", exc)
            raise GenerationFailure(
                f"Listing response did not match the schema: {exc.error_count()} "
                "error(s)"
            ) from exc

    async def regenerate_description(
        self, instruction: str, attachments: Sequence[ImageAttachment]
    ) -> str:
        """Generate a replacement description."""
        raw = await self._generate(
            instruction, attachments, DESCRIPTION_SCHEMA, "listing_description"
        )
        try:
            return DescriptionResult.model_validate_json(raw).description
        except ValidationError as exc:
            _logger.warning("Description response failed validation: %s", exc)
            raise GenerationFailure(
                "Description response did not match the schema"
            ) from exc

    async def enhance_image(self, photo_bytes: bytes, mime_type: str) -> EnhancedPhoto:
        """Apply the virtual staging transform to a single photo."""
        image = ImageAttachment(data=photo_bytes, mime_type=mime_type)
        try:
            parts = await self.client.edit_image(prompt=STAGING_PROMPT, image=image)
        except Exception as exc:
            _logger.warning("Image enhancement call failed: %s", exc)
            raise StagingFailure(f"Enhancement request failed: {exc}") from exc
        part = _first_image_part(parts)
        if part is None:
            _logger.warning("Enhancement response contained no image")
            raise StagingFailure("Enhancement response contained no image")
        return EnhancedPhoto(data=part.data, mime_type=part.mime_type)

    async def _generate(
        self,
        instruction: str,
        attachments: Sequence[ImageAttachment],
        schema: dict[str, object],
        schema_name: str,
    ) -> str:
        try:
            raw = await self.client.generate_structured(
                prompt=instruction,
                images=attachments,
                schema=schema,
                schema_name=schema_name,
            )
        except Exception as exc:
            _logger.warning("Generation call %s failed: %s", schema_name, exc)
            raise GenerationFailure(f"Generation request failed: {exc}") from exc
        if not raw or not raw.strip():
            raise GenerationFailure("Generation service returned an empty response")
        return raw


def _first_image_part(parts: Sequence[ContentPart]) -> ContentPart | None:
    # Image parts with an empty payload are not usable results and are skipped.
    for part in parts:
        if part.mime_type.startswith("image/") and part.data:
            return part
    return None
