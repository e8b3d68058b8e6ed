"""Prompt composition for listing generation."""

import json
from dataclasses import dataclass

from listing_studio.domain.listings import FormSnapshot, Photo, SessionEntry
from listing_studio.services.changes import ChangeSet, detect_changes

_FIELD_LABELS = {
    "category": "Property type",
    "layout": "Layout",
    "size": "Size (m²)",
    "highlights": "Key features",
}


@dataclass(frozen=True)
class ImageAttachment:
    """Inline image sent alongside an instruction."""

    data: bytes
    mime_type: str

    @classmethod
    def from_photo(cls, photo: Photo) -> "ImageAttachment":
        return cls(data=photo.data, mime_type=photo.mime_type)


@dataclass(frozen=True)
class GenerationRequest:
    """Instruction and attachments for one generation call."""

    instruction: str
    attachments: tuple[ImageAttachment, ...]
    skips_image_analysis: bool
    changes: ChangeSet | None = None


@dataclass(frozen=True)
class PromptComposer:
    """Builds generation instructions for full and refinement passes."""

    language: str = "Czech"
    currency: str = "CZK"

    def compose_listing_request(
        self, current: FormSnapshot, prior: SessionEntry | None
    ) -> GenerationRequest:
        """Choose between full analysis and text-only refinement."""
        if prior is None:
            return GenerationRequest(
                instruction=self._full_instruction(current),
                attachments=_attachments(current),
                skips_image_analysis=False,
            )

        changes = detect_changes(prior.snapshot, current)
        if changes.photos_changed or changes.address_changed:
            return GenerationRequest(
                instruction=self._full_instruction(current),
                attachments=_attachments(current),
                skips_image_analysis=False,
                changes=changes,
            )
        return GenerationRequest(
            instruction=self._refinement_instruction(current, prior, changes),
            attachments=(),
            skips_image_analysis=True,
            changes=changes,
        )

    def compose_description_request(self, entry: SessionEntry) -> GenerationRequest:
        """Ask for a fresh description of an already generated listing."""
        result = entry.result
        lines = [
            f"You are an experienced real-estate agent writing in {self.language}.",
            "Write a new description for the listing below, different in wording "
            "from the current one. Base it on the facts and the attached photos.",
            "",
            "Property facts:",
            *self._fact_lines(entry.snapshot),
            "",
            f"Current title: {result.title}",
            f"Current estimated price: {result.estimated_price} {self.currency}",
            "Current description:",
            result.description,
            "",
            "Return only the field 'description': a detailed, persuasive text "
            "split into several paragraphs.",
        ]
        return GenerationRequest(
            instruction="\n".join(lines),
            attachments=_attachments(entry.snapshot),
            skips_image_analysis=False,
        )

    def _full_instruction(self, snapshot: FormSnapshot) -> str:
        lines = [
            "You are an expert in selling real estate. Create a professional "
            "listing from the information and photos provided. Respond only with "
            "JSON matching the given schema.",
            "",
            "Property facts:",
            *self._fact_lines(snapshot),
            "",
            "Using these facts and the attached photos, produce:",
            f"1. title: a short, catchy listing title in {self.language}.",
            f"2. description: a detailed, persuasive description in {self.language}."
            " Work the key features in naturally and split the text into several "
            "paragraphs.",
            f"3. estimatedPrice: the estimated market price in {self.currency} as a "
            "whole number without currency. Use the size for a closer estimate "
            "when it is given.",
            "4. location: the latitude and longitude of the address.",
            "5. nearbyPois: 5-7 interesting places nearby (park, school, shop, "
            "restaurant, public transport stop) with name, type, lat and lng.",
        ]
        return "\n".join(lines)

    def _refinement_instruction(
        self, snapshot: FormSnapshot, prior: SessionEntry, changes: ChangeSet
    ) -> str:
        result = prior.result
        if changes.deltas:
            change_lines = [
                f"- {_FIELD_LABELS[delta.field]}: changed from '{delta.old}' "
                f"to '{delta.new}'"
                for delta in changes.deltas
            ]
        else:
            change_lines = ["- No property facts changed since the previous version."]
        preserved = {
            "location": result.location.model_dump(),
            "nearbyPois": [poi.model_dump() for poi in result.nearby_pois],
        }
        lines = [
            "You are an expert in selling real estate. Revise an existing listing "
            "after the owner updated some details. Respond only with JSON matching "
            "the given schema.",
            "",
            f"Address: {snapshot.address}",
            f"Previous title: {result.title}",
            f"Previous estimated price: {result.estimated_price} {self.currency}",
            "Previous description:",
            result.description,
            "",
            "Changes:",
            *change_lines,
            "",
            f"Update title, description and estimatedPrice in {self.language} to "
            "reflect the changes.",
            "Return location and nearbyPois unchanged, copied verbatim from this "
            "JSON:",
            json.dumps(preserved, ensure_ascii=False),
        ]
        return "\n".join(lines)

    def _fact_lines(self, snapshot: FormSnapshot) -> list[str]:
        lines = [
            f"- Address: {snapshot.address}",
            f"- Property type: {snapshot.category}",
        ]
        if snapshot.layout:
            lines.append(f"- Layout: {snapshot.layout}")
        if snapshot.size is not None:
            lines.append(f"- Size: {snapshot.size:g} m²")
        if snapshot.highlights:
            lines.append(f"- Key features: {snapshot.highlights}")
        return lines


def _attachments(snapshot: FormSnapshot) -> tuple[ImageAttachment, ...]:
    return tuple(ImageAttachment.from_photo(photo) for photo in snapshot.photos)
