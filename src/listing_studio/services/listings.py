"""Listing generation workflow and the in-memory session."""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from listing_studio.domain.errors import NoActiveListing, UnknownPhotos
from listing_studio.domain.listings import (
    FormSnapshot,
    SessionEntry,
    validate_snapshot,
)
from listing_studio.services.generation import ListingGateway
from listing_studio.services.merge import merge_result
from listing_studio.services.prompts import PromptComposer
from listing_studio.services.staging import StagingOrchestrator, StagingRun

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionOutcome:
    """Result of one submission together with the path that produced it."""

    entry: SessionEntry
    skips_image_analysis: bool


@dataclass
class ListingWorkflow:
    """Runs one generation action over an explicit prior entry."""

    gateway: ListingGateway
    composer: PromptComposer

    async def submit(
        self, snapshot: FormSnapshot, prior: SessionEntry | None
    ) -> SubmissionOutcome:
        """Generate or refine a listing for a new submission.

        GenerationFailure propagates unchanged; the caller keeps its prior entry.
        """
        request = self.composer.compose_listing_request(snapshot, prior)
        if request.skips_image_analysis:
            _logger.info("Photos and address unchanged; refining text only")
        else:
            _logger.info(
                "Running full analysis with %s photo(s)", len(request.attachments)
            )
        raw = await self.gateway.generate_full_listing(
            request.instruction, request.attachments
        )
        result = merge_result(
            raw,
            prior.result if prior else None,
            request.skips_image_analysis,
        )
        return SubmissionOutcome(
            entry=SessionEntry(snapshot=snapshot, result=result),
            skips_image_analysis=request.skips_image_analysis,
        )

    async def regenerate_description(self, entry: SessionEntry) -> SessionEntry:
        """Replace only the description of an existing listing."""
        request = self.composer.compose_description_request(entry)
        description = await self.gateway.regenerate_description(
            request.instruction, request.attachments
        )
        result = entry.result.model_copy(update={"description": description})
        return SessionEntry(snapshot=entry.snapshot, result=result)


@dataclass
class ListingSession:
    """Single-slot session cache plus the actions that read and write it."""

    workflow: ListingWorkflow
    staging: StagingOrchestrator
    entry: SessionEntry | None = None
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    async def submit(self, snapshot: FormSnapshot) -> SubmissionOutcome:
        """Submit a snapshot; queued behind any generation already in flight."""
        validate_snapshot(snapshot)
        async with self._lock:
            outcome = await self.workflow.submit(snapshot, self.entry)
            self.entry = outcome.entry
            return outcome

    async def regenerate_description(self) -> SessionEntry:
        async with self._lock:
            if self.entry is None:
                raise NoActiveListing("No listing has been generated yet")
            self.entry = await self.workflow.regenerate_description(self.entry)
            return self.entry

    async def reset(self) -> None:
        async with self._lock:
            self.entry = None
        _logger.info("Session reset")

    def stage(self, photo_names: Sequence[str]) -> StagingRun | None:
        """Start staging the named photos of the current submission."""
        if self.entry is None:
            raise NoActiveListing("No listing has been generated yet")
        photos_by_name = {photo.name: photo for photo in self.entry.snapshot.photos}
        unknown = [name for name in photo_names if name not in photos_by_name]
        if unknown:
            raise UnknownPhotos(unknown)
        selected = [photos_by_name[name] for name in dict.fromkeys(photo_names)]
        return self.staging.stage(selected)
