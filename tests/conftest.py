"""Shared test fixtures."""

import json
from collections.abc import Sequence
from dataclasses import dataclass, field

import pytest

from listing_studio.config import Settings
from listing_studio.containers import AppContainer
from listing_studio.domain.listings import (
    FormSnapshot,
    ListingResult,
    Photo,
    PropertyCategory,
    SessionEntry,
)
from listing_studio.services.generation import (
    ContentPart,
    GenerationClient,
    ListingGateway,
)
from listing_studio.services.listings import ListingSession, ListingWorkflow
from listing_studio.services.prompts import ImageAttachment, PromptComposer
from listing_studio.services.staging import StagingOrchestrator

LISTING_PAYLOAD: dict[str, object] = {
    "title": "Sunny apartment in the city centre",
    "description": "Bright flat close to the square.\n\nFreshly renovated.",
    "estimatedPrice": 6500000,
    "location": {"lat": 50.0875, "lng": 14.4213},
    "nearbyPois": [
        {"name": "Letná Park", "type": "park", "lat": 50.0966, "lng": 14.4191},
        {"name": "Tram stop", "type": "transport", "lat": 50.088, "lng": 14.42},
    ],
}


@dataclass
class GenerateCall:
    """Recorded structured generation call."""

    prompt: str
    images: list[ImageAttachment]
    schema_name: str


@dataclass
class FakeGenerationClient(GenerationClient):
    """Fake generation client returning queued payloads."""

    responses: list[str] = field(default_factory=list)
    default_payload: dict[str, object] = field(
        default_factory=lambda: dict(LISTING_PAYLOAD)
    )
    calls: list[GenerateCall] = field(default_factory=list)
    error: Exception | None = None
    failing_images: set[bytes] = field(default_factory=set)
    edited: list[bytes] = field(default_factory=list)

    async def generate_structured(
        self,
        *,
        prompt: str,
        images: Sequence[ImageAttachment],
        schema: dict[str, object],
        schema_name: str,
    ) -> str:
        self.calls.append(
            GenerateCall(prompt=prompt, images=list(images), schema_name=schema_name)
        )
        if self.error is not None:
            raise self.error
        if self.responses:
            return self.responses.pop(0)
        return json.dumps(self.default_payload)

    async def edit_image(
        self, *, prompt: str, image: ImageAttachment
    ) -> list[ContentPart]:
        self.edited.append(image.data)
        if image.data in self.failing_images:
            raise RuntimeError("image model overloaded")
        return [
            ContentPart(mime_type="text/plain", data=b"staged"),
            ContentPart(mime_type="image/png", data=b"staged-" + image.data),
        ]


def make_photos(count: int = 5) -> tuple[Photo, ...]:
    return tuple(
        Photo(
            name=f"room-{index}.jpg",
            size=1000 + index,
            last_modified=1700000000000 + index,
            mime_type="image/jpeg",
            data=f"photo-{index}".encode(),
        )
        for index in range(count)
    )


def make_snapshot(**overrides: object) -> FormSnapshot:
    values: dict[str, object] = {
        "photos": make_photos(),
        "address": "Hlavní 1",
        "category": PropertyCategory.APARTMENT,
    }
    values.update(overrides)
    return FormSnapshot(**values)  # type: ignore[arg-type]


def make_result(**overrides: object) -> ListingResult:
    payload = dict(LISTING_PAYLOAD)
    payload.update(overrides)
    return ListingResult.model_validate(payload)


def make_entry(**snapshot_overrides: object) -> SessionEntry:
    return SessionEntry(
        snapshot=make_snapshot(**snapshot_overrides), result=make_result()
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(openai_api_key="openai-key")


@pytest.fixture
def generation_client() -> FakeGenerationClient:
    return FakeGenerationClient()


@pytest.fixture
def gateway(generation_client: FakeGenerationClient) -> ListingGateway:
    return ListingGateway(client=generation_client)


@pytest.fixture
def workflow(gateway: ListingGateway) -> ListingWorkflow:
    return ListingWorkflow(gateway=gateway, composer=PromptComposer())


@pytest.fixture
def container(
    settings: Settings, gateway: ListingGateway, workflow: ListingWorkflow
) -> AppContainer:
    session = ListingSession(
        workflow=workflow,
        staging=StagingOrchestrator(gateway=gateway),
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        gateway=gateway,
        session=session,
        close_resources=close_resources,
    )
