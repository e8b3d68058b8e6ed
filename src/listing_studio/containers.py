"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from listing_studio.adapters.openai_listing_client import OpenAIListingClient
from listing_studio.config import Settings, parse_concurrency_limit
from listing_studio.services.generation import ListingGateway
from listing_studio.services.listings import ListingSession, ListingWorkflow
from listing_studio.services.prompts import PromptComposer
from listing_studio.services.staging import StagingOrchestrator


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    gateway: ListingGateway
    session: ListingSession
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    openai_client = OpenAIListingClient.create(
        resolved_settings.openai_api_key,
        model=resolved_settings.openai_model,
        image_model=resolved_settings.openai_image_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
        timeout_seconds=resolved_settings.request_timeout_seconds,
    )
    gateway = ListingGateway(client=openai_client)
    composer = PromptComposer(
        language=resolved_settings.listing_language,
        currency=resolved_settings.price_currency,
    )
    session = ListingSession(
        workflow=ListingWorkflow(gateway=gateway, composer=composer),
        staging=StagingOrchestrator(
            gateway=gateway,
            max_concurrency=parse_concurrency_limit(
                resolved_settings.staging_max_concurrency
            ),
        ),
    )

    async def close_resources() -> None:
        await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        gateway=gateway,
        session=session,
        close_resources=close_resources,
    )
