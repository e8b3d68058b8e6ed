"""FastAPI application factory."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, Response, status

from listing_studio.api.models import (
    ListingRequest,
    ListingResponse,
    StagingRequest,
    StagingStatus,
    StagingTaskView,
)
from listing_studio.app_logging import configure_logging
from listing_studio.containers import AppContainer
from listing_studio.domain.errors import (
    GenerationFailure,
    NoActiveListing,
    UnknownPhotos,
    ValidationFailure,
)
from listing_studio.domain.listings import validate_snapshot
from listing_studio.services.staging import StagingRun

_GENERATION_ERROR = "Listing generation failed. Please try again."


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/listing")
    async def submit_listing(
        payload: ListingRequest, request: Request
    ) -> ListingResponse:
        """Generate a listing, or refine the current one."""
        state_container: AppContainer = request.app.state.container
        try:
            snapshot = validate_snapshot(payload.to_snapshot())
        except ValidationFailure as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
            ) from exc
        try:
            outcome = await state_container.session.submit(snapshot)
        except GenerationFailure as exc:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY, detail=_GENERATION_ERROR
            ) from exc
        return ListingResponse(
            listing=outcome.entry.result,
            skipped_image_analysis=outcome.skips_image_analysis,
        )

    @app.post("/listing/description")
    async def regenerate_description(request: Request) -> ListingResponse:
        """Regenerate only the description of the current listing."""
        state_container: AppContainer = request.app.state.container
        try:
            entry = await state_container.session.regenerate_description()
        except NoActiveListing as exc:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT, detail=str(exc)
            ) from exc
        except GenerationFailure as exc:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY, detail=_GENERATION_ERROR
            ) from exc
        return ListingResponse(listing=entry.result)

    @app.delete("/listing", status_code=status.HTTP_204_NO_CONTENT)
    async def reset_listing(request: Request) -> Response:
        """Forget the current listing."""
        state_container: AppContainer = request.app.state.container
        await state_container.session.reset()
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.post("/staging", status_code=status.HTTP_202_ACCEPTED)
    async def start_staging(
        payload: StagingRequest, request: Request
    ) -> StagingStatus:
        """Start virtual staging for the selected photos."""
        state_container: AppContainer = request.app.state.container
        session = state_container.session
        try:
            run = session.stage(payload.photo_names)
        except NoActiveListing as exc:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT, detail=str(exc)
            ) from exc
        except UnknownPhotos as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
            ) from exc
        return _staging_status(run or session.staging.current)

    @app.get("/staging")
    async def staging_status(request: Request) -> StagingStatus:
        """Return the state of the latest staging run."""
        state_container: AppContainer = request.app.state.container
        return _staging_status(state_container.session.staging.current)

    return app


def _staging_status(run: StagingRun | None) -> StagingStatus:
    if run is None:
        return StagingStatus(tasks=[], any_failed=False, done=True)
    return StagingStatus(
        tasks=[StagingTaskView.from_task(task) for task in run.snapshot()],
        any_failed=run.any_failed,
        done=run.done,
    )
