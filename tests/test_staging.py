"""Tests for the staging orchestrator."""

import asyncio
from dataclasses import dataclass, field

import pytest

from listing_studio.domain.listings import Photo
from listing_studio.domain.staging import StagingState, StagingTask
from listing_studio.services.generation import ContentPart, ListingGateway
from listing_studio.services.prompts import ImageAttachment
from listing_studio.services.staging import StagingOrchestrator, StagingRun
from tests.conftest import FakeGenerationClient, make_photos


@dataclass
class GatedGenerationClient(FakeGenerationClient):
    """Fake client whose image edits wait for a per-image release."""

    gates: dict[bytes, asyncio.Event] = field(default_factory=dict)

    async def edit_image(
        self, *, prompt: str, image: ImageAttachment
    ) -> list[ContentPart]:
        await self.gates[image.data].wait()
        return await super().edit_image(prompt=prompt, image=image)


def test_one_failure_leaves_siblings_succeeded() -> None:
    photos = make_photos(5)
    client = FakeGenerationClient(failing_images={photos[2].data})
    orchestrator = StagingOrchestrator(gateway=ListingGateway(client=client))

    async def scenario() -> list[StagingTask]:
        run = orchestrator.stage(photos)
        assert run is not None
        tasks = await run.wait()
        assert run.any_failed is True
        assert run.done is True
        return tasks

    tasks = asyncio.run(scenario())

    assert len(tasks) == 5
    states = [task.state for task in tasks]
    assert states.count(StagingState.FAILED) == 1
    assert states.count(StagingState.SUCCEEDED) == 4
    failed = tasks[2]
    assert failed.state is StagingState.FAILED
    assert failed.enhanced is None
    assert failed.error and "overloaded" in failed.error
    assert tasks[0].enhanced is not None
    assert tasks[0].enhanced.data == b"staged-" + photos[0].data


def test_empty_selection_is_a_noop() -> None:
    orchestrator = StagingOrchestrator(
        gateway=ListingGateway(client=FakeGenerationClient())
    )

    assert orchestrator.stage([]) is None
    assert orchestrator.current is None


def test_updates_are_published_as_each_task_finishes() -> None:
    photos = make_photos(3)
    gates = {photo.data: asyncio.Event() for photo in photos}
    client = GatedGenerationClient(gates=gates)
    orchestrator = StagingOrchestrator(gateway=ListingGateway(client=client))

    async def scenario() -> tuple[list[StagingState], list[StagingTask]]:
        run = orchestrator.stage(photos)
        assert run is not None
        initial = [task.state for task in run.snapshot()]
        seen: list[StagingTask] = []

        async def collect() -> None:
            async for task in run.updates():
                seen.append(task)

        collector = asyncio.create_task(collect())
        await asyncio.sleep(0)
        gates[photos[1].data].set()
        while not seen:
            await asyncio.sleep(0)
        assert seen[0].key == 1
        assert run.task(0).state is StagingState.IN_PROGRESS
        assert run.done is False
        gates[photos[0].data].set()
        gates[photos[2].data].set()
        await asyncio.wait_for(collector, timeout=1)
        return initial, seen

    initial, seen = asyncio.run(scenario())

    assert initial == [StagingState.IN_PROGRESS] * 3
    assert sorted(task.key for task in seen) == [0, 1, 2]
    assert all(task.state is StagingState.SUCCEEDED for task in seen)


def test_concurrency_cap_limits_in_flight_calls() -> None:
    photos = make_photos(4)
    in_flight = 0
    peak = 0

    class CountingClient(FakeGenerationClient):
        async def edit_image(self, *, prompt, image):  # type: ignore[no-untyped-def]
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return await super().edit_image(prompt=prompt, image=image)

    orchestrator = StagingOrchestrator(
        gateway=ListingGateway(client=CountingClient()), max_concurrency=2
    )

    async def scenario() -> list[StagingTask]:
        run = orchestrator.stage(photos)
        assert run is not None
        return await run.wait()

    tasks = asyncio.run(scenario())

    assert peak == 2
    assert all(task.state is StagingState.SUCCEEDED for task in tasks)


def test_restaging_replaces_current_run() -> None:
    photos = make_photos(3)
    orchestrator = StagingOrchestrator(
        gateway=ListingGateway(client=FakeGenerationClient())
    )

    async def scenario() -> None:
        first = orchestrator.stage(photos)
        assert first is not None
        await first.wait()
        second = orchestrator.stage(photos[:1])
        assert second is not None
        assert orchestrator.current is second
        assert len(await second.wait()) == 1

    asyncio.run(scenario())


def test_terminal_task_cannot_transition_again() -> None:
    photo = Photo(name="a.jpg", size=1, last_modified=1, mime_type="image/jpeg")
    task = StagingTask(key=0, source=photo)
    done = task.transition(StagingState.IN_PROGRESS).transition(
        StagingState.FAILED, error="boom"
    )

    assert done.is_terminal
    with pytest.raises(ValueError):
        done.transition(StagingState.SUCCEEDED)
    with pytest.raises(ValueError):
        task.transition(StagingState.SUCCEEDED)


def test_run_publishes_work_started_in_background() -> None:
    photo = Photo(name="a.jpg", size=1, last_modified=1, mime_type="image/jpeg")
    run = StagingRun()
    pending = StagingTask(key=0, source=photo)
    run.publish(pending)
    in_progress = pending.transition(StagingState.IN_PROGRESS)
    run.publish(in_progress)

    async def finish() -> None:
        run.publish(in_progress.transition(StagingState.FAILED, error="boom"))

    async def scenario() -> list[StagingTask]:
        run.start(finish())
        return await run.wait()

    tasks = asyncio.run(scenario())

    assert [task.state for task in tasks] == [StagingState.FAILED]
    assert run.any_failed is True
