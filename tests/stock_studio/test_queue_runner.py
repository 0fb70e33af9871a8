from __future__ import annotations

import asyncio
import base64
from typing import List, Optional, Set

import pytest

from stockworks.apps.stock_studio.core.errors import QueueStateError, TransportError
from stockworks.apps.stock_studio.core.models import (
    AspectRatio,
    PromptItem,
    QueuePhase,
    QueueRunState,
)
from stockworks.apps.stock_studio.core.queue_runner import LivenessToken, QueueRunner


def _encode(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


class ScriptedImageClient:
    """Returns an image per prompt; prompts listed in ``failing`` raise."""

    def __init__(self, failing: Optional[Set[str]] = None) -> None:
        self.failing = failing or set()
        self.calls: List[tuple] = []

    async def generate_image(self, prompt_text, aspect_ratio):
        self.calls.append((prompt_text, aspect_ratio))
        await asyncio.sleep(0)
        if prompt_text in self.failing:
            raise TransportError("quota exceeded")
        return _encode(prompt_text)


class GatedImageClient:
    """Blocks every request until ``release`` is set; tracks concurrency."""

    def __init__(self) -> None:
        self.calls: List[str] = []
        self.active = 0
        self.max_active = 0
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def generate_image(self, prompt_text, aspect_ratio):
        self.calls.append(prompt_text)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        self.started.set()
        try:
            await self.release.wait()
        finally:
            self.active -= 1
        return _encode(prompt_text)


def _prompts(*texts: str) -> List[PromptItem]:
    return [PromptItem.create(text) for text in texts]


def test_failed_item_is_skipped_and_queue_completes():
    client = ScriptedImageClient(failing={"second"})
    runner = QueueRunner(client, _prompts("first", "second", "third"))

    state = asyncio.run(runner.start())

    assert state == QueueRunState(
        is_running=False, cursor=3, progress_percent=100.0, total=3
    )
    assert state.phase == QueuePhase.COMPLETED
    assert [call[0] for call in client.calls] == ["first", "second", "third"]
    # Most recent first
    assert [image.prompt_text for image in runner.images] == ["third", "first"]


def test_start_with_empty_queue_is_noop():
    client = ScriptedImageClient()
    runner = QueueRunner(client, [])

    state = asyncio.run(runner.start())

    assert state.phase == QueuePhase.IDLE
    assert client.calls == []


def test_images_carry_aspect_ratio_and_timestamp():
    client = ScriptedImageClient()
    runner = QueueRunner(
        client, _prompts("barn"), aspect_ratio="16:9", clock=lambda: 1700000000.5
    )

    asyncio.run(runner.start())

    image = runner.images[0]
    assert client.calls == [("barn", AspectRatio.WIDESCREEN_16_9)]
    assert image.aspect_ratio == "16:9"
    assert image.image_bytes() == b"barn"
    assert image.data_uri() == "data:image/png;base64," + image.image_data
    assert image.download_filename() == "stock-ai-1700000000500.png"


def test_pause_stops_after_current_item_and_resume_continues():
    client = ScriptedImageClient()
    runner: QueueRunner
    paused_once = []

    def _pause_after_first(state: QueueRunState) -> None:
        if state.cursor == 1 and state.is_running and not paused_once:
            paused_once.append(True)
            runner.pause()

    runner = QueueRunner(client, _prompts("a", "b", "c"), on_update=_pause_after_first)

    async def scenario():
        paused = await runner.start()
        assert paused.phase == QueuePhase.PAUSED
        assert paused.cursor == 1
        assert len(client.calls) == 1
        return await runner.start()

    final = asyncio.run(scenario())

    assert final.phase == QueuePhase.COMPLETED
    assert [call[0] for call in client.calls] == ["a", "b", "c"]
    assert len(runner.images) == 3


def test_pause_then_resume_while_request_in_flight_keeps_single_loop():
    async def scenario():
        client = GatedImageClient()
        runner = QueueRunner(client, _prompts("a", "b"))
        task = asyncio.create_task(runner.start())
        await client.started.wait()

        runner.pause()
        assert runner.state.is_running is False
        resumed = await runner.start()
        assert resumed.is_running is True

        client.release.set()
        final = await task
        return client, runner, final

    client, runner, final = asyncio.run(scenario())

    assert final.phase == QueuePhase.COMPLETED
    assert client.calls == ["a", "b"]
    assert client.max_active == 1
    assert len(runner.images) == 2


def test_set_prompts_discards_in_flight_result_and_resets():
    async def scenario():
        client = GatedImageClient()
        runner = QueueRunner(client, _prompts("old-1", "old-2"))
        task = asyncio.create_task(runner.start())
        await client.started.wait()

        runner.set_prompts(_prompts("new-1"))
        assert runner.state == QueueRunState(
            is_running=False, cursor=0, progress_percent=0.0, total=1
        )

        client.release.set()
        await task
        return client, runner

    client, runner = asyncio.run(scenario())

    assert client.calls == ["old-1"]
    assert runner.images == []
    assert runner.state.cursor == 0
    assert runner.phase == QueuePhase.IDLE


def test_new_run_waits_for_request_of_replaced_queue():
    async def scenario():
        client = GatedImageClient()
        runner = QueueRunner(client, _prompts("old"))
        first = asyncio.create_task(runner.start())
        await client.started.wait()

        runner.set_prompts(_prompts("new"))
        second = asyncio.create_task(runner.start())
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert client.calls == ["old"]

        client.release.set()
        await first
        final = await second
        return client, runner, final

    client, runner, final = asyncio.run(scenario())

    assert client.max_active == 1
    assert client.calls == ["old", "new"]
    assert [image.prompt_text for image in runner.images] == ["new"]
    assert final.phase == QueuePhase.COMPLETED


def test_aspect_ratio_locked_while_running():
    async def scenario():
        client = GatedImageClient()
        runner = QueueRunner(client, _prompts("a"))
        task = asyncio.create_task(runner.start())
        await client.started.wait()
        with pytest.raises(QueueStateError):
            runner.set_aspect_ratio("1:1")
        client.release.set()
        await task
        runner.set_aspect_ratio("1:1")
        return runner

    runner = asyncio.run(scenario())
    assert runner.aspect_ratio == AspectRatio.SQUARE


def test_close_discards_in_flight_result():
    async def scenario():
        client = GatedImageClient()
        runner = QueueRunner(client, _prompts("a", "b"))
        task = asyncio.create_task(runner.start())
        await client.started.wait()
        runner.close()
        client.release.set()
        await task
        return client, runner

    client, runner = asyncio.run(scenario())

    assert client.calls == ["a"]
    assert runner.images == []
    assert runner.state.cursor == 0


def test_update_callback_errors_do_not_stop_queue():
    def _broken(state):
        raise RuntimeError("ui gone")

    runner = QueueRunner(ScriptedImageClient(), _prompts("a", "b"), on_update=_broken)
    state = asyncio.run(runner.start())
    assert state.cursor == 2


def test_clear_images_keeps_progress():
    runner = QueueRunner(ScriptedImageClient(), _prompts("a"))
    asyncio.run(runner.start())
    runner.clear_images()
    assert runner.images == []
    assert runner.state.cursor == 1


def test_liveness_token_revoke():
    token = LivenessToken()
    assert token.alive
    token.revoke()
    assert not token.alive
