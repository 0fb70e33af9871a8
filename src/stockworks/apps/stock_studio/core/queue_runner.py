"""Sequential batch image generation over a prompt list."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, List, Optional, Sequence, Tuple

from .errors import QueueStateError
from .models import (
    DEFAULT_ASPECT_RATIO,
    AspectRatio,
    ImageItem,
    PromptItem,
    QueuePhase,
    QueueRunState,
)

logger = logging.getLogger(__name__)


class LivenessToken:
    """Flag checked after every await before state is mutated."""

    __slots__ = ("_alive",)

    def __init__(self) -> None:
        self._alive = True

    @property
    def alive(self) -> bool:
        return self._alive

    def revoke(self) -> None:
        self._alive = False


class QueueRunner:
    """Drive one ``generate_image`` call at a time across a prompt list.

    ``start()`` runs until the list is exhausted or ``pause()`` is called. The
    cursor advances by one per dispatched item whether or not the item
    succeeded; failed items are logged and skipped. Results are kept
    most-recent-first.

    Replacing the prompt list (``set_prompts``) or tearing the runner down
    (``close``) revokes the current liveness token, so a request that is still
    in flight completes silently without touching the new state.
    """

    def __init__(
        self,
        client,
        prompts: Sequence[PromptItem] = (),
        *,
        aspect_ratio: "str | AspectRatio" = DEFAULT_ASPECT_RATIO,
        on_update: Optional[Callable[[QueueRunState], None]] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self._prompts: Tuple[PromptItem, ...] = tuple(prompts)
        self._aspect_ratio = AspectRatio.parse(aspect_ratio)
        self._on_update = on_update
        self._clock = clock
        self._images: List[ImageItem] = []
        self._running = False
        self._cursor = 0
        self._progress = 0.0
        self._loop_active = False
        self._token = LivenessToken()
        self._dispatch_lock: Optional[asyncio.Lock] = None

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def prompts(self) -> Tuple[PromptItem, ...]:
        return self._prompts

    @property
    def images(self) -> List[ImageItem]:
        return list(self._images)

    @property
    def aspect_ratio(self) -> AspectRatio:
        return self._aspect_ratio

    @property
    def state(self) -> QueueRunState:
        return QueueRunState(
            is_running=self._running,
            cursor=self._cursor,
            progress_percent=self._progress,
            total=len(self._prompts),
        )

    @property
    def phase(self) -> QueuePhase:
        return self.state.phase

    @property
    def is_running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    def set_aspect_ratio(self, aspect_ratio: "str | AspectRatio") -> None:
        if self._running:
            raise QueueStateError(
                "Aspect ratio cannot change while the queue is running"
            )
        self._aspect_ratio = AspectRatio.parse(aspect_ratio)

    def set_prompts(self, prompts: Sequence[PromptItem]) -> None:
        """Treat *prompts* as a new queue: halt, reset cursor and progress."""

        self._token.revoke()
        self._token = LivenessToken()
        self._prompts = tuple(prompts)
        self._running = False
        self._loop_active = False
        self._cursor = 0
        self._progress = 0.0
        self._notify()

    def clear_images(self) -> None:
        self._images.clear()

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------
    def pause(self) -> None:
        """Stop dispatching after the in-flight request (if any) completes."""

        if not self._running:
            return
        self._running = False
        logger.info("Queue paused at %d/%d", self._cursor, len(self._prompts))
        self._notify()

    def close(self) -> None:
        """Tear the runner down; in-flight results are discarded."""

        self._token.revoke()
        self._running = False
        self._loop_active = False

    async def start(self) -> QueueRunState:
        """Run (or resume) the queue; returns the state when the run stops."""

        if not self._prompts or self._running:
            return self.state

        self._running = True
        if self._loop_active:
            # Paused while a request was still in flight: that run resumes.
            self._notify()
            return self.state

        self._loop_active = True
        token = self._token
        prompts = self._prompts
        logger.info(
            "Queue started at %d/%d (aspect ratio %s)",
            self._cursor,
            len(prompts),
            self._aspect_ratio.value,
        )
        self._notify()
        try:
            await self._run(token, prompts)
        finally:
            if token.alive:
                self._running = False
                self._loop_active = False
                self._notify()
        return self.state

    async def _run(self, token: LivenessToken, prompts: Tuple[PromptItem, ...]) -> None:
        lock = self._get_dispatch_lock()
        while token.alive and self._running:
            if self._cursor >= len(prompts):
                logger.info("Queue completed: %d images", len(self._images))
                return

            item = prompts[self._cursor]
            aspect_ratio = self._aspect_ratio
            image_data: Optional[str] = None
            async with lock:
                if not token.alive:
                    return
                try:
                    image_data = await self._client.generate_image(
                        item.text, aspect_ratio
                    )
                except Exception as exc:  # noqa: BLE001 - item is skipped
                    logger.error(
                        "Failed to generate image for prompt %s: %s", item.id, exc
                    )

            if not token.alive:
                logger.debug(
                    "Discarding result for prompt %s (queue replaced)", item.id
                )
                return

            if image_data:
                self._images.insert(
                    0,
                    ImageItem.create(
                        prompt_text=item.text,
                        image_data=image_data,
                        created_at=self._clock(),
                        aspect_ratio=aspect_ratio.value,
                    ),
                )
            self._cursor += 1
            self._progress = 100.0 * self._cursor / len(prompts)
            self._notify()

    def _get_dispatch_lock(self) -> asyncio.Lock:
        if self._dispatch_lock is None:
            self._dispatch_lock = asyncio.Lock()
        return self._dispatch_lock

    def _notify(self) -> None:
        if self._on_update is None:
            return
        try:
            self._on_update(self.state)
        except Exception:  # noqa: BLE001
            logger.exception("Queue update callback failed")
