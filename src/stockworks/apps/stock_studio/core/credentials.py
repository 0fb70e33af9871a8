"""Credential gating for the remote generation service."""

from __future__ import annotations

import logging
import os
from typing import Mapping, Optional, Protocol, Sequence, runtime_checkable

from .errors import CredentialUnavailable

logger = logging.getLogger(__name__)


@runtime_checkable
class KeySelectionHost(Protocol):
    """Host-provided key selection (e.g. an embedding page or a login form)."""

    async def has_selected_key(self) -> bool:
        ...

    async def open_select_key(self) -> None:
        ...


class CredentialGate:
    """Track whether a usable API key is available.

    With a host, availability comes from ``host.has_selected_key()``; without
    one it falls back to the presence of an API key in the environment.
    """

    def __init__(
        self,
        host: Optional[KeySelectionHost] = None,
        *,
        env_vars: Sequence[str] = ("GEMINI_API_KEY", "API_KEY"),
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.host = host
        self.env_vars = tuple(env_vars)
        self._environ = environ
        self._available = False
        self._checked = False

    @property
    def available(self) -> bool:
        return self._available

    @property
    def checked(self) -> bool:
        return self._checked

    def _env_has_key(self) -> bool:
        env = os.environ if self._environ is None else self._environ
        return any((env.get(name) or "").strip() for name in self.env_vars)

    async def check(self) -> bool:
        """Query availability; host errors are logged and read as unavailable."""

        available = False
        try:
            if self.host is not None:
                available = bool(await self.host.has_selected_key())
            else:
                available = self._env_has_key()
        except Exception as exc:  # noqa: BLE001 - a failed check closes the gate
            logger.error("Error checking API key: %s", exc)
            available = False
        self._available = available
        self._checked = True
        return available

    async def select(self) -> bool:
        """Run the host's key selection, then re-query availability.

        The host gives no synchronous confirmation (the user may cancel), so
        the gate is only opened if the follow-up check says so.
        """

        if self.host is None:
            logger.info("No key selection host; re-checking environment")
            return await self.check()
        try:
            await self.host.open_select_key()
        except Exception as exc:  # noqa: BLE001
            logger.error("Key selection failed: %s", exc)
        return await self.check()

    def require(self) -> None:
        if not self._available:
            raise CredentialUnavailable(
                "No API key selected; select a key before generating content"
            )
