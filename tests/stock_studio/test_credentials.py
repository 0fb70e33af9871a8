from __future__ import annotations

import asyncio

import pytest

from stockworks.apps.stock_studio.core.credentials import (
    CredentialGate,
    KeySelectionHost,
)
from stockworks.apps.stock_studio.core.errors import CredentialUnavailable


class FakeHost:
    def __init__(self, selected: bool = False, grant_on_select: bool = True) -> None:
        self.selected = selected
        self.grant_on_select = grant_on_select
        self.select_calls = 0

    async def has_selected_key(self) -> bool:
        return self.selected

    async def open_select_key(self) -> None:
        self.select_calls += 1
        if self.grant_on_select:
            self.selected = True


class BrokenHost:
    async def has_selected_key(self) -> bool:
        raise RuntimeError("host bridge missing")

    async def open_select_key(self) -> None:
        raise RuntimeError("dialog failed")


def test_gate_starts_closed_until_checked():
    gate = CredentialGate(environ={"GEMINI_API_KEY": "abc"})
    assert gate.available is False
    assert gate.checked is False
    with pytest.raises(CredentialUnavailable):
        gate.require()


def test_environment_key_opens_gate():
    gate = CredentialGate(environ={"API_KEY": "abc"})
    assert asyncio.run(gate.check()) is True
    assert gate.checked
    gate.require()


def test_blank_environment_key_keeps_gate_closed():
    gate = CredentialGate(environ={"GEMINI_API_KEY": "   "})
    assert asyncio.run(gate.check()) is False


def test_host_selection_rechecks_availability():
    host = FakeHost(selected=False)
    gate = CredentialGate(host)

    assert asyncio.run(gate.check()) is False
    assert asyncio.run(gate.select()) is True
    assert host.select_calls == 1
    assert gate.available


def test_cancelled_selection_leaves_gate_closed():
    host = FakeHost(selected=False, grant_on_select=False)
    gate = CredentialGate(host)

    assert asyncio.run(gate.select()) is False
    assert host.select_calls == 1
    assert gate.available is False


def test_host_errors_read_as_unavailable():
    gate = CredentialGate(BrokenHost())

    assert asyncio.run(gate.check()) is False
    assert asyncio.run(gate.select()) is False
    assert gate.checked


def test_select_without_host_rechecks_environment():
    environ = {}
    gate = CredentialGate(environ=environ)
    assert asyncio.run(gate.select()) is False
    environ["GEMINI_API_KEY"] = "late-key"
    assert asyncio.run(gate.select()) is True


def test_fake_host_satisfies_protocol():
    assert isinstance(FakeHost(), KeySelectionHost)
