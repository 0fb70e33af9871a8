import asyncio

from stockworks.apps.stock_studio.core.credentials import CredentialGate
from stockworks.gui.state import SessionKeyHost


def test_staged_key_is_committed_on_select():
    host = SessionKeyHost(("GEMINI_API_KEY",), environ={})
    gate = CredentialGate(host)

    assert asyncio.run(gate.check()) is False
    host.stage_key("  pasted-key  ")
    assert asyncio.run(gate.select()) is True
    assert host.resolved_key() == "pasted-key"


def test_select_without_staged_key_keeps_gate_closed():
    host = SessionKeyHost(("GEMINI_API_KEY",), environ={})
    gate = CredentialGate(host)

    host.stage_key("   ")
    assert asyncio.run(gate.select()) is False
    assert host.resolved_key() == ""


def test_environment_key_is_used_when_nothing_selected():
    host = SessionKeyHost(("GEMINI_API_KEY", "API_KEY"), environ={"API_KEY": "env-key"})

    assert asyncio.run(host.has_selected_key()) is True
    assert host.resolved_key() == "env-key"

    host.stage_key("override")
    asyncio.run(host.open_select_key())
    assert host.resolved_key() == "override"
