"""One-shot invitation send guard."""

import asyncio
from types import SimpleNamespace

import pytest

from bloomrent.auth.roles import dashboard_for
from bloomrent.models.enums import UserRole
from bloomrent.wizard.sender import InvitationSendRegistry, SendState


def _action(calls: list, success: bool = True, gate: asyncio.Event | None = None):
    async def action():
        calls.append(1)
        if gate is not None:
            await gate.wait()
        return SimpleNamespace(success=success)
    return action


@pytest.mark.unit
class TestInvitationSendRegistry:

    @pytest.mark.asyncio
    async def test_trigger_runs_once(self):
        registry = InvitationSendRegistry()
        calls = []

        first = await registry.trigger("k", _action(calls))
        second = await registry.trigger("k", _action(calls))

        assert first.performed is True
        assert first.state is SendState.SENT
        assert second.performed is False
        assert second.state is SendState.SENT
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_concurrent_triggers_run_once(self):
        registry = InvitationSendRegistry()
        calls = []
        gate = asyncio.Event()

        first = asyncio.create_task(registry.trigger("k", _action(calls, gate=gate)))
        await asyncio.sleep(0)
        while not calls:
            await asyncio.sleep(0)

        # First send is in flight
        second = await registry.trigger("k", _action(calls))
        assert second.state is SendState.SENDING
        assert second.performed is False

        gate.set()
        done = await first
        assert done.state is SendState.SENT
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_failure_then_retry(self):
        registry = InvitationSendRegistry()
        calls = []

        failed = await registry.trigger("k", _action(calls, success=False))
        assert failed.state is SendState.FAILED

        # A plain trigger does not resend after failure
        again = await registry.trigger("k", _action(calls))
        assert again.performed is False
        assert again.state is SendState.FAILED

        retried = await registry.retry("k", _action(calls))
        assert retried.performed is True
        assert retried.state is SendState.SENT
        assert registry.get("k").attempts == 2
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_retry_ignored_unless_failed(self):
        registry = InvitationSendRegistry()
        calls = []

        unknown = await registry.retry("missing", _action(calls))
        assert unknown.performed is False
        assert unknown.state is SendState.IDLE
        assert registry.get("missing") is None

        await registry.trigger("k", _action(calls))
        sent = await registry.retry("k", _action(calls))
        assert sent.performed is False
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_exception_marks_failed(self):
        registry = InvitationSendRegistry()

        async def boom():
            raise RuntimeError("smtp down")

        with pytest.raises(RuntimeError):
            await registry.trigger("k", boom)
        assert registry.get("k").state is SendState.FAILED

    @pytest.mark.asyncio
    async def test_settled_requests_are_evicted(self):
        registry = InvitationSendRegistry(max_entries=2)
        for key in ("a", "b", "c"):
            await registry.trigger(key, _action([]))
        assert registry.get("a") is None
        assert registry.get("c") is not None

    def test_make_key(self):
        assert InvitationSendRegistry.make_key("o", "t", "u", "p") == "o:t:u:p"
        assert InvitationSendRegistry.make_key("o", "t", "u", "p", "abc") == "o:t:u:p:abc"


@pytest.mark.unit
class TestDashboardFor:

    @pytest.mark.parametrize(
        "role,route",
        [
            (UserRole.OWNER, "/owners/dashboard"),
            ("tenant", "/tenants/dashboard"),
            ("admin", "/admin/dashboard"),
            ("user", "/owners/dashboard"),
            ("landlord", "/"),
            (None, "/"),
        ],
    )
    def test_routes(self, role, route):
        assert dashboard_for(role) == route
