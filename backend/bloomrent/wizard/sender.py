"""One-shot guard around the "send tenant invitation" action.

Opening the sending-invitation page fires the send. A page can fire it
more than once (re-mounts, double clicks, two requests racing), but the
invite must be created and emailed only once. Each distinct send is an
``InvitationSendRequest`` with a small state machine::

    idle -> sending -> sent
                    -> failed -> (retry) -> sending

``trigger`` only leaves ``idle``; ``retry`` only leaves ``failed``. Every
other call is a no-op that reports the current state.

Requests live in a per-process registry keyed by the caller, so the guard
holds for one server process.
"""

import asyncio
import logging
from collections import OrderedDict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class SendState(str, Enum):
    IDLE = "idle"
    SENDING = "sending"
    SENT = "sent"
    FAILED = "failed"


@dataclass(frozen=True)
class SendSnapshot:
    key: str
    state: SendState
    result: Any = None
    # True when this call actually ran the action
    performed: bool = False


class InvitationSendRequest:
    def __init__(self, key: str):
        self.key = key
        self.state = SendState.IDLE
        self.result: Any = None
        self.attempts = 0

    def snapshot(self, performed: bool = False) -> SendSnapshot:
        return SendSnapshot(self.key, self.state, self.result, performed)

    def begin(self, retry: bool = False) -> bool:
        """Move to ``sending`` if allowed; return whether the action may run."""
        allowed_from = SendState.FAILED if retry else SendState.IDLE
        if self.state is not allowed_from:
            return False
        self.state = SendState.SENDING
        self.attempts += 1
        return True

    def finish(self, result: Any, succeeded: bool) -> None:
        self.result = result
        self.state = SendState.SENT if succeeded else SendState.FAILED


class InvitationSendRegistry:
    """Holds send requests by key, evicting the oldest settled ones."""

    def __init__(self, max_entries: int = 1024):
        self.max_entries = max_entries
        self._requests: OrderedDict[str, InvitationSendRequest] = OrderedDict()
        self._lock = asyncio.Lock()

    @staticmethod
    def make_key(
        owner_id: str,
        tenant_id: str,
        unit_id: str,
        property_id: str,
        idempotency_key: str | None = None,
    ) -> str:
        key = f"{owner_id}:{tenant_id}:{unit_id}:{property_id}"
        if idempotency_key:
            key = f"{key}:{idempotency_key}"
        return key

    def get(self, key: str) -> InvitationSendRequest | None:
        return self._requests.get(key)

    def _evict(self) -> None:
        while len(self._requests) > self.max_entries:
            for key, request in self._requests.items():
                if request.state is not SendState.SENDING:
                    del self._requests[key]
                    break
            else:
                return

    async def _claim(self, key: str, retry: bool) -> tuple[InvitationSendRequest, bool]:
        async with self._lock:
            request = self._requests.get(key)
            if request is None:
                if retry:
                    # Nothing failed under this key yet
                    return InvitationSendRequest(key), False
                request = InvitationSendRequest(key)
                self._requests[key] = request
                self._evict()
            return request, request.begin(retry=retry)

    async def run(
        self,
        key: str,
        action: Callable[[], Awaitable[Any]],
        retry: bool = False,
    ) -> SendSnapshot:
        request, allowed = await self._claim(key, retry)
        if not allowed:
            logger.debug(f"Invitation send {key} is {request.state.value}; ignoring")
            return request.snapshot()

        try:
            result = await action()
        except Exception:
            async with self._lock:
                request.finish(None, succeeded=False)
            logger.exception(f"Invitation send {key} raised")
            raise

        async with self._lock:
            request.finish(result, succeeded=bool(getattr(result, "success", False)))
        logger.info(f"Invitation send {key} finished as {request.state.value}")
        return request.snapshot(performed=True)

    async def trigger(self, key: str, action: Callable[[], Awaitable[Any]]) -> SendSnapshot:
        return await self.run(key, action)

    async def retry(self, key: str, action: Callable[[], Awaitable[Any]]) -> SendSnapshot:
        return await self.run(key, action, retry=True)

    def clear(self) -> None:
        self._requests.clear()


invitation_sends = InvitationSendRegistry()


def get_invitation_registry() -> InvitationSendRegistry:
    """FastAPI dependency for the process-wide registry."""
    return invitation_sends
