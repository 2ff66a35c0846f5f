"""Tests for CancellationToken."""

from __future__ import annotations

import asyncio
import threading

import pytest

from storeprobe.cancellation import CancellationToken
from storeprobe.exceptions import ProbeCanceled


class TestCancellationToken:
    """Tests for the leveled cancellation token."""

    def test_starts_uncancelled(self) -> None:
        token = CancellationToken()
        assert token.is_cancelled is False
        token.raise_if_cancelled()

    def test_cancel_is_leveled(self) -> None:
        token = CancellationToken()
        token.cancel()
        assert token.is_cancelled is True
        # Still cancelled at every later checkpoint
        assert token.is_cancelled is True

    def test_cancel_is_idempotent(self) -> None:
        token = CancellationToken()
        token.cancel()
        token.cancel()
        assert token.is_cancelled is True

    def test_raise_if_cancelled(self) -> None:
        token = CancellationToken()
        token.cancel()
        with pytest.raises(ProbeCanceled):
            token.raise_if_cancelled()

    @pytest.mark.asyncio
    async def test_wait_returns_immediately_when_cancelled(self) -> None:
        token = CancellationToken()
        token.cancel()
        await asyncio.wait_for(token.wait(), timeout=1.0)

    @pytest.mark.asyncio
    async def test_wait_wakes_on_cancel(self) -> None:
        token = CancellationToken()
        waiter = asyncio.ensure_future(token.wait())
        await asyncio.sleep(0)
        assert not waiter.done()

        token.cancel()
        await asyncio.wait_for(waiter, timeout=1.0)

    @pytest.mark.asyncio
    async def test_cancel_from_another_thread(self) -> None:
        token = CancellationToken()
        waiter = asyncio.ensure_future(token.wait())
        await asyncio.sleep(0)

        thread = threading.Thread(target=token.cancel)
        thread.start()
        thread.join()

        await asyncio.wait_for(waiter, timeout=1.0)
        assert token.is_cancelled

    @pytest.mark.asyncio
    async def test_cancel_after(self) -> None:
        token = CancellationToken()
        token.cancel_after(0.01)
        await asyncio.wait_for(token.wait(), timeout=1.0)
        assert token.is_cancelled

    @pytest.mark.asyncio
    async def test_cancel_after_can_be_disarmed(self) -> None:
        token = CancellationToken()
        handle = token.cancel_after(0.01)
        handle.cancel()
        await asyncio.sleep(0.05)
        assert token.is_cancelled is False

    @pytest.mark.asyncio
    async def test_abandoned_waiter_is_removed(self) -> None:
        token = CancellationToken()
        waiter = asyncio.ensure_future(token.wait())
        await asyncio.sleep(0)
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter
        assert token._waiters == []
