"""Tests for the CANCEL sentinel and CancellationToken."""

from __future__ import annotations

import asyncio
import copy
import pickle

import pytest

from pi.prompts.cancellation import CANCEL, CancellationToken, _Cancel, is_cancel


class TestCancelSentinel:
    def test_single_instance(self) -> None:
        assert _Cancel() is CANCEL

    def test_is_falsy(self) -> None:
        assert not CANCEL

    def test_repr(self) -> None:
        assert repr(CANCEL) == "CANCEL"

    def test_is_cancel(self) -> None:
        assert is_cancel(CANCEL)
        assert not is_cancel(None)
        assert not is_cancel(False)
        assert not is_cancel("")

    def test_survives_copy_and_pickle(self) -> None:
        assert copy.deepcopy(CANCEL) is CANCEL
        assert pickle.loads(pickle.dumps(CANCEL)) is CANCEL


class TestCancellationToken:
    def test_starts_uncancelled(self) -> None:
        assert not CancellationToken().cancelled

    def test_listeners_called_once(self) -> None:
        token = CancellationToken()
        calls: list[int] = []
        token.add_listener(lambda: calls.append(1))
        token.cancel()
        token.cancel()
        assert token.cancelled
        assert calls == [1]

    def test_late_listener_called_immediately(self) -> None:
        token = CancellationToken()
        token.cancel()
        calls: list[int] = []
        remove = token.add_listener(lambda: calls.append(1))
        assert calls == [1]
        remove()

    def test_removed_listener_not_called(self) -> None:
        token = CancellationToken()
        calls: list[int] = []
        remove = token.add_listener(lambda: calls.append(1))
        remove()
        remove()
        token.cancel()
        assert calls == []

    def test_raise_if_cancelled(self) -> None:
        token = CancellationToken()
        token.raise_if_cancelled()
        token.cancel()
        with pytest.raises(asyncio.CancelledError):
            token.raise_if_cancelled()

    @pytest.mark.asyncio
    async def test_wait(self) -> None:
        token = CancellationToken()
        waiter = asyncio.ensure_future(token.wait())
        await asyncio.sleep(0)
        assert not waiter.done()
        token.cancel()
        await asyncio.wait_for(waiter, 1)

    @pytest.mark.asyncio
    async def test_wait_after_cancel_returns(self) -> None:
        token = CancellationToken()
        token.cancel()
        await asyncio.wait_for(token.wait(), 1)
