"""Tests for spinner, progress and tasks."""

from __future__ import annotations

import asyncio
import dataclasses

import pytest

from pi.prompts.cancellation import CancellationToken
from pi.prompts.settings import PromptSettings
from pi.prompts.spinner import (
    EXIT_CANCEL,
    EXIT_ERROR,
    EXIT_OK,
    Task,
    format_elapsed,
    progress,
    spinner,
    strip_dots,
    tasks,
)

from .virtual_terminal import VirtualTerminal, settle

PLAIN = PromptSettings(color=False)
# A long delay keeps ticks out of tests that compare exact frames
STILL = {"delay": 60.0}


class TestHelpers:
    def test_strip_dots(self) -> None:
        assert strip_dots("Loading...") == "Loading"
        assert strip_dots("v1.2") == "v1.2"
        assert strip_dots("") == ""

    def test_format_elapsed(self) -> None:
        assert format_elapsed(5) == "[5s]"
        assert format_elapsed(59.9) == "[59s]"
        assert format_elapsed(125) == "[2m 5s]"


# ---------------------------------------------------------------------------
# spinner
# ---------------------------------------------------------------------------


class TestSpinner:
    @pytest.mark.asyncio
    async def test_running_frame(self) -> None:
        vt = VirtualTerminal()
        s = spinner(settings=PLAIN, terminal=vt, **STILL)
        s.start("Installing...")
        await settle()
        assert s.is_active
        assert s.prompt.frame == "│\n◒  Installing"
        await s.stop()

    @pytest.mark.asyncio
    async def test_stop(self) -> None:
        vt = VirtualTerminal()
        s = spinner(settings=PLAIN, terminal=vt, **STILL)
        s.start("Installing")
        await settle()
        await s.stop("Installed")
        assert s.prompt.frame == "◇  Installed"
        assert s.behavior.exit_code == EXIT_OK
        assert not s.is_active
        assert not s.is_cancelled
        assert vt.cursor_visible
        assert not vt.started

    @pytest.mark.asyncio
    async def test_stop_keeps_message(self) -> None:
        vt = VirtualTerminal()
        s = spinner(settings=PLAIN, terminal=vt, **STILL)
        s.start("Working")
        await s.stop()
        assert s.prompt.frame == "◇  Working"

    @pytest.mark.asyncio
    async def test_cancel(self) -> None:
        vt = VirtualTerminal()
        s = spinner(settings=PLAIN, terminal=vt, **STILL)
        s.start("Working")
        await settle()
        await s.cancel()
        assert s.prompt.frame == "■  Canceled"
        assert s.behavior.exit_code == EXIT_CANCEL
        assert s.is_cancelled

    @pytest.mark.asyncio
    async def test_error(self) -> None:
        vt = VirtualTerminal()
        s = spinner(settings=PLAIN, terminal=vt, **STILL)
        s.start("Working")
        await settle()
        await s.error("Broke")
        assert s.prompt.frame == "▲  Broke"
        assert s.behavior.exit_code == EXIT_ERROR

    @pytest.mark.asyncio
    async def test_error_default_message(self) -> None:
        vt = VirtualTerminal()
        s = spinner(error_message="Oops", settings=PLAIN, terminal=vt, **STILL)
        s.start("Working")
        await s.error()
        assert s.prompt.frame == "▲  Oops"

    @pytest.mark.asyncio
    async def test_clear_erases_output(self) -> None:
        vt = VirtualTerminal()
        s = spinner(settings=PLAIN, terminal=vt, **STILL)
        s.start("Working")
        await settle()
        vt.clear_buffer()
        await s.clear()
        assert "\x1b[J" in vt.output
        assert "◇" not in vt.output
        assert vt.output.endswith("\x1b[?25h")

    @pytest.mark.asyncio
    async def test_message_update(self) -> None:
        vt = VirtualTerminal()
        s = spinner(settings=PLAIN, terminal=vt, **STILL)
        s.start("Downloading")
        await settle()
        s.message("Unpacking...")
        await settle()
        assert s.prompt.frame == "│\n◒  Unpacking"
        await s.stop()

    @pytest.mark.asyncio
    async def test_ctrl_c_interrupts(self) -> None:
        vt = VirtualTerminal()
        calls = []
        s = spinner(on_cancel=lambda: calls.append(True), settings=PLAIN, terminal=vt, **STILL)
        s.start("Working")
        await settle()
        vt.simulate_input("\x03")
        await settle()
        assert calls == [True]
        assert s.is_cancelled
        assert not s.is_active
        assert s.prompt.frame == "■  Canceled"

    @pytest.mark.asyncio
    async def test_interrupt_uses_configured_cancel_message(self) -> None:
        vt = VirtualTerminal()
        settings = dataclasses.replace(PLAIN, cancel_message="Aborted by user")
        s = spinner(settings=settings, terminal=vt, **STILL)
        s.start("Working")
        await settle()
        vt.simulate_input("\x03")
        await settle()
        assert s.prompt.frame == "■  Aborted by user"

    @pytest.mark.asyncio
    async def test_signal_interrupts(self) -> None:
        vt = VirtualTerminal()
        token = CancellationToken()
        calls = []
        s = spinner(on_cancel=lambda: calls.append(True), settings=PLAIN, terminal=vt, signal=token, **STILL)
        s.start("Working")
        await settle()
        token.cancel()
        await settle()
        assert s.is_cancelled
        assert calls == [True]

    @pytest.mark.asyncio
    async def test_stop_after_interrupt_is_noop(self) -> None:
        vt = VirtualTerminal()
        s = spinner(settings=PLAIN, terminal=vt, **STILL)
        s.start("Working")
        await settle()
        vt.simulate_input("\x03")
        await settle()
        await s.stop("Done")
        assert s.prompt.frame == "■  Canceled"

    @pytest.mark.asyncio
    async def test_other_keys_ignored(self) -> None:
        vt = VirtualTerminal()
        s = spinner(settings=PLAIN, terminal=vt, **STILL)
        s.start("Working")
        await settle()
        vt.simulate_input("x")
        vt.simulate_input("\r")
        await settle()
        assert s.is_active
        await s.stop()

    @pytest.mark.asyncio
    async def test_ticks_animate(self) -> None:
        vt = VirtualTerminal()
        s = spinner(delay=0.005, settings=PLAIN, terminal=vt)
        s.start("Working")
        await asyncio.sleep(0.1)
        assert s.behavior.dots > 0
        await s.stop()

    @pytest.mark.asyncio
    async def test_custom_frames(self) -> None:
        vt = VirtualTerminal()
        s = spinner(frames=["-", "+"], settings=PLAIN, terminal=vt, **STILL)
        s.start("Working")
        await settle()
        assert s.prompt.frame == "│\n-  Working"
        await s.stop()

    @pytest.mark.asyncio
    async def test_ci_mode_has_no_ticks(self) -> None:
        vt = VirtualTerminal()
        settings = dataclasses.replace(PLAIN, ci=True)
        s = spinner(delay=0.005, settings=settings, terminal=vt)
        assert s.behavior.tick_interval is None
        s.start("Building")
        await asyncio.sleep(0.05)
        assert s.behavior.frame_index == 0
        assert s.prompt.frame == "│\n◒  Building..."
        await s.stop("Built")
        assert s.prompt.frame == "◇  Built"

    @pytest.mark.asyncio
    async def test_timer_indicator(self) -> None:
        vt = VirtualTerminal()
        s = spinner(indicator="timer", settings=PLAIN, terminal=vt, **STILL)
        s.start("Working")
        await settle()
        assert s.prompt.frame == "│\n◒  Working [0s]"
        await s.stop("Done")
        assert s.prompt.frame == "◇  Done [0s]"

    @pytest.mark.asyncio
    async def test_start_twice_rejected(self) -> None:
        vt = VirtualTerminal()
        s = spinner(settings=PLAIN, terminal=vt, **STILL)
        s.start()
        with pytest.raises(RuntimeError):
            s.start()
        await s.stop()

    @pytest.mark.asyncio
    async def test_finish_before_start_is_noop(self) -> None:
        vt = VirtualTerminal()
        s = spinner(settings=PLAIN, terminal=vt, **STILL)
        await s.stop()
        await s.cancel()
        await s.error()
        await s.clear()
        assert vt.output == ""
        assert not s.is_active


# ---------------------------------------------------------------------------
# progress
# ---------------------------------------------------------------------------


class TestProgress:
    def test_invalid_max(self) -> None:
        with pytest.raises(ValueError):
            progress(max=0, settings=PLAIN, terminal=VirtualTerminal())

    def test_invalid_style(self) -> None:
        with pytest.raises(ValueError):
            progress(style="dotted", settings=PLAIN, terminal=VirtualTerminal())  # type: ignore[arg-type]

    def test_advance_is_clamped(self) -> None:
        p = progress(max=10, settings=PLAIN, terminal=VirtualTerminal())
        p.advance(4)
        assert p.value == 4
        p.advance(50)
        assert p.value == 10
        p.advance(-100)
        assert p.value == 0

    @pytest.mark.asyncio
    async def test_bar_fills(self) -> None:
        vt = VirtualTerminal()
        p = progress(max=4, size=8, settings=PLAIN, terminal=vt, style="block")
        p.behavior.tick_interval = None
        p.start("Copying")
        await settle()
        assert p.prompt.frame == "│\n◒  ████████ Copying"
        p.advance(1, "Copying a")
        await settle()
        assert p.value == 1
        assert p.prompt.frame == "│\n◒  ████████ Copying a"
        p.advance(3)
        await p.stop("Copied")
        assert p.prompt.frame == "◇  ████████ Copied"

    @pytest.mark.asyncio
    async def test_message_keeps_value(self) -> None:
        vt = VirtualTerminal()
        p = progress(max=10, settings=PLAIN, terminal=vt)
        p.advance(3)
        p.start("Go")
        p.message("Still going")
        await settle()
        assert p.value == 3
        assert p.prompt.frame.endswith("Still going")
        await p.stop()


# ---------------------------------------------------------------------------
# tasks
# ---------------------------------------------------------------------------


class TestTasks:
    @pytest.mark.asyncio
    async def test_runs_enabled_tasks_in_order(self) -> None:
        vt = VirtualTerminal()
        ran = []

        def first(message):
            ran.append("first")
            return "First done"

        async def second(message):
            message("halfway")
            await asyncio.sleep(0)
            ran.append("second")
            return None

        def skipped(message):
            ran.append("skipped")

        await tasks(
            [Task("First", first), Task("Skipped", skipped, enabled=False), Task("Second", second)],
            settings=PLAIN,
            terminal=vt,
        )
        assert ran == ["first", "second"]
        assert "◇  First done" in vt.output
        assert "◇  Second" in vt.output
        assert "Skipped" not in vt.output

    @pytest.mark.asyncio
    async def test_failing_task_shows_error_and_raises(self) -> None:
        vt = VirtualTerminal()

        def broken(message):
            raise OSError("disk full")

        with pytest.raises(OSError, match="disk full"):
            await tasks([Task("Write", broken)], settings=PLAIN, terminal=vt)
        assert "▲  Something went wrong" in vt.output
        assert not vt.started
