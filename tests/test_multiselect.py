"""Tests for multiselect and group_multiselect."""

from __future__ import annotations

import asyncio

import pytest

from pi.prompts.settings import PromptSettings
from pi.prompts.widgets.multiselect import (
    REQUIRED_MESSAGE,
    group_multiselect,
    invert,
    multiselect,
    toggle_all,
)

from .virtual_terminal import VirtualTerminal, settle

PLAIN = PromptSettings(color=False)

UP = "\x1b[A"
DOWN = "\x1b[B"
ENTER = "\r"
SPACE = " "


class TestHelpers:
    def test_toggle_all_selects_everything(self) -> None:
        assert toggle_all(["a"], ["a", "b", "c"]) == ["a", "b", "c"]
        assert toggle_all([], ["a", "b"]) == ["a", "b"]

    def test_toggle_all_clears_full_selection(self) -> None:
        assert toggle_all(["a", "b"], ["a", "b"]) == []

    def test_invert(self) -> None:
        assert invert(["a"], ["a", "b", "c"]) == ["b", "c"]


# ---------------------------------------------------------------------------
# multiselect
# ---------------------------------------------------------------------------


class TestMultiselect:
    @pytest.mark.asyncio
    async def test_toggle_then_toggle_all(self) -> None:
        vt = VirtualTerminal()
        vt.queue_input(SPACE, "a", ENTER)
        result = await multiselect("Pick", ["a", "b", "c"], settings=PLAIN, terminal=vt)
        assert result == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_toggle_off(self) -> None:
        vt = VirtualTerminal()
        vt.queue_input(SPACE, DOWN, SPACE, UP, SPACE, ENTER)
        assert await multiselect("Pick", ["a", "b", "c"], settings=PLAIN, terminal=vt) == ["b"]

    @pytest.mark.asyncio
    async def test_result_follows_option_order(self) -> None:
        vt = VirtualTerminal()
        vt.queue_input(DOWN, DOWN, SPACE, UP, UP, SPACE, ENTER)
        assert await multiselect("Pick", ["a", "b", "c"], settings=PLAIN, terminal=vt) == ["a", "c"]

    @pytest.mark.asyncio
    async def test_invert(self) -> None:
        vt = VirtualTerminal()
        vt.queue_input(SPACE, "i", ENTER)
        assert await multiselect("Pick", ["a", "b", "c"], settings=PLAIN, terminal=vt) == ["b", "c"]

    @pytest.mark.asyncio
    async def test_required_rejects_empty(self) -> None:
        vt = VirtualTerminal()
        vt.queue_input("a", "a", ENTER, SPACE, ENTER)
        assert await multiselect("Pick", ["a", "b"], settings=PLAIN, terminal=vt) == ["a"]
        assert REQUIRED_MESSAGE in vt.output

    @pytest.mark.asyncio
    async def test_not_required_allows_empty(self) -> None:
        vt = VirtualTerminal()
        vt.queue_input(ENTER)
        assert await multiselect("Pick", ["a", "b"], required=False, settings=PLAIN, terminal=vt) == []

    @pytest.mark.asyncio
    async def test_initial_values_and_cursor_at(self) -> None:
        vt = VirtualTerminal()
        vt.queue_input(SPACE, ENTER)
        result = await multiselect(
            "Pick", ["a", "b", "c"], initial_values=["a"], cursor_at="c", settings=PLAIN, terminal=vt
        )
        assert result == ["a", "c"]

    @pytest.mark.asyncio
    async def test_disabled_never_selected(self) -> None:
        vt = VirtualTerminal()
        vt.queue_input("a", ENTER)
        options = ["a", {"value": "b", "disabled": True}, "c"]
        result = await multiselect("Pick", options, initial_values=["b"], settings=PLAIN, terminal=vt)
        assert result == ["a", "c"]

    @pytest.mark.asyncio
    async def test_custom_validator_after_required(self) -> None:
        vt = VirtualTerminal()
        vt.queue_input(SPACE, ENTER, DOWN, SPACE, ENTER)
        result = await multiselect(
            "Pick two",
            ["a", "b", "c"],
            validate=lambda v: "Pick exactly two" if len(v) != 2 else None,
            settings=PLAIN,
            terminal=vt,
        )
        assert result == ["a", "b"]
        assert "Pick exactly two" in vt.output

    @pytest.mark.asyncio
    async def test_render(self) -> None:
        vt = VirtualTerminal()
        options = [{"value": "a", "label": "Alpha", "hint": "first"}, "b", {"value": "c", "disabled": True}]
        prompt = multiselect("Pick", options, initial_values=["b"], settings=PLAIN, terminal=vt)
        task = asyncio.ensure_future(prompt.run())
        await settle()
        assert prompt.frame == (
            "│\n"
            "◆  Pick\n"
            "│  ◻ Alpha (first)\n"
            "│  ◼ b\n"
            "│  ◻ c\n"
            "└"
        )
        vt.simulate_input(SPACE)
        vt.simulate_input(ENTER)
        assert await task == ["a", "b"]
        assert prompt.frame.endswith("│  Alpha, b")


# ---------------------------------------------------------------------------
# group_multiselect
# ---------------------------------------------------------------------------


class TestGroupMultiselect:
    GROUPS = {"fruit": ["apple", "pear"], "veg": ["kale"]}

    @pytest.mark.asyncio
    async def test_header_toggles_children(self) -> None:
        vt = VirtualTerminal()
        vt.queue_input(SPACE, ENTER)
        assert await group_multiselect("Food", self.GROUPS, settings=PLAIN, terminal=vt) == ["apple", "pear"]

    @pytest.mark.asyncio
    async def test_header_toggles_off_when_full(self) -> None:
        vt = VirtualTerminal()
        vt.queue_input(SPACE, SPACE, DOWN, DOWN, DOWN, DOWN, SPACE, ENTER)
        assert await group_multiselect("Food", self.GROUPS, settings=PLAIN, terminal=vt) == ["kale"]

    @pytest.mark.asyncio
    async def test_children_individually(self) -> None:
        vt = VirtualTerminal()
        vt.queue_input(DOWN, DOWN, SPACE, ENTER)
        assert await group_multiselect("Food", self.GROUPS, settings=PLAIN, terminal=vt) == ["pear"]

    @pytest.mark.asyncio
    async def test_unselectable_groups(self) -> None:
        vt = VirtualTerminal()
        vt.queue_input(SPACE, UP, SPACE, ENTER)
        result = await group_multiselect(
            "Food", self.GROUPS, selectable_groups=False, settings=PLAIN, terminal=vt
        )
        # The cursor starts on the first child and wraps to the last one
        assert result == ["apple", "kale"]

    @pytest.mark.asyncio
    async def test_toggle_all_keys_ignored(self) -> None:
        vt = VirtualTerminal()
        vt.queue_input("a", "i", ENTER, SPACE, ENTER)
        result = await group_multiselect("Food", self.GROUPS, settings=PLAIN, terminal=vt)
        assert result == ["apple", "pear"]
        assert REQUIRED_MESSAGE in vt.output

    @pytest.mark.asyncio
    async def test_render(self) -> None:
        vt = VirtualTerminal()
        prompt = group_multiselect("Food", self.GROUPS, group_spacing=1, settings=PLAIN, terminal=vt)
        task = asyncio.ensure_future(prompt.run())
        await settle()
        assert prompt.frame == (
            "│\n"
            "◆  Food\n"
            "│  ◻ fruit\n"
            "│  │ ◻ apple\n"
            "│  └ ◻ pear\n"
            "│  \n"
            "│  ◻ veg\n"
            "│  └ ◻ kale\n"
            "└"
        )
        vt.simulate_input("\x03")
        await task

    def test_empty_groups_rejected(self) -> None:
        with pytest.raises(ValueError):
            group_multiselect("Food", {"none": []}, settings=PLAIN, terminal=VirtualTerminal())
