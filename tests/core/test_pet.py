"""Unit tests for Pet attribute rules and action handling."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from virtualpet.core import prompts
from virtualpet.core.pet import Pet, PetStatus, clamp

LEVELS = (0, 1, 5, 10, 15, 20, 35, 50, 65, 80, 85, 90, 95, 99, 100)


def make_pet(hunger: int = 50, energy: int = 100, happiness: int = 50) -> Pet:
    chat = MagicMock()
    chat.send = AsyncMock(return_value="Woof! 🐶")
    return Pet(name="Milo", chat=chat, hunger=hunger, energy=energy, happiness=happiness)


def bare_pet(hunger: int, energy: int, happiness: int) -> Pet:
    return Pet(name="Milo", chat=None, hunger=hunger, energy=energy, happiness=happiness)  # type: ignore[arg-type]


def all_states():
    for hunger in LEVELS:
        for energy in LEVELS:
            for happiness in LEVELS:
                yield hunger, energy, happiness


def test_clamp():
    """Test clamping to [0, 100]."""
    assert clamp(-5) == 0
    assert clamp(0) == 0
    assert clamp(42) == 42
    assert clamp(100) == 100
    assert clamp(130) == 100


def test_pet_defaults():
    """Test that the pet starts at 50/100/50."""
    pet = Pet(name="Milo", chat=MagicMock())

    assert pet.name == "Milo"
    assert pet.get_status() == PetStatus(hunger=50, energy=100, happiness=50)


def test_pet_initial_values_clamped():
    pet = make_pet(hunger=-10, energy=250, happiness=101)

    assert pet.get_status() == PetStatus(hunger=0, energy=100, happiness=100)


def test_status_to_dict():
    status = PetStatus(hunger=1, energy=2, happiness=3)

    assert status.to_dict() == {"hunger": 1, "energy": 2, "happiness": 3}


def test_status_is_a_snapshot():
    """Test that later actions do not change an earlier snapshot."""
    pet = make_pet()
    before = pet.get_status()

    pet.apply_action("feed")

    assert before.hunger == 50
    with pytest.raises(AttributeError):
        before.hunger = 10  # type: ignore[misc]


def test_feed_from_defaults():
    pet = make_pet(hunger=50, energy=100, happiness=50)

    prompt = pet.apply_action("feed")

    assert pet.get_status() == PetStatus(hunger=30, energy=100, happiness=50)
    assert prompt == prompts.FEED_PROMPT


def test_play_fetch_from_defaults():
    pet = make_pet()

    prompt = pet.apply_action("play", "fetch")

    assert pet.get_status() == PetStatus(hunger=60, energy=85, happiness=70)
    assert prompt == "You are pet playing fetch. Respond enthusiastically about the game."


def test_sleep_caps_at_100():
    pet = make_pet(hunger=90, energy=60, happiness=50)

    prompt = pet.apply_action("sleep")

    assert pet.get_status() == PetStatus(hunger=100, energy=100, happiness=50)
    assert prompt == prompts.SLEEP_PROMPT


def test_other_action_leaves_state_unchanged():
    """Test that unknown actions only forward the text with the current state."""
    pet = make_pet(hunger=20, energy=40, happiness=60)

    prompt = pet.apply_action("talk", "Who's a good boy?")

    assert pet.get_status() == PetStatus(hunger=20, energy=40, happiness=60)
    assert prompt == (
        "Current state: Energy=40%, Hunger=20%, Happiness=60%. "
        "Respond to: Who's a good boy?"
    )


def test_actions_are_case_sensitive():
    pet = make_pet()

    pet.apply_action("FEED")

    assert pet.get_status() == PetStatus(hunger=50, energy=100, happiness=50)


def test_feed_stays_in_bounds():
    for hunger, energy, happiness in all_states():
        pet = bare_pet(hunger, energy, happiness)
        pet.apply_action("feed")

        assert pet.hunger == max(0, hunger - 20)
        assert pet.energy == min(100, energy + 10)
        assert pet.happiness == happiness


def test_play_stays_in_bounds():
    for hunger, energy, happiness in all_states():
        pet = bare_pet(hunger, energy, happiness)
        pet.apply_action("play", "tag")

        assert pet.hunger == min(100, hunger + 10)
        assert pet.energy == max(0, energy - 15)
        assert pet.happiness == min(100, happiness + 20)


def test_sleep_stays_in_bounds():
    for hunger, energy, happiness in all_states():
        pet = bare_pet(hunger, energy, happiness)
        pet.apply_action("sleep")

        assert pet.hunger == min(100, hunger + 10)
        assert pet.energy == min(100, energy + 50)
        assert pet.happiness == happiness


def test_repeated_actions_stay_in_bounds():
    pet = make_pet()

    for _ in range(20):
        pet.apply_action("play", "ball")
    assert (pet.hunger, pet.energy, pet.happiness) == (100, 0, 100)

    for _ in range(20):
        pet.apply_action("feed")
    assert (pet.hunger, pet.energy) == (0, 100)


@pytest.mark.asyncio
async def test_handle_action_sends_prompt():
    """Test that handle_action mutates state and returns the chat reply."""
    pet = make_pet()

    reply = await pet.handle_action("play", "fetch")

    assert reply == "Woof! 🐶"
    pet.chat.send.assert_awaited_once_with(
        "You are pet playing fetch. Respond enthusiastically about the game."
    )
    assert await pet.status() == PetStatus(hunger=60, energy=85, happiness=70)


@pytest.mark.asyncio
async def test_handle_action_propagates_errors_and_keeps_change():
    pet = make_pet()
    pet.chat.send = AsyncMock(side_effect=httpx.ConnectError("unreachable"))

    with pytest.raises(httpx.ConnectError):
        await pet.handle_action("feed")

    assert pet.get_status() == PetStatus(hunger=30, energy=100, happiness=50)


def test_create_opens_chat_with_system_instruction():
    """Test that Pet.create starts the conversation with the pet's profile."""
    llm_client = MagicMock()
    chat = MagicMock()
    llm_client.start_chat.return_value = chat

    pet = Pet.create("Biscuit", llm_client)

    assert pet.chat is chat
    assert pet.name == "Biscuit"
    instruction = llm_client.start_chat.call_args.kwargs["system_instruction"]
    assert "Your name is Biscuit." in instruction
    assert "Your hunger is starting at 50%." in instruction
    assert "Your energy is starting at 100%." in instruction
    assert "Your happiness is starting at 50%." in instruction


class GatedChat:
    """Chat session whose replies wait until the test opens the gate."""

    def __init__(self) -> None:
        self.gate = asyncio.Event()
        self.active = 0
        self.max_active = 0
        self.prompts: list[str] = []

    async def send(self, prompt: str) -> str:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        self.prompts.append(prompt)
        try:
            await self.gate.wait()
        finally:
            self.active -= 1
        return "Zzz"


@pytest.mark.asyncio
async def test_status_waits_for_action_in_progress():
    """Test that a status read never observes the pet mid-action."""
    chat = GatedChat()
    pet = Pet(name="Milo", chat=chat)  # type: ignore[arg-type]

    action = asyncio.create_task(pet.handle_action("feed"))
    await asyncio.sleep(0)
    status = asyncio.create_task(pet.status())
    await asyncio.sleep(0.01)

    assert chat.prompts == [prompts.FEED_PROMPT]
    assert not status.done()

    chat.gate.set()

    assert await action == "Zzz"
    assert await status == PetStatus(hunger=30, energy=100, happiness=50)


@pytest.mark.asyncio
async def test_concurrent_actions_are_serialized():
    """Test that two actions reach the model one after the other."""
    chat = GatedChat()
    pet = Pet(name="Milo", chat=chat)  # type: ignore[arg-type]

    first = asyncio.create_task(pet.handle_action("feed"))
    second = asyncio.create_task(pet.handle_action("play", "fetch"))
    await asyncio.sleep(0.01)

    assert chat.prompts == [prompts.FEED_PROMPT]
    assert pet.get_status() == PetStatus(hunger=30, energy=100, happiness=50)

    chat.gate.set()
    await asyncio.gather(first, second)

    assert chat.max_active == 1
    assert chat.prompts[1] == prompts.play_prompt("fetch")
    assert pet.get_status() == PetStatus(hunger=40, energy=85, happiness=70)
