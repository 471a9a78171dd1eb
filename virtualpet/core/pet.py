"""Pet — the single virtual pet served by the API.

Holds three bounded attributes and the conversation with the language
model. All access goes through one asyncio lock.
"""

from __future__ import annotations

import asyncio
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING

import structlog

from virtualpet.core import prompts

if TYPE_CHECKING:
    from virtualpet.ai.llm_client import ChatSession, LLMClient

logger = structlog.get_logger()

ATTRIBUTE_MIN = 0
ATTRIBUTE_MAX = 100

DEFAULT_HUNGER = 50
DEFAULT_ENERGY = 100
DEFAULT_HAPPINESS = 50


def clamp(value: int, low: int = ATTRIBUTE_MIN, high: int = ATTRIBUTE_MAX) -> int:
    """Clamp value to the [low, high] range."""
    return max(low, min(high, value))


@dataclass(frozen=True)
class PetStatus:
    """Immutable snapshot of the pet's attributes."""

    hunger: int
    energy: int
    happiness: int

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


class Pet:
    """A virtual pet with hunger, energy and happiness in [0, 100].

    Actions change the attributes by fixed deltas and produce a prompt
    for the language model:

    - feed: hunger -20, energy +10
    - play: happiness +20, energy -15, hunger +10
    - sleep: energy +50, hunger +10
    - anything else: no change, the text is forwarded with the current state
    """

    def __init__(
        self,
        name: str,
        chat: ChatSession,
        hunger: int = DEFAULT_HUNGER,
        energy: int = DEFAULT_ENERGY,
        happiness: int = DEFAULT_HAPPINESS,
    ) -> None:
        self._name = name
        self.hunger = clamp(hunger)
        self.energy = clamp(energy)
        self.happiness = clamp(happiness)
        self.chat = chat
        self._lock = asyncio.Lock()

    @classmethod
    def create(
        cls,
        name: str,
        llm_client: LLMClient,
        hunger: int = DEFAULT_HUNGER,
        energy: int = DEFAULT_ENERGY,
        happiness: int = DEFAULT_HAPPINESS,
    ) -> Pet:
        """Create a pet and open its conversation with a system instruction.

        Args:
            name: The pet's name.
            llm_client: Client used to start the chat session.
            hunger: Starting hunger.
            energy: Starting energy.
            happiness: Starting happiness.

        Returns:
            The new pet.
        """
        hunger, energy, happiness = clamp(hunger), clamp(energy), clamp(happiness)
        instruction = prompts.system_instruction(name, hunger, energy, happiness)
        pet = cls(
            name=name,
            chat=llm_client.start_chat(system_instruction=instruction),
            hunger=hunger,
            energy=energy,
            happiness=happiness,
        )
        logger.info(
            "pet_created",
            name=name,
            hunger=hunger,
            energy=energy,
            happiness=happiness,
        )
        return pet

    @property
    def name(self) -> str:
        return self._name

    def get_status(self) -> PetStatus:
        return PetStatus(
            hunger=self.hunger,
            energy=self.energy,
            happiness=self.happiness,
        )

    async def status(self) -> PetStatus:
        """Snapshot taken under the lock, never mid-action."""
        async with self._lock:
            return self.get_status()

    def apply_action(self, action: str, text: str = "") -> str:
        """Apply an action to the attributes and build the matching prompt.

        Callers must hold the lock; handle_action() does.

        Args:
            action: "feed", "play", "sleep", or anything else for a chat message.
            text: Game name for "play", or the message for other actions.

        Returns:
            The prompt to send to the language model.
        """
        if action == "feed":
            self.hunger = clamp(self.hunger - 20)
            self.energy = clamp(self.energy + 10)
            prompt = prompts.FEED_PROMPT
        elif action == "play":
            self.happiness = clamp(self.happiness + 20)
            self.energy = clamp(self.energy - 15)
            self.hunger = clamp(self.hunger + 10)
            prompt = prompts.play_prompt(text)
        elif action == "sleep":
            self.energy = clamp(self.energy + 50)
            self.hunger = clamp(self.hunger + 10)
            prompt = prompts.SLEEP_PROMPT
        else:
            prompt = prompts.chat_prompt(
                text,
                hunger=self.hunger,
                energy=self.energy,
                happiness=self.happiness,
            )

        logger.info(
            "pet_action_applied",
            action=action,
            hunger=self.hunger,
            energy=self.energy,
            happiness=self.happiness,
        )
        return prompt

    async def handle_action(self, action: str, text: str = "") -> str:
        """Apply an action and return the model's reply.

        The lock is held across the remote call so replies stay in the
        same order as the state changes. The attribute change is kept
        even if the call fails.

        Raises:
            httpx.HTTPError: Any failure of the remote call, unwrapped.
        """
        async with self._lock:
            prompt = self.apply_action(action, text)
            return await self.chat.send(prompt)
