"""Prompt templates sent to the language model on behalf of the pet."""

from __future__ import annotations

SYSTEM_INSTRUCTION_TEMPLATE = (
    "You are a virtual pet. You have three attributes with values 0 - 100. "
    "Your name is {name}. "
    "Your hunger is starting at {hunger}%. "
    "Your energy is starting at {energy}%. "
    "Your happiness is starting at {happiness}%. "
    "Respond to the user with a sentences on new lines. Use emojis to express your feelings. "
)

FEED_PROMPT = "You were just fed. Respond happily and mention how the food tastes."
PLAY_PROMPT_TEMPLATE = "You are pet playing {text}. Respond enthusiastically about the game."
SLEEP_PROMPT = "You are going to sleep. Respond with sleepy satisfaction."
CHAT_PROMPT_TEMPLATE = (
    "Current state: Energy={energy}%, Hunger={hunger}%, Happiness={happiness}%. "
    "Respond to: {text}"
)


def system_instruction(name: str, hunger: int, energy: int, happiness: int) -> str:
    """Build the instruction that opens the pet's conversation."""
    return SYSTEM_INSTRUCTION_TEMPLATE.format(
        name=name,
        hunger=hunger,
        energy=energy,
        happiness=happiness,
    )


def play_prompt(text: str) -> str:
    return PLAY_PROMPT_TEMPLATE.format(text=text)


def chat_prompt(text: str, hunger: int, energy: int, happiness: int) -> str:
    """Free-form message, prefixed with the current attribute percentages."""
    return CHAT_PROMPT_TEMPLATE.format(
        energy=energy,
        hunger=hunger,
        happiness=happiness,
        text=text,
    )
