"""Pet state and prompt templates."""

from virtualpet.core.pet import Pet, PetStatus, clamp

__all__ = ["Pet", "PetStatus", "clamp"]
