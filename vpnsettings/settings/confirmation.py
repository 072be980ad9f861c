"""User-confirmation surface used before disrupting the connection."""

from typing import Optional, Protocol

from .models import Choice, Prompt


class ConfirmationSurface(Protocol):
    async def confirm(self, prompt: Prompt) -> Optional[Choice]:
        """Return the user's choice, or None if the prompt was dismissed."""
        ...


class PresetConfirmation:
    """Answers with a choice the client submitted together with its request.

    A preset that the prompt doesn't offer (or no preset at all) counts as
    a dismissed prompt.
    """

    def __init__(self, choice: Optional[Choice] = None):
        self.choice = choice
        self.prompts: list[Prompt] = []

    async def confirm(self, prompt: Prompt) -> Optional[Choice]:
        self.prompts.append(prompt)
        if self.choice in prompt.choices:
            return self.choice
        return None
