from __future__ import annotations

from typing import Protocol


class LLMStrategy(Protocol):
    """Text generation provider interface (structural typing).

    ``prompt`` returns the generated text, or ``""`` when the provider
    answered with nothing usable.
    """

    @property
    def model_name(self) -> str: ...

    def prompt(self, user_prompt: str, system_prompt: str = "") -> str: ...
