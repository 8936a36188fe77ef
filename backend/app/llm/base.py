"""
Generation client interface: one prompt in, the model's raw text out.
Parsing and validation of that text happen elsewhere (app.services.quiz_parser).
"""
from typing import Protocol


class GenerationClient(Protocol):
    """Abstract interface for a chat-style text generation service."""

    model: str

    def complete(self, prompt: str) -> str:
        """
        Send prompt as a single user message and return the generated text.
        Raises GenerationServiceError on non-success status, EmptyResponseError when no content comes back.
        """
        ...
