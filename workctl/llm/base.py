"""Abstract model transport for workctl."""

from __future__ import annotations

from abc import ABC, abstractmethod

from workctl.config.models import LLMSettings
from workctl.llm.models import ModelRequest, ModelResponse


class ModelTransport(ABC):
    """Provider-agnostic, blocking interface for one model round trip.

    Implementations make exactly one attempt per call and raise
    TransportError on any provider failure. Retrying is the caller's call.
    """

    def __init__(self, settings: LLMSettings, api_key: str) -> None:
        self.settings = settings
        self.api_key = api_key

    @abstractmethod
    def send(self, request: ModelRequest) -> ModelResponse:
        """Send the whole conversation and return the model's next turn."""
        ...
