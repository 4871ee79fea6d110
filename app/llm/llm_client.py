from abc import ABC, abstractmethod
from typing import Any


class LLMClient(ABC):
    # Name des Modells, landet in Candidate.model und in der Attribution
    model_name: str = "unknown"

    @abstractmethod
    def complete(self, prompt: str, **kwargs: Any) -> str:
        """Sendet Prompt an ein LLM und gibt nur den Text-Output zurück."""
        raise NotImplementedError
