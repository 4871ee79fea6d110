from typing import Any

from openai import OpenAI
from app.llm.llm_client import LLMClient


class OpenAIClient(LLMClient):
    def __init__(self, model_name: str, temperature: float = 0.8, max_tokens: int = 1200):
        self.model_name = model_name
        self.temperature = temperature
        self.max_tokens = max_tokens
        # Liest OPENAI_API_KEY (und ggf. OPENAI_BASE_URL) automatisch aus der Umgebung
        self.client = OpenAI()
        self.last_token_count: int | None = None

    def complete(self, prompt: str, **kwargs: Any) -> str:
        response = self.client.chat.completions.create(
            model=self.model_name,
            messages=[{"role": "user", "content": prompt}],
            temperature=kwargs.get("temperature", self.temperature),
            max_tokens=self.max_tokens,
            response_format={"type": "json_object"},
        )

        usage = getattr(response, "usage", None)
        self.last_token_count = usage.total_tokens if usage else None
        return response.choices[0].message.content or ""
