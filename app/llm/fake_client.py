import json
import re
from typing import Any

from app.llm.llm_client import LLMClient

ITEM_ID_PATTERN = re.compile(r"v1\|itm\|[\w-]+")


class FakeLLMClient(LLMClient):
    """
    Deterministischer Client für TEST_MODE und Tests.

    Referenziert das erste Item-ID aus dem Prompt, damit der Vorfilter und
    der FactChecker etwas zu prüfen haben. Email-Prompts (erkennbar am
    "subject"-Feld im Schema) bekommen Email-Kandidaten.
    """

    model_name = "fake-llm"
    last_token_count = 0

    def __init__(self, response: str | None = None) -> None:
        # feste Antwort überschreibt die generierten Kandidaten (z.B. kaputtes JSON im Test)
        self.response = response
        self.prompts: list[str] = []

    def complete(self, prompt: str, **kwargs: Any) -> str:
        self.prompts.append(prompt)
        if self.response is not None:
            return self.response

        match = ITEM_ID_PATTERN.search(prompt)
        item_ids = [match.group(0)] if match else []
        claims = {
            "referenced_item_ids": item_ids,
            "referenced_brands": [],
            "referenced_events": [],
            "referenced_holiday": None,
            "mentioned_benefits": ["free shipping"],
        }

        if '"subject"' in prompt:
            candidates = [
                {
                    "subject": "Picked for you this week",
                    "preview": "A few items we think you will like",
                    "body": "We found a few items that match what you have been looking at lately. Take a look and find your next favorite today.",
                    "bullets": ["Free shipping on selected items", "Easy returns"],
                    "cta": "Shop Now",
                    "claims": claims,
                },
                {
                    "subject": "New picks",
                    "preview": "Fresh recommendations",
                    "body": "Fresh picks are ready for you. Have a look when you have a moment.",
                    "cta": "View Details",
                    "claims": claims,
                },
            ]
        else:
            candidates = [
                {"text": "Your next favorite gear is waiting. Take a look today!", "claims": claims},
                {"text": "Fresh picks just for you, ready when you are.", "claims": claims},
                {"text": "Visit shop.example.com for great picks today", "claims": claims},
            ]

        return json.dumps({"candidates": candidates})
