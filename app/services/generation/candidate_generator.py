"""
Kandidaten-Generierung über ein LLM.

Features:
- Prompt mit Claims-Vertrag (siehe prompts.py)
- Robustes Parsing: erstes JSON-Objekt bzw. -Array im Output, Fallback auf
  einzelne Objekte per Regex
- Ungültige Einträge werden übersprungen; komplett unlesbarer Output ergibt
  eine leere Liste (der Aufrufer nutzt dann den Fallback-Text)
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, List, Optional, Protocol

from pydantic import ValidationError

from app.llm.llm_client import LLMClient
from app.models.pydantic import Candidate, Channel, Constraints, Item, UserSignals
from app.services.generation.prompts import build_generation_prompt

logger = logging.getLogger(__name__)

# flache JSON-Objekte, die ein "claims"-Objekt enthalten
_OBJECT_FALLBACK = re.compile(r"\{[^{}]*\"claims\"\s*:\s*\{[^{}]*\}[^{}]*\}", re.DOTALL)


@dataclass
class GenerationRequest:
    user_id: str
    channel: Channel
    locale: str
    constraints: Constraints
    items: List[Item] = field(default_factory=list)
    signals: UserSignals = field(default_factory=UserSignals)
    n: int = 3


class CandidateGenerator(Protocol):
    def generate(self, request: GenerationRequest) -> List[Candidate]:
        ...


def parse_candidates_json(raw_text: str) -> tuple[list[dict[str, Any]], list[str]]:
    """
    Parst Kandidaten aus LLM-Output mit Fallback-Mechanismen.

    Returns:
        (entries, flags): entries ist leer bei komplettem Fehler, flags enthalten Warnungen
    """
    flags: list[str] = []
    raw_text = raw_text or ""

    # Versuch 1: äußerstes JSON-Objekt
    start = raw_text.find("{")
    end = raw_text.rfind("}") + 1
    if start != -1 and end > start:
        try:
            data = json.loads(raw_text[start:end])
            entries = _entries_from(data)
            if entries is not None:
                return entries, flags
        except (json.JSONDecodeError, ValueError):
            flags.append("parse_primary_failed")

    # Versuch 2: JSON-Array
    start = raw_text.find("[")
    end = raw_text.rfind("]") + 1
    if start != -1 and end > start:
        try:
            data = json.loads(raw_text[start:end])
            entries = _entries_from(data)
            if entries is not None:
                flags.append("parse_array")
                return entries, flags
        except (json.JSONDecodeError, ValueError):
            flags.append("parse_array_failed")

    # Versuch 3: einzelne Objekte (Fallback)
    entries = []
    for match in _OBJECT_FALLBACK.finditer(raw_text):
        try:
            entries.append(json.loads(match.group(0)))
        except (json.JSONDecodeError, ValueError):
            continue
    if entries:
        flags.append("parse_fallback")
    else:
        flags.append("parse_failed")
    return entries, flags


def _entries_from(data: Any) -> Optional[list[dict[str, Any]]]:
    if isinstance(data, list):
        return [e for e in data if isinstance(e, dict)]
    if isinstance(data, dict):
        if isinstance(data.get("candidates"), list):
            return [e for e in data["candidates"] if isinstance(e, dict)]
        if "text" in data or "body" in data:
            return [data]
    return None


def to_candidate(entry: dict[str, Any], model: str, token_count: Optional[int] = None) -> Optional[Candidate]:
    """Ein geparster Eintrag -> Candidate; Email nutzt body als Prüftext."""
    text = entry.get("text") or entry.get("body") or ""
    bullets = entry.get("bullets")
    try:
        return Candidate(
            text=text,
            claims=entry.get("claims"),
            model=model,
            token_count=token_count,
            subject=entry.get("subject"),
            preview=entry.get("preview"),
            body=entry.get("body"),
            bullets=bullets if isinstance(bullets, list) else None,
            cta=entry.get("cta"),
        )
    except ValidationError as e:
        logger.warning("Kandidat verworfen (ungültiges Schema): %s", e.errors()[:1])
        return None


class LLMCandidateGenerator:
    def __init__(self, llm_client: LLMClient, temperature: Optional[float] = None) -> None:
        self.llm = llm_client
        self.temperature = temperature

    def generate(self, request: GenerationRequest) -> List[Candidate]:
        prompt = build_generation_prompt(
            channel=request.channel,
            locale=request.locale,
            constraints=request.constraints,
            items=request.items,
            signals=request.signals,
            n=request.n,
        )

        kwargs: dict[str, Any] = {}
        if self.temperature is not None:
            kwargs["temperature"] = self.temperature
        raw = self.llm.complete(prompt, **kwargs)

        entries, flags = parse_candidates_json(raw)
        if flags:
            logger.info("LLM-Output für %s geparst mit Flags %s", request.user_id, flags)

        token_count = getattr(self.llm, "last_token_count", None)
        candidates = []
        for entry in entries[: request.n]:
            candidate = to_candidate(entry, model=self.llm.model_name, token_count=token_count)
            if candidate is not None:
                candidates.append(candidate)
        return candidates
