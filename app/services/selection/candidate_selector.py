"""
Auswahl von Kandidaten.

pick_best: Vorfilter vor der Verifikation (Push-Flow). Normalisiert Text und
Item-Referenzen, verwirft unbrauchbare Kandidaten und wählt per einfachem
Punkteschema den besten.

select_best_result: Auswahl nach der Verifikation (Email-/Generate-Flow).
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from app.models.pydantic import Candidate, Verdict, VerifyResult
from app.services.agents.text_utils import collapse_whitespace, has_url

logger = logging.getLogger(__name__)

WITHIN_LENGTH_POINTS = 3.0
URL_FREE_POINTS = 3.0
ITEM_REFERENCE_POINTS = 2.0


def normalize_candidate(candidate: Candidate, allowed_item_ids: Iterable[str]) -> Candidate:
    """Whitespace zusammenfassen, erfundene Item-IDs still entfernen."""
    allowed = set(allowed_item_ids)
    item_ids = [i for i in candidate.claims.referenced_item_ids if i in allowed]
    claims = candidate.claims.model_copy(update={"referenced_item_ids": item_ids})
    return candidate.model_copy(update={"text": collapse_whitespace(candidate.text), "claims": claims})


def _score(candidate: Candidate, max_len: int, no_url: bool) -> float:
    length = len(candidate.text)
    score = 0.0
    if length <= max_len:
        score += WITHIN_LENGTH_POINTS
    if no_url and not has_url(candidate.text):
        score += URL_FREE_POINTS
    if candidate.claims.referenced_item_ids:
        score += ITEM_REFERENCE_POINTS
    # Bonus für Texte, die das Längenbudget besser ausnutzen
    score += 1 - (max_len - length) / max_len
    return score


def pick_best(
    candidates: Sequence[Candidate],
    allowed_item_ids: Iterable[str],
    max_len: int,
    no_url: bool = False,
) -> Optional[Candidate]:
    allowed = list(allowed_item_ids)
    survivors: List[Candidate] = []

    for candidate in candidates:
        c = normalize_candidate(candidate, allowed)
        if not c.text:
            continue
        if no_url and has_url(c.text):
            continue
        if len(c.text) > max_len:
            continue
        survivors.append(c)

    if not survivors:
        logger.info("Kein Kandidat hat den Vorfilter überstanden (%d geprüft)", len(candidates))
        return None

    # sorted ist stabil: bei Gleichstand gewinnt der frühere Kandidat
    ranked = sorted(survivors, key=lambda c: _score(c, max_len, no_url), reverse=True)
    return ranked[0]


def select_best_result(results: Sequence[VerifyResult]) -> Optional[VerifyResult]:
    """
    ALLOW vor REVISE-mit-AutoFix vor allem anderen; innerhalb der Gruppe
    zählt der Mittelwert der drei Scores, bei Gleichstand der erste.
    """
    if not results:
        return None

    allowed = [r for r in results if r.verdict == Verdict.ALLOW]
    fixable = [r for r in results if r.verdict == Verdict.REVISE and r.auto_fix is not None]
    pool = allowed or fixable or list(results)

    best = pool[0]
    for r in pool[1:]:
        if r.scores.mean > best.scores.mean:
            best = r
    return best
