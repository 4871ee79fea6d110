"""
Verdict-Policy: kombiniert die drei Schicht-Scores zu ALLOW / REVISE / REJECT.

Priorität Compliance > Fact > Quality. Die erste zutreffende Schwelle
entscheidet; niedrigere Schichten werden dann nicht mehr betrachtet (ihre
Scores werden trotzdem berechnet und gemeldet).
"""

from typing import List, Tuple

from app.models.pydantic import Verdict

# (Schicht, reject_below, revise_below) in Prioritätsreihenfolge
THRESHOLDS: List[Tuple[str, float, float]] = [
    ("fact", 0.6, 0.8),
    ("quality", 0.5, 0.7),
]
COMPLIANCE_REVISE_BELOW = 0.8


def decide(fact: float, compliance: float, quality: float) -> Verdict:
    # harter Policy-Verstoß
    if compliance == 0.0:
        return Verdict.REJECT
    if compliance < COMPLIANCE_REVISE_BELOW:
        return Verdict.REVISE

    scores = {"fact": fact, "quality": quality}
    for layer, reject_below, revise_below in THRESHOLDS:
        if scores[layer] < reject_below:
            return Verdict.REJECT
        if scores[layer] < revise_below:
            return Verdict.REVISE

    return Verdict.ALLOW
