"""
Deklarative Regel-Engine für die drei Prüfschichten.

Jeder Scorer ist eine Liste von Regeln (code, severity, penalty, detect).
`detect` liefert pro Treffer eine Meldung (leere Liste = Regel nicht
verletzt). Die Engine startet bei 1.0, zieht pro Treffer die Penalty ab und
clampt erst am Ende auf >= 0. Harte Regeln (`hard=True`) setzen den Score
bei mindestens einem Treffer auf exakt 0, unabhängig von der übrigen
Arithmetik.

Die Engine kennt keine I/O: alles, was Lookups braucht (Fact-Evidence),
wird vorher in den RuleContext geladen.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, FrozenSet, List, Optional, Sequence, Union

from app.models.pydantic import (
    Candidate,
    QualityMetrics,
    ScoreResult,
    Severity,
    VerifyContext,
    Violation,
    ViolationCode,
)


@dataclass(frozen=True)
class Hit:
    """Ein Regel-Treffer; `claim` verweist optional auf den betroffenen Claim."""

    message: str
    claim: Optional[str] = None


@dataclass(frozen=True)
class FactEvidence:
    """Vorab geladene Katalog-Fakten für die Fact-Regeln."""

    event_types: FrozenSet[str] = frozenset()
    invalid_item_ids: Sequence[str] = ()
    item_brands: FrozenSet[str] = frozenset()
    holiday_valid: Optional[bool] = None
    event_window_days: int = 7


@dataclass(frozen=True)
class RuleContext:
    candidate: Candidate
    context: VerifyContext
    text: str
    evidence: FactEvidence = field(default_factory=FactEvidence)
    metrics: Optional[QualityMetrics] = None


DetectResult = List[Union[str, Hit]]


@dataclass(frozen=True)
class Rule:
    code: ViolationCode
    severity: Severity
    penalty: float
    detect: Callable[[RuleContext], DetectResult]
    hard: bool = False


def evaluate_rules(
    rules: Sequence[Rule],
    ctx: RuleContext,
    metrics: Optional[QualityMetrics] = None,
) -> ScoreResult:
    score = 1.0
    hard_hit = False
    violations: List[Violation] = []

    # keine Early-Returns: alle Regeln laufen, damit alle Violations gemeldet werden
    for rule in rules:
        for hit in rule.detect(ctx):
            if isinstance(hit, str):
                hit = Hit(message=hit)
            violations.append(
                Violation(
                    code=rule.code,
                    message=hit.message,
                    severity=rule.severity,
                    claim=hit.claim,
                )
            )
            score -= rule.penalty
            if rule.hard:
                hard_hit = True

    if hard_hit:
        score = 0.0

    return ScoreResult(
        score=_clamp01(score),
        violations=violations,
        metrics=metrics,
    )


def _clamp01(x: float) -> float:
    # Rundung gegen Float-Drift (1.0 - 0.3 - 0.5 ...)
    x = round(x, 6)
    if x < 0.0:
        return 0.0
    if x > 1.0:
        return 1.0
    return x
