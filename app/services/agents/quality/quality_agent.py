"""
QualityAgent: stilistische Prüfung der Nachricht (rein, ohne I/O).

Kennzahlen (QualityMetrics) werden einmal berechnet und dann von den Regeln
gelesen:
- effektive Länge (zh-CN: Zeichen, sonst Wörter * 5)
- Interpunktions-Anteil
- Emoji-Anzahl
- vereinfachte Readability (Satzlänge, Großbuchstaben-Anteil)

Scope: Länge, Interpunktion, Emojis, Sprache/Locale, Lesbarkeit.
Nicht Scope: Fakten, Policy.
"""

from __future__ import annotations

import re
from typing import List

from app.models.pydantic import Candidate, QualityMetrics, ScoreResult, Severity, VerifyContext, ViolationCode
from app.services.agents.rules import Rule, RuleContext, evaluate_rules
from app.services.agents.text_utils import ZH_CN, effective_length

MIN_LENGTH = 10
MAX_PUNCTUATION_RATIO = 0.2
MAX_EMOJIS = 3
MIN_READABILITY = 0.5

MAX_AVG_SENTENCE_LENGTH = 100
MAX_UPPERCASE_RATIO = 0.3

PUNCTUATION = re.compile(r"[!?.,;:'\"]")
EMOJI = re.compile(
    "[\U0001F600-\U0001F64F\U0001F300-\U0001F5FF\U0001F680-\U0001F6FF\u2600-\u26FF\u2700-\u27BF]"
)
SENTENCE_SPLIT = re.compile(r"[。.!?]")
UPPERCASE = re.compile(r"[A-Z]")
LATIN_RUN = re.compile(r"[a-zA-Z]{3,}")
CJK_RUN = re.compile(r"[\u4e00-\u9fa5]{3,}")


def punctuation_ratio(text: str) -> float:
    if not text:
        return 0.0
    return len(PUNCTUATION.findall(text)) / len(text)


def count_emoji(text: str) -> int:
    return len(EMOJI.findall(text))


def readability(text: str) -> float:
    """
    Sehr vereinfachte Lesbarkeit in [0, 1].

    -0.2 bei durchschnittlicher Satzlänge > 100 Zeichen,
    -0.3 bei mehr als 30 % Großbuchstaben.
    """
    if not text:
        return 1.0

    score = 1.0
    sentences = SENTENCE_SPLIT.split(text)
    if len(text) / len(sentences) > MAX_AVG_SENTENCE_LENGTH:
        score -= 0.2

    if len(UPPERCASE.findall(text)) / len(text) > MAX_UPPERCASE_RATIO:
        score -= 0.3

    return max(0.0, round(score, 6))


def compute_metrics(text: str, locale: str) -> QualityMetrics:
    return QualityMetrics(
        effective_length=effective_length(text, locale),
        punctuation_ratio=punctuation_ratio(text),
        emoji_count=count_emoji(text),
        readability=readability(text),
    )


def _len_over(ctx: RuleContext) -> List[str]:
    max_len = ctx.context.constraints.max_len
    if ctx.metrics.effective_length > max_len:
        return [f"Length exceeds limit: {ctx.metrics.effective_length} > {max_len}"]
    return []


def _len_too_short(ctx: RuleContext) -> List[str]:
    if ctx.metrics.effective_length < MIN_LENGTH:
        return [f"Content too short: {ctx.metrics.effective_length} characters"]
    return []


def _punct_excess(ctx: RuleContext) -> List[str]:
    if ctx.metrics.punctuation_ratio > MAX_PUNCTUATION_RATIO:
        return [f"Punctuation ratio too high: {ctx.metrics.punctuation_ratio * 100:.1f}%"]
    return []


def _emoji_excess(ctx: RuleContext) -> List[str]:
    if ctx.metrics.emoji_count > MAX_EMOJIS:
        return [f"Too many emojis: {ctx.metrics.emoji_count}"]
    return []


def _lang_mismatch(ctx: RuleContext) -> List[str]:
    if ctx.context.locale != ZH_CN:
        return []
    if LATIN_RUN.search(ctx.text) and not CJK_RUN.search(ctx.text):
        return [f"Language does not match locale {ctx.context.locale}"]
    return []


def _low_readability(ctx: RuleContext) -> List[str]:
    if ctx.metrics.readability < MIN_READABILITY:
        return [f"Poor readability: {ctx.metrics.readability:.2f}"]
    return []


QUALITY_RULES = [
    Rule(ViolationCode.QUALITY_LEN_OVER, Severity.ERROR, 0.3, _len_over),
    Rule(ViolationCode.QUALITY_LEN_TOO_SHORT, Severity.WARNING, 0.2, _len_too_short),
    Rule(ViolationCode.QUALITY_PUNCT_EXCESS, Severity.WARNING, 0.15, _punct_excess),
    Rule(ViolationCode.QUALITY_EMOJI_EXCESS, Severity.WARNING, 0.1, _emoji_excess),
    Rule(ViolationCode.QUALITY_LANG_MISMATCH, Severity.WARNING, 0.2, _lang_mismatch),
    Rule(ViolationCode.QUALITY_LOW_READABILITY, Severity.WARNING, 0.15, _low_readability),
]


class QualityAgent:
    def run(self, candidate: Candidate, context: VerifyContext) -> ScoreResult:
        metrics = compute_metrics(candidate.text, context.locale)
        ctx = RuleContext(candidate=candidate, context=context, text=candidate.text, metrics=metrics)
        return evaluate_rules(QUALITY_RULES, ctx, metrics=metrics)
