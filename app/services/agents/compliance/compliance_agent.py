"""
ComplianceAgent: Policy-Prüfung (Recht / Brand-Safety), rein, ohne I/O.

Harte Verstöße (URL in No-URL-Kanal, Wort aus der Denylist) setzen den Score
auf exakt 0 und erzwingen damit REJECT. Alle anderen Regeln ziehen feste
Penalties ab; sie dürfen sich ohne Untergrenze pro Regel aufsummieren.
"""

from __future__ import annotations

import re
from typing import List

from app.models.pydantic import Candidate, ScoreResult, Severity, VerifyContext, ViolationCode
from app.services.agents.compliance.word_lists import ABSOLUTE_WORDS, FORBIDDEN_WORDS, find_terms
from app.services.agents.rules import Hit, Rule, RuleContext, evaluate_rules
from app.services.agents.text_utils import has_url

MAX_EXCLAMATIONS = 2
MAX_QUESTION_MARKS = 2

# $12.99, ¥199, 199元, €5
PRICE_PATTERN = re.compile(r"[$¥€£]\s?\d[\d,.]*|\d[\d,.]*\s?元")


def _url_forbidden(ctx: RuleContext) -> List[str]:
    if ctx.context.constraints.no_url and has_url(ctx.text):
        return [f"{ctx.context.channel.value} channel does not allow URLs"]
    return []


def _absolute_words(ctx: RuleContext) -> List[Hit]:
    return [
        Hit(message=f"Contains absolute word: {word}", claim=word)
        for word in find_terms(ctx.text, ABSOLUTE_WORDS)
    ]


def _forbidden_words(ctx: RuleContext) -> List[str]:
    found = find_terms(ctx.text, FORBIDDEN_WORDS)
    if found:
        return [f"Contains forbidden words: {', '.join(found)}"]
    return []


def _excessive_punctuation(ctx: RuleContext) -> List[str]:
    hits = []
    exclamations = ctx.text.count("!")
    questions = ctx.text.count("?")
    if exclamations > MAX_EXCLAMATIONS:
        hits.append(f"Too many exclamation marks ({exclamations})")
    if questions > MAX_QUESTION_MARKS:
        hits.append(f"Too many question marks ({questions})")
    return hits


def _price_forbidden(ctx: RuleContext) -> List[str]:
    if ctx.context.constraints.no_price and PRICE_PATTERN.search(ctx.text):
        return ["Price display is not allowed"]
    return []


COMPLIANCE_RULES = [
    Rule(ViolationCode.COMPLIANCE_URL_FORBIDDEN, Severity.ERROR, 1.0, _url_forbidden, hard=True),
    Rule(ViolationCode.COMPLIANCE_ABSOLUTE_WORDS, Severity.ERROR, 0.3, _absolute_words),
    Rule(ViolationCode.COMPLIANCE_FORBIDDEN_WORDS, Severity.ERROR, 1.0, _forbidden_words, hard=True),
    Rule(ViolationCode.COMPLIANCE_EXCESSIVE_PUNCTUATION, Severity.WARNING, 0.1, _excessive_punctuation),
    Rule(ViolationCode.COMPLIANCE_PRICE_FORBIDDEN, Severity.WARNING, 0.2, _price_forbidden),
]


class ComplianceAgent:
    def run(self, candidate: Candidate, context: VerifyContext) -> ScoreResult:
        ctx = RuleContext(candidate=candidate, context=context, text=candidate.text)
        return evaluate_rules(COMPLIANCE_RULES, ctx)
