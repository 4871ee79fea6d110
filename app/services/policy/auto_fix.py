"""
AutoFix-Advisor: leitet aus den Violations mechanische Reparaturen ab.

- QUALITY_LEN_OVER          -> truncate_to = max(0, max_len - 3) (Platz für "...")
- COMPLIANCE_URL_FORBIDDEN  -> remove_urls = True
- FACT_USER_EVENT_MISS      -> remove_claims += Verhaltens-Tag

`suggested` entsteht aus dem Originaltext: erst URLs entfernen, dann
locale-abhängig kürzen. Der Vorschlag ist rein beratend; der Verifier
überschreibt candidate.text nie.
"""

from __future__ import annotations

from typing import List, Optional

from app.models.pydantic import AutoFix, Candidate, ScoreResult, VerifyContext, ViolationCode
from app.services.agents.text_utils import ELLIPSIS, strip_urls, truncate_text


def suggest_fix(
    candidate: Candidate,
    context: VerifyContext,
    fact: ScoreResult,
    compliance: ScoreResult,
    quality: ScoreResult,
) -> Optional[AutoFix]:
    fix = AutoFix()

    if quality.has(ViolationCode.QUALITY_LEN_OVER):
        fix.truncate_to = max(0, context.constraints.max_len - len(ELLIPSIS))

    if compliance.has(ViolationCode.COMPLIANCE_URL_FORBIDDEN):
        fix.remove_urls = True

    unsupported: List[str] = []
    for v in fact.violations:
        if v.code == ViolationCode.FACT_USER_EVENT_MISS and v.claim and v.claim not in unsupported:
            unsupported.append(v.claim)
    if unsupported:
        fix.remove_claims = unsupported

    suggested = candidate.text
    if fix.remove_urls:
        suggested = strip_urls(suggested)
    if fix.truncate_to is not None:
        suggested = truncate_text(suggested, fix.truncate_to, context.locale)
    suggested = suggested.strip()

    if suggested != candidate.text:
        fix.suggested = suggested

    if fix.is_empty():
        return None
    return fix
