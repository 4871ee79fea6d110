"""
FactAgent: prüft die Claims eines Kandidaten gegen den Katalog-Snapshot.

Ablauf:
1. Evidence laden (einzige I/O): Nutzer-Events im 7-Tage-Fenster,
   Gültigkeit jedes referenzierten Items, Marken der Items, Feiertag.
2. Regeln synchron über die Evidence auswerten.

Fehlgeschlagene Einzel-Lookups (CatalogLookupError, Timeout) werden wie
"ungültig" bzw. "keine Events" behandelt und nur geloggt. Ein komplett
ausgefallener Katalog (CatalogUnavailableError) wird nicht gefangen.

Scope: Konsistenz mit dem Katalog-Snapshot, keine absolute Faktentreue.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, List, Optional, TypeVar

from app.models.pydantic import Candidate, ScoreResult, Severity, VerifyContext, ViolationCode
from app.services.agents.rules import FactEvidence, Hit, Rule, RuleContext, evaluate_rules
from app.services.catalog.catalog_source import CatalogLookupError, CatalogSource

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_EVENT_WINDOW_DAYS = 7

# Verhaltens-Tag -> Event-Typ im Katalog
BEHAVIOR_TAG_EVENTS = {
    "recent_view": "view",
    "recent_add_to_cart": "add_to_cart",
    "recent_purchase": "purchase",
}


def _event_misses(ctx: RuleContext) -> List[Hit]:
    hits: List[Hit] = []
    for tag in dict.fromkeys(ctx.candidate.claims.referenced_events):
        event_type = BEHAVIOR_TAG_EVENTS.get(tag)
        if event_type is None:
            # unbekannte Tags sind keine Behauptung, die wir prüfen können
            continue
        if event_type not in ctx.evidence.event_types:
            hits.append(
                Hit(
                    message=(
                        f"Claims contain {tag} but user has no {event_type} "
                        f"history in the last {ctx.evidence.event_window_days} days"
                    ),
                    claim=tag,
                )
            )
    return hits


def _invalid_items(ctx: RuleContext) -> List[Hit]:
    return [
        Hit(message=f"Item {item_id} is invalid or inactive", claim=item_id)
        for item_id in ctx.evidence.invalid_item_ids
    ]


def _brand_mismatches(ctx: RuleContext) -> List[Hit]:
    return [
        Hit(message=f'Mentioned brand "{brand}" does not match recommended items', claim=brand)
        for brand in dict.fromkeys(ctx.candidate.claims.referenced_brands)
        if brand not in ctx.evidence.item_brands
    ]


def _holiday_invalid(ctx: RuleContext) -> List[Hit]:
    holiday = ctx.candidate.claims.referenced_holiday
    if holiday is None or ctx.evidence.holiday_valid:
        return []
    return [Hit(message=f'Holiday "{holiday}" is not in valid time window', claim=holiday)]


FACT_RULES = [
    Rule(ViolationCode.FACT_USER_EVENT_MISS, Severity.ERROR, 0.3, _event_misses),
    Rule(ViolationCode.FACT_ITEM_INVALID, Severity.ERROR, 0.5, _invalid_items),
    Rule(ViolationCode.FACT_BRAND_MISMATCH, Severity.WARNING, 0.15, _brand_mismatches),
    Rule(ViolationCode.FACT_HOLIDAY_INVALID, Severity.ERROR, 0.2, _holiday_invalid),
]


class FactAgent:
    def __init__(
        self,
        catalog: CatalogSource,
        event_window_days: int = DEFAULT_EVENT_WINDOW_DAYS,
        lookup_timeout: Optional[float] = None,
    ) -> None:
        self.catalog = catalog
        self.event_window_days = event_window_days
        self.lookup_timeout = lookup_timeout

    async def run(self, candidate: Candidate, context: VerifyContext) -> ScoreResult:
        evidence = await self.collect_evidence(candidate, context)
        ctx = RuleContext(
            candidate=candidate,
            context=context,
            text=candidate.text,
            evidence=evidence,
        )
        return evaluate_rules(FACT_RULES, ctx)

    async def collect_evidence(self, candidate: Candidate, context: VerifyContext) -> FactEvidence:
        claims = candidate.claims

        event_types: frozenset = frozenset()
        if claims.referenced_events:
            events = await self._lookup(
                self.catalog.get_user_events(context.user_id, self.event_window_days, as_of=context.now),
                default=[],
                what=f"user events of {context.user_id}",
            )
            event_types = frozenset(e.event_type for e in events)

        invalid_item_ids: List[str] = []
        for item_id in claims.referenced_item_ids:
            valid = await self._lookup(
                self.catalog.is_item_valid(item_id),
                default=False,
                what=f"item {item_id}",
            )
            if not valid:
                invalid_item_ids.append(item_id)

        item_brands: frozenset = frozenset()
        if claims.referenced_brands:
            items = await self._lookup(
                self.catalog.get_items(claims.referenced_item_ids),
                default={},
                what="item brands",
            )
            item_brands = frozenset(i.brand for i in items.values() if i.brand)

        holiday_valid: Optional[bool] = None
        if claims.referenced_holiday is not None:
            holiday_valid = await self._lookup(
                self.catalog.is_holiday_valid(claims.referenced_holiday, context.now, context.locale),
                default=False,
                what=f"holiday {claims.referenced_holiday}",
            )

        return FactEvidence(
            event_types=event_types,
            invalid_item_ids=tuple(invalid_item_ids),
            item_brands=item_brands,
            holiday_valid=holiday_valid,
            event_window_days=self.event_window_days,
        )

    async def _lookup(self, call: Awaitable[T], default: T, what: str) -> T:
        try:
            if self.lookup_timeout is not None:
                return await asyncio.wait_for(call, timeout=self.lookup_timeout)
            return await call
        except (CatalogLookupError, asyncio.TimeoutError) as e:
            logger.warning("Katalog-Lookup fehlgeschlagen (%s): %r, wird als ungültig gewertet", what, e)
            return default
