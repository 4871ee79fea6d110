"""
Empfehlungsstrategie: wählt anhand des Nutzerverhaltens passende Katalog-Items.

Ablauf:
1. Verhaltensmuster bestimmen (Trigger-Event nach Priorität
   purchase > add_to_cart > view, Interessen aus den Views).
2. Strategie nach Trigger:
   - Gerät gekauft        -> nur Zubehör (score_accessory)
   - Zubehör gekauft      -> verwandtes Zubehör
   - view / add_to_cart   -> 60 % ähnliche Geräte + 40 % Zubehör
     (bei Zubehör als Trigger: ähnliches Zubehör)
3. Bereits gesehene Items aussortieren (außer beim Vergleichen im Browsing).
4. Auf 5 bis 10 Items auffüllen bzw. begrenzen.

Rein lesend gegenüber dem Katalog, deterministisch bei gleichem Snapshot.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Set, Tuple

from app.models.pydantic import Item, UserEvent, UserSignals
from app.services.catalog.catalog_source import CatalogSource
from app.services.recommendation.recommendation_scorer import score_accessory, score_similar_device

logger = logging.getLogger(__name__)

MAX_RECOMMENDATIONS = 10
MIN_RECOMMENDATIONS = 5
PATTERN_WINDOW_DAYS = 7
SIGNAL_WINDOW_DAYS = 7
INTEREST_WINDOW_DAYS = 14

SIMILAR_SHARE = 0.6
ACCESSORY_SHARE = 0.4

EVENT_PRIORITY = ("purchase", "add_to_cart")


@dataclass
class BehaviorPattern:
    user_id: str
    primary_event: UserEvent
    primary_item: Item
    category_interest: Dict[str, int] = field(default_factory=dict)
    brand_interest: Dict[str, int] = field(default_factory=dict)
    viewed_item_ids: Set[str] = field(default_factory=set)

    @property
    def is_purchase_or_cart(self) -> bool:
        return self.primary_event.event_type in EVENT_PRIORITY


def _latest(events: List[UserEvent]) -> Optional[UserEvent]:
    if not events:
        return None
    # stabil: bei gleichem Zeitstempel gewinnt das zuerst gelieferte Event
    return sorted(events, key=lambda e: e.timestamp, reverse=True)[0]


def _active(items: Dict[str, Item], item_id: str) -> Optional[Item]:
    item = items.get(item_id)
    if item is None or not item.is_active:
        return None
    return item


def _ranked(scored: List[Tuple[Item, int]], limit: int) -> List[Item]:
    positive = [(item, score) for item, score in scored if score > 0]
    positive.sort(key=lambda pair: pair[1], reverse=True)
    return [item for item, _ in positive[:limit]]


def build_behavior_pattern(user_id: str, events: List[UserEvent], items: Dict[str, Item]) -> Optional[BehaviorPattern]:
    if not events:
        return None

    category_interest: Dict[str, int] = {}
    brand_interest: Dict[str, int] = {}
    viewed: Set[str] = set()

    views = [e for e in events if e.event_type == "view"]
    for event in views:
        item = _active(items, event.item_id)
        if item is None:
            continue
        viewed.add(event.item_id)
        category_interest[item.category] = category_interest.get(item.category, 0) + 1
        if item.brand:
            brand_interest[item.brand] = brand_interest.get(item.brand, 0) + 1

    primary: Optional[UserEvent] = None
    for event_type in EVENT_PRIORITY:
        primary = _latest([e for e in events if e.event_type == event_type])
        if primary is not None:
            break

    if primary is None and category_interest:
        # nur Views: jüngster View in der meistgesehenen Kategorie
        top_category = max(category_interest.items(), key=lambda kv: kv[1])[0]
        primary = _latest(
            [e for e in views if e.item_id in items and items[e.item_id].category == top_category]
        )
    if primary is None:
        primary = _latest(views)
    if primary is None:
        return None

    primary_item = _active(items, primary.item_id)
    if primary_item is None:
        return None

    return BehaviorPattern(
        user_id=user_id,
        primary_event=primary,
        primary_item=primary_item,
        category_interest=category_interest,
        brand_interest=brand_interest,
        viewed_item_ids=viewed,
    )


def recommend_accessories_for_device(device: Item, catalog_items: List[Item], limit: int) -> List[Item]:
    accessories = [i for i in catalog_items if i.is_active and i.item_type == "accessory"]
    return _ranked([(a, score_accessory(a, device)) for a in accessories], limit)


def recommend_related_accessories(accessory: Item, catalog_items: List[Item], limit: int) -> List[Item]:
    trigger_brands = set(accessory.compatible_brands)
    related = [
        i
        for i in catalog_items
        if i.is_active
        and i.item_type == "accessory"
        and i.item_id != accessory.item_id
        and (
            (i.device_category is not None and i.device_category == accessory.device_category)
            or (i.brand is not None and i.brand == accessory.brand)
            or bool(trigger_brands.intersection(i.compatible_brands))
        )
    ]
    return related[:limit]


def recommend_for_browsing(item: Item, catalog_items: List[Item], limit: int) -> List[Item]:
    if item.item_type == "device":
        devices = [
            d
            for d in catalog_items
            if d.is_active and d.item_type == "device" and d.item_id != item.item_id
        ]
        similar = _ranked([(d, score_similar_device(d, item)) for d in devices], math.ceil(limit * SIMILAR_SHARE))
        accessories = recommend_accessories_for_device(item, catalog_items, math.ceil(limit * ACCESSORY_SHARE))
        return (similar + accessories)[:limit]

    similar_accessories = [
        i
        for i in catalog_items
        if i.is_active
        and i.item_type == "accessory"
        and i.item_id != item.item_id
        and (
            i.category == item.category
            or (i.brand is not None and i.brand == item.brand)
            or (i.device_category is not None and i.device_category == item.device_category)
        )
    ]
    return similar_accessories[:limit]


def generate_recommendations(pattern: BehaviorPattern, catalog_items: List[Item], limit: int) -> List[Item]:
    event_type = pattern.primary_event.event_type
    trigger = pattern.primary_item
    logger.debug("Trigger für %s: %s auf %s (%s)", pattern.user_id, event_type, trigger.item_id, trigger.item_type)

    if event_type == "purchase" and trigger.item_type == "device":
        logger.info("Strategie: Gerät gekauft -> Zubehör")
        return recommend_accessories_for_device(trigger, catalog_items, limit)
    if event_type == "purchase":
        logger.info("Strategie: Zubehör gekauft -> verwandtes Zubehör")
        return recommend_related_accessories(trigger, catalog_items, limit)

    logger.info("Strategie: View/Cart -> ähnliche Items + Zubehör")
    return recommend_for_browsing(trigger, catalog_items, limit)


def deduplicate(pattern: BehaviorPattern, recommendations: List[Item], limit: int) -> List[Item]:
    """
    Nach Kauf/Warenkorb fliegen alle bereits gesehenen Items raus; beim
    Browsing bleiben gesehene Items der Trigger-Kategorie (Nutzer vergleicht).
    Bleibt zu wenig übrig, wird die ungefilterte Liste genutzt.
    """
    fresh = [
        item
        for item in recommendations
        if item.item_id not in pattern.viewed_item_ids
        or (not pattern.is_purchase_or_cart and item.category == pattern.primary_item.category)
    ]
    if len(fresh) < limit / 2:
        return recommendations[:limit]
    return fresh[:limit]


class RecommendationService:
    def __init__(
        self,
        catalog: CatalogSource,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.catalog = catalog
        # ohne eigene Uhr entscheidet der Katalog über "jetzt"
        self._clock = clock

    def _as_of(self, as_of: Optional[datetime]) -> Optional[datetime]:
        if as_of is None and self._clock is not None:
            return self._clock()
        return as_of

    async def _items_by_id(self) -> Tuple[List[Item], Dict[str, Item]]:
        catalog_items = await self.catalog.list_items()
        return catalog_items, {i.item_id: i for i in catalog_items}

    async def get_behavior_pattern(self, user_id: str, as_of: Optional[datetime] = None) -> Optional[BehaviorPattern]:
        as_of = self._as_of(as_of)
        _, items = await self._items_by_id()
        events = await self.catalog.get_user_events(user_id, PATTERN_WINDOW_DAYS, as_of=as_of)
        return build_behavior_pattern(user_id, events, items)

    async def get_strategy_recommendations(
        self,
        user_id: str,
        limit: int = MAX_RECOMMENDATIONS,
        as_of: Optional[datetime] = None,
    ) -> List[Item]:
        as_of = self._as_of(as_of)
        catalog_items, items = await self._items_by_id()
        events = await self.catalog.get_user_events(user_id, PATTERN_WINDOW_DAYS, as_of=as_of)
        pattern = build_behavior_pattern(user_id, events, items)

        if pattern is None:
            logger.info("Kein Verhaltensmuster für %s, liefere aktive Geräte", user_id)
            return [i for i in catalog_items if i.is_active and i.item_type == "device"][:limit]

        return deduplicate(pattern, generate_recommendations(pattern, catalog_items, limit), limit)

    async def get_recommendations(
        self,
        user_id: str,
        limit: int = MAX_RECOMMENDATIONS,
        as_of: Optional[datetime] = None,
    ) -> List[Item]:
        """Rangliste mit 5 bis 10 Items (sofern der Katalog genug hergibt)."""
        as_of = self._as_of(as_of)
        recommendations = await self.get_strategy_recommendations(
            user_id, min(limit, MAX_RECOMMENDATIONS), as_of=as_of
        )

        if len(recommendations) < MIN_RECOMMENDATIONS:
            signals = await self.build_user_signals(user_id, as_of=as_of)
            taken = {i.item_id for i in recommendations}
            top_up = [
                item
                for item in await self.catalog.list_items()
                if item.is_active
                and item.item_id not in taken
                and ((item.brand and item.brand in signals.favorite_brands) or item.category in signals.tags)
            ]
            recommendations = recommendations + top_up[: MIN_RECOMMENDATIONS - len(recommendations)]
            logger.debug("Empfehlungen für %s aufgefüllt auf %d", user_id, len(recommendations))

        final_count = max(MIN_RECOMMENDATIONS, min(len(recommendations), MAX_RECOMMENDATIONS))
        return recommendations[:final_count]

    async def build_user_signals(self, user_id: str, as_of: Optional[datetime] = None) -> UserSignals:
        as_of = self._as_of(as_of)
        recent = await self.catalog.get_user_events(user_id, SIGNAL_WINDOW_DAYS, as_of=as_of)
        longer = await self.catalog.get_user_events(user_id, INTEREST_WINDOW_DAYS, as_of=as_of)
        _, items = await self._items_by_id()

        tags: List[str] = []
        brands: List[str] = []
        for event in longer:
            item = items.get(event.item_id)
            if item is None:
                continue
            if item.category not in tags:
                tags.append(item.category)
            if item.brand and item.brand not in brands:
                brands.append(item.brand)

        return UserSignals(
            recent_view=sum(1 for e in recent if e.event_type == "view"),
            recent_add_to_cart=sum(1 for e in recent if e.event_type == "add_to_cart"),
            recent_purchase=sum(1 for e in recent if e.event_type == "purchase"),
            tags=tags,
            favorite_brands=brands,
        )
