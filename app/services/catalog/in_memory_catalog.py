from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from app.models.pydantic import Holiday, Item, UserEvent
from app.services.catalog import fixtures

# Feiertags-Fenster: 3 Tage vorher bis 1 Tag nachher
HOLIDAY_LEAD_DAYS = 3
HOLIDAY_TRAIL_DAYS = 1


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryCatalog:
    """
    Referenz-Implementierung des CatalogSource-Protokolls über statische Daten.

    Wird für die Demo und in Tests verwendet. Liest nur, verändert nie Zustand.
    """

    def __init__(
        self,
        items: Iterable[Item] | None = None,
        user_events: Mapping[str, Sequence[UserEvent]] | None = None,
        holidays: Iterable[Holiday] | None = None,
        snapshot: date | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._items: Dict[str, Item] = {
            i.item_id: i for i in (fixtures.ITEMS if items is None else items)
        }
        self._events: Dict[str, List[UserEvent]] = {
            uid: list(evs)
            for uid, evs in (fixtures.USER_EVENTS if user_events is None else user_events).items()
        }
        self._holidays: List[Holiday] = list(fixtures.HOLIDAYS if holidays is None else holidays)
        self._snapshot = snapshot or fixtures.SNAPSHOT_DATE
        self._clock = clock

    async def get_item(self, item_id: str) -> Optional[Item]:
        return self._items.get(item_id)

    async def get_items(self, item_ids: Sequence[str]) -> Dict[str, Item]:
        result: Dict[str, Item] = {}
        for item_id in item_ids:
            item = await self.get_item(item_id)
            if item is not None:
                result[item_id] = item
        return result

    async def is_item_valid(self, item_id: str) -> bool:
        item = await self.get_item(item_id)
        return item is not None and item.is_active

    async def get_user_events(
        self,
        user_id: str,
        window_days: int,
        as_of: Optional[datetime] = None,
    ) -> List[UserEvent]:
        as_of = as_of or self._clock()
        if as_of.tzinfo is None:
            as_of = as_of.replace(tzinfo=timezone.utc)
        cutoff = as_of - timedelta(days=window_days)
        return [e for e in self._events.get(user_id, []) if cutoff <= e.timestamp <= as_of]

    async def is_holiday_valid(self, holiday_name: str, as_of: datetime, locale: str) -> bool:
        holiday = next(
            (h for h in self._holidays if h.name == holiday_name and h.locale == locale),
            None,
        )
        if holiday is None:
            return False

        start = holiday.start_date - timedelta(days=HOLIDAY_LEAD_DAYS)
        end = holiday.end_date + timedelta(days=HOLIDAY_TRAIL_DAYS)
        if as_of.tzinfo is not None:
            as_of = as_of.astimezone(timezone.utc)
        return start <= as_of.date() <= end

    async def list_items(self) -> List[Item]:
        return list(self._items.values())

    async def snapshot_date(self) -> date:
        return self._snapshot
