"""
Schnittstelle des Kerns zum Katalog-/Event-Kollaborateur.

Der Kern liest nur (keine Mutationen). Alle Methoden sind async, weil ein
echter Katalog über das Netzwerk angebunden wird; das sind die einzigen
Suspension-Points der Verifikation.

Fehlerklassen:
- CatalogLookupError: ein einzelner Lookup ist fehlgeschlagen (Timeout,
  kaputter Eintrag). Der FactChecker wertet das als "ungültig".
- CatalogUnavailableError: der Kollaborateur ist komplett nicht erreichbar.
  Wird vom Kern nicht gefangen und geht als Transportfehler an den Aufrufer.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Optional, Protocol, Sequence

from app.models.pydantic import Item, UserEvent


class CatalogLookupError(Exception):
    """Einzelner Katalog-Lookup fehlgeschlagen."""


class CatalogUnavailableError(Exception):
    """Katalog-Kollaborateur insgesamt nicht verfügbar."""


class CatalogSource(Protocol):
    async def get_item(self, item_id: str) -> Optional[Item]:
        ...

    async def get_items(self, item_ids: Sequence[str]) -> Dict[str, Item]:
        """Nur gefundene Items; unbekannte IDs fehlen im Mapping."""
        ...

    async def is_item_valid(self, item_id: str) -> bool:
        """Nicht gefunden und inaktiv gelten beide als ungültig."""
        ...

    async def get_user_events(
        self,
        user_id: str,
        window_days: int,
        as_of: Optional[datetime] = None,
    ) -> List[UserEvent]:
        ...

    async def is_holiday_valid(self, holiday_name: str, as_of: datetime, locale: str) -> bool:
        ...

    async def list_items(self) -> List[Item]:
        ...

    async def snapshot_date(self) -> date:
        ...
