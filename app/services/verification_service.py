import asyncio
import logging
from datetime import date
from typing import List, Optional

from app.core.config import settings
from app.models.pydantic import (
    Audit,
    Candidate,
    Scores,
    VerifyContext,
    VerifyResult,
)
from app.services.agents.compliance.compliance_agent import ComplianceAgent
from app.services.agents.fact.fact_agent import FactAgent
from app.services.agents.quality.quality_agent import QualityAgent
from app.services.catalog.catalog_source import CatalogLookupError, CatalogSource
from app.services.policy.auto_fix import suggest_fix
from app.services.policy.verdict_policy import decide

logger = logging.getLogger(__name__)


class VerificationService:
    """
    Orchestriert die drei Prüfschichten pro Kandidat.

    Alle Schichten laufen immer (keine Early-Returns), danach entscheidet die
    Verdict-Policy und der AutoFix-Advisor schlägt ggf. Reparaturen vor.
    Die Ergebnisliste hat dieselbe Länge und Reihenfolge wie die Kandidaten.
    """

    def __init__(
        self,
        catalog: CatalogSource,
        policy_version: Optional[str] = None,
        event_window_days: Optional[int] = None,
        lookup_timeout: Optional[float] = None,
    ) -> None:
        self.catalog = catalog
        self.lookup_timeout = lookup_timeout
        self.policy_version = policy_version or settings.policy_version
        self.fact_agent = FactAgent(
            catalog,
            event_window_days=event_window_days or settings.event_window_days,
            lookup_timeout=lookup_timeout,
        )
        self.compliance_agent = ComplianceAgent()
        self.quality_agent = QualityAgent()

    async def verify(self, candidates: List[Candidate], context: VerifyContext) -> List[VerifyResult]:
        # sequentiell, damit die Reihenfolge der Ergebnisse stabil bleibt
        results: List[VerifyResult] = []
        for candidate in candidates:
            results.append(await self.verify_candidate(candidate, context))
        return results

    async def verify_candidate(self, candidate: Candidate, context: VerifyContext) -> VerifyResult:
        fact = await self.fact_agent.run(candidate, context)
        compliance = self.compliance_agent.run(candidate, context)
        quality = self.quality_agent.run(candidate, context)

        verdict = decide(fact.score, compliance.score, quality.score)
        auto_fix = suggest_fix(candidate, context, fact, compliance, quality)

        audit = Audit(
            policy_version=self.policy_version,
            catalog_snapshot_date=await self._snapshot_date(context),
            # Zeitstempel aus dem Kontext: gleiche Eingabe -> gleiches Ergebnis
            timestamp=context.now,
        )

        violations = fact.violations + compliance.violations + quality.violations
        logger.debug(
            "Kandidat bewertet: verdict=%s fact=%.2f compliance=%.2f quality=%.2f violations=%d",
            verdict.value,
            fact.score,
            compliance.score,
            quality.score,
            len(violations),
        )

        return VerifyResult(
            verdict=verdict,
            scores=Scores(fact=fact.score, compliance=compliance.score, quality=quality.score),
            violations=violations,
            auto_fix=auto_fix,
            audit=audit,
            candidate=candidate,
            metrics=quality.metrics,
        )

    async def _snapshot_date(self, context: VerifyContext) -> date:
        # ein kaputter Snapshot-Lookup darf das Ergebnis nicht verhindern
        try:
            if self.lookup_timeout is not None:
                return await asyncio.wait_for(self.catalog.snapshot_date(), timeout=self.lookup_timeout)
            return await self.catalog.snapshot_date()
        except (CatalogLookupError, asyncio.TimeoutError) as e:
            logger.warning("Snapshot-Datum nicht lesbar (%r), nutze Datum des Kontexts", e)
            return context.now.date()
