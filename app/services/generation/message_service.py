"""
Nachrichten-Flows: Empfehlungen -> Generierung -> Auswahl -> Verifikation.

- generate_push: Vorfilter (pick_best) vor der Verifikation, Push-Payload.
- generate_email: alle Kandidaten verifizieren, bestes Ergebnis wählen.
- generate: generischer Flow für /generate mit success-Flag.

Findet sich kein brauchbarer Kandidat, wird ein fester Fallback-Text
ausgeliefert (nie erneut generiert), ebenso wenn der beste Kandidat REJECT
bekommt. Generierte Kandidaten werden immer verifiziert, der Fallback
bekommt ein festes ALLOW-Ergebnis (Modell "fallback").
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from app.core.config import Settings, settings as default_settings
from app.models.pydantic import (
    Attribution,
    Audit,
    Candidate,
    Channel,
    Claims,
    Constraints,
    EmailContent,
    GenerateResponse,
    Item,
    PushContent,
    Scores,
    Verdict,
    VerifyContext,
    VerifyResult,
)
from app.services.catalog.catalog_source import CatalogSource
from app.services.generation.candidate_generator import CandidateGenerator, GenerationRequest
from app.services.recommendation.recommendation_strategy import RecommendationService
from app.services.selection.candidate_selector import normalize_candidate, pick_best, select_best_result
from app.services.verification_service import VerificationService

logger = logging.getLogger(__name__)

FALLBACK_MODEL = "fallback"
PUSH_RECOMMENDATIONS = 6
EMAIL_RECOMMENDATIONS = 6
GENERATE_RECOMMENDATIONS = 3
EMAIL_CANDIDATES = 2

PUSH_FALLBACK_NO_ITEMS = "Check out our latest picks just for you!"
PUSH_FALLBACK_NO_CANDIDATE = "Hot deals are waiting for you!"
PUSH_SUB_TEXT = "Your favorites are waiting"
PUSH_CTA = "Shop Now"

EMAIL_FALLBACK_SUBJECT = "Your personalized picks are here"
EMAIL_FALLBACK_PREVIEW = "Hand-selected recommendations just for you"
EMAIL_FALLBACK_BODY = "Check out our latest recommendations based on what shoppers like you are viewing today."
EMAIL_FALLBACK_CTA = "Explore Now"
EMAIL_DEFAULT_SUBJECT = "Recommended for you"
EMAIL_DEFAULT_CTA = "View Details"
EMAIL_PREVIEW_LEN = 60


class MessageService:
    def __init__(
        self,
        catalog: CatalogSource,
        verifier: VerificationService,
        recommender: RecommendationService,
        generator: CandidateGenerator,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.catalog = catalog
        self.verifier = verifier
        self.recommender = recommender
        self.generator = generator
        self.settings = settings or default_settings
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # ------------------------------------------------------------------
    # Push
    # ------------------------------------------------------------------

    async def generate_push(self, user_id: str, locale: Optional[str] = None) -> PushContent:
        locale = locale or self.settings.default_locale
        constraints = Constraints(max_len=self.settings.push_max_len, no_url=True)
        context = self._context(user_id, Channel.PUSH, locale, constraints)

        items = await self.recommender.get_recommendations(user_id, PUSH_RECOMMENDATIONS, as_of=context.now)
        if not items:
            logger.info("Keine Empfehlungen für %s, Push-Fallback", user_id)
            return await self._push_fallback(PUSH_FALLBACK_NO_ITEMS, context)

        candidates = await self._generate(context, items, self.settings.llm_candidates)
        best = pick_best(
            candidates,
            [i.item_id for i in items],
            max_len=constraints.max_len,
            no_url=constraints.no_url,
        )
        if best is None:
            return await self._push_fallback(PUSH_FALLBACK_NO_CANDIDATE, context)

        verification = await self.verifier.verify_candidate(best, context)
        if verification.verdict == Verdict.REJECT:
            logger.info("Push-Kandidat für %s abgelehnt, Push-Fallback", user_id)
            return await self._push_fallback(PUSH_FALLBACK_NO_CANDIDATE, context)

        image_url = await self._image_url(best.claims)

        return PushContent(
            main_text=best.text,
            sub_text=PUSH_SUB_TEXT,
            cta=PUSH_CTA,
            image_url=image_url,
            verification=verification,
            attribution=self._attribution(best, context),
        )

    async def _push_fallback(self, text: str, context: VerifyContext) -> PushContent:
        candidate = Candidate(text=text, model=FALLBACK_MODEL)
        return PushContent(
            main_text=text,
            verification=await self._fallback_verification(candidate),
            attribution=self._attribution(candidate, context),
        )

    # ------------------------------------------------------------------
    # Email
    # ------------------------------------------------------------------

    async def generate_email(self, user_id: str, locale: Optional[str] = None) -> EmailContent:
        locale = locale or self.settings.default_locale
        constraints = Constraints(max_len=self.settings.email_max_len, no_url=False)
        context = self._context(user_id, Channel.EMAIL, locale, constraints)

        items = await self.recommender.get_recommendations(user_id, EMAIL_RECOMMENDATIONS, as_of=context.now)
        candidates = await self._generate(context, items, EMAIL_CANDIDATES) if items else []

        allowed = {i.item_id for i in items}
        candidates = [normalize_candidate(c, allowed) for c in candidates if c.text.strip()]

        best = select_best_result(await self.verifier.verify(candidates, context))
        if best is None or best.verdict == Verdict.REJECT:
            logger.info("Kein freigegebener Email-Kandidat für %s, Email-Fallback", user_id)
            return await self._email_fallback(context)

        candidate = best.candidate
        body = candidate.body or candidate.text
        return EmailContent(
            subject=candidate.subject or EMAIL_DEFAULT_SUBJECT,
            preview=candidate.preview or candidate.text[:EMAIL_PREVIEW_LEN],
            body=body,
            bullets=candidate.bullets,
            cta=candidate.cta or EMAIL_DEFAULT_CTA,
            verification=best,
            attribution=self._attribution(candidate, context),
        )

    async def _email_fallback(self, context: VerifyContext) -> EmailContent:
        candidate = Candidate(text=EMAIL_FALLBACK_BODY, model=FALLBACK_MODEL)
        return EmailContent(
            subject=EMAIL_FALLBACK_SUBJECT,
            preview=EMAIL_FALLBACK_PREVIEW,
            body=EMAIL_FALLBACK_BODY,
            cta=EMAIL_FALLBACK_CTA,
            verification=await self._fallback_verification(candidate),
            attribution=self._attribution(candidate, context),
        )

    # ------------------------------------------------------------------
    # Generischer Flow
    # ------------------------------------------------------------------

    async def generate(
        self,
        user_id: str,
        channel: Channel,
        locale: Optional[str] = None,
        item_ids: Optional[List[str]] = None,
    ) -> GenerateResponse:
        locale = locale or self.settings.default_locale
        max_len = self.settings.push_max_len if channel == Channel.PUSH else self.settings.email_max_len
        constraints = Constraints(max_len=max_len, no_url=channel == Channel.PUSH)
        context = self._context(user_id, channel, locale, constraints)

        if item_ids:
            found = await self.catalog.get_items(item_ids)
            items = [found[i] for i in item_ids if i in found]
        else:
            items = await self.recommender.get_recommendations(user_id, GENERATE_RECOMMENDATIONS, as_of=context.now)

        candidates = await self._generate(context, items, self.settings.llm_candidates)
        if not candidates:
            return GenerateResponse(
                success=False,
                channel=channel,
                error="LLM failed to generate candidates",
            )

        best = select_best_result(await self.verifier.verify(candidates, context))
        if best is None or best.verdict == Verdict.REJECT:
            return GenerateResponse(
                success=False,
                channel=channel,
                error="All candidates failed verification",
                verification=best,
            )

        message = (best.auto_fix.suggested if best.auto_fix else None) or best.candidate.text
        return GenerateResponse(success=True, channel=channel, message=message, verification=best)

    # ------------------------------------------------------------------
    # Hilfsfunktionen
    # ------------------------------------------------------------------

    def _context(self, user_id: str, channel: Channel, locale: str, constraints: Constraints) -> VerifyContext:
        return VerifyContext(
            user_id=user_id,
            market=self.settings.default_market,
            now=self._clock(),
            channel=channel,
            locale=locale,
            constraints=constraints,
        )

    async def _generate(self, context: VerifyContext, items: List[Item], n: int) -> List[Candidate]:
        signals = await self.recommender.build_user_signals(context.user_id, as_of=context.now)
        request = GenerationRequest(
            user_id=context.user_id,
            channel=context.channel,
            locale=context.locale,
            constraints=context.constraints,
            items=items,
            signals=signals,
            n=n,
        )
        # LLM-Client ist synchron, darf den Event-Loop nicht blockieren
        candidates = await asyncio.to_thread(self.generator.generate, request)
        logger.info("%d Kandidaten für %s (%s) generiert", len(candidates), context.user_id, context.channel.value)
        return candidates

    async def _image_url(self, claims: Claims) -> Optional[str]:
        if not claims.referenced_item_ids:
            return None
        item = await self.catalog.get_item(claims.referenced_item_ids[0])
        return item.image_url if item else None

    async def _fallback_verification(self, candidate: Candidate) -> VerifyResult:
        now = self._clock()
        return VerifyResult(
            verdict=Verdict.ALLOW,
            scores=Scores(fact=1.0, compliance=1.0, quality=1.0),
            violations=[],
            audit=Audit(
                policy_version=self.verifier.policy_version,
                catalog_snapshot_date=await self.catalog.snapshot_date(),
                timestamp=now,
            ),
            candidate=candidate,
        )

    @staticmethod
    def _attribution(candidate: Candidate, context: VerifyContext) -> Attribution:
        return Attribution(
            model=candidate.model,
            token_count=candidate.token_count,
            claims=candidate.claims,
            locale=context.locale,
            channel=context.channel,
            max_len=context.constraints.max_len,
        )
