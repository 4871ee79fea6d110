import logging
import os
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException

from app.core.config import settings
from app.llm.fake_client import FakeLLMClient
from app.llm.llm_client import LLMClient
from app.models.pydantic import (
    EmailContent,
    GenerateRequest,
    GenerateResponse,
    PushContent,
    RateLimitStatus,
    UserProfile,
    UserRequest,
    VerifyRequest,
    VerifyResponse,
)
from app.services.catalog.catalog_source import CatalogSource, CatalogUnavailableError
from app.services.catalog.in_memory_catalog import InMemoryCatalog
from app.services.generation.candidate_generator import LLMCandidateGenerator
from app.services.generation.message_service import MessageService
from app.services.rate_limiter import RateLimiter
from app.services.recommendation.recommendation_strategy import RecommendationService
from app.services.verification_service import VerificationService

logger = logging.getLogger(__name__)

router = APIRouter()

PROFILE_RECOMMENDATIONS = 5


# ---------------------------------------------------------------------------
# Dependency-Provider (in Tests per app.dependency_overrides ersetzbar)
# ---------------------------------------------------------------------------


@lru_cache
def get_catalog() -> CatalogSource:
    return InMemoryCatalog()


@lru_cache
def get_llm_client() -> LLMClient:
    # Wenn TEST_MODE=1 gesetzt ist, wird kein echtes LLM aufgerufen
    if os.getenv("TEST_MODE") == "1":
        return FakeLLMClient()
    from app.llm.openai_client import OpenAIClient

    return OpenAIClient(model_name=settings.llm_model, temperature=settings.llm_temperature)


@lru_cache
def get_rate_limiter() -> RateLimiter:
    return RateLimiter(
        max_calls_per_day=settings.rate_limit_per_day,
        enabled=settings.is_production,
    )


def get_verification_service(catalog: CatalogSource = Depends(get_catalog)) -> VerificationService:
    return VerificationService(
        catalog,
        policy_version=settings.policy_version,
        event_window_days=settings.event_window_days,
        lookup_timeout=settings.catalog_timeout_seconds,
    )


def get_recommendation_service(catalog: CatalogSource = Depends(get_catalog)) -> RecommendationService:
    return RecommendationService(catalog)


def get_message_service(
    catalog: CatalogSource = Depends(get_catalog),
    verifier: VerificationService = Depends(get_verification_service),
    recommender: RecommendationService = Depends(get_recommendation_service),
    llm_client: LLMClient = Depends(get_llm_client),
) -> MessageService:
    generator = LLMCandidateGenerator(llm_client, temperature=settings.llm_temperature)
    return MessageService(catalog, verifier, recommender, generator, settings=settings)


def _catalog_down(e: CatalogUnavailableError) -> HTTPException:
    logger.error("Katalog nicht erreichbar: %s", e)
    return HTTPException(status_code=503, detail=f"Catalog unavailable: {e}")


def _internal_error(e: Exception) -> HTTPException:
    logger.exception("Unerwarteter Fehler")
    return HTTPException(status_code=500, detail=str(e))


# ---------------------------------------------------------------------------
# Routen
# ---------------------------------------------------------------------------


# einfacher Health-Check
@router.get("/health")
async def health():
    return {"status": "ok"}


# verifiziert fertige Kandidaten (ohne Generierung)
@router.post("/verify", response_model=VerifyResponse)
async def verify(req: VerifyRequest, service: VerificationService = Depends(get_verification_service)):
    try:
        results = await service.verify(req.candidates, req.context)
        return VerifyResponse(results=results)
    except CatalogUnavailableError as e:
        raise _catalog_down(e)
    except Exception as e:
        raise _internal_error(e)


# kompletter Flow mit Tageslimit
@router.post("/generate", response_model=GenerateResponse)
async def generate(
    req: GenerateRequest,
    service: MessageService = Depends(get_message_service),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    # Slot wird vor der Generierung reserviert, parallele Calls sehen ihn schon
    status = limiter.acquire()
    if not status.allowed:
        raise HTTPException(
            status_code=429,
            detail={
                "error": "Daily API limit exceeded. Please try again tomorrow.",
                "remaining": status.remaining,
                "reset_at": status.reset_at.isoformat() if status.reset_at else None,
            },
        )

    try:
        response = await service.generate(req.user_id, req.channel, req.locale, req.item_ids)
    except CatalogUnavailableError as e:
        limiter.release()
        raise _catalog_down(e)
    except Exception as e:
        limiter.release()
        raise _internal_error(e)

    if not response.success:
        limiter.release()
    return response


@router.post("/push/generate", response_model=PushContent)
async def generate_push(req: UserRequest, service: MessageService = Depends(get_message_service)):
    try:
        return await service.generate_push(req.user_id)
    except CatalogUnavailableError as e:
        raise _catalog_down(e)
    except Exception as e:
        raise _internal_error(e)


@router.post("/email/generate", response_model=EmailContent)
async def generate_email(req: UserRequest, service: MessageService = Depends(get_message_service)):
    try:
        return await service.generate_email(req.user_id)
    except CatalogUnavailableError as e:
        raise _catalog_down(e)
    except Exception as e:
        raise _internal_error(e)


@router.get("/users/{user_id}/profile", response_model=UserProfile)
async def user_profile(
    user_id: str,
    catalog: CatalogSource = Depends(get_catalog),
    recommender: RecommendationService = Depends(get_recommendation_service),
):
    try:
        signals = await recommender.build_user_signals(user_id)
        events = await catalog.get_user_events(user_id, settings.event_window_days)
        items = await recommender.get_recommendations(user_id, PROFILE_RECOMMENDATIONS)
    except CatalogUnavailableError as e:
        raise _catalog_down(e)

    return UserProfile(user_id=user_id, signals=signals, recent_events=events, recommended_items=items)


@router.get("/rate-limit/status", response_model=RateLimitStatus)
async def rate_limit_status(limiter: RateLimiter = Depends(get_rate_limiter)):
    return limiter.status()
