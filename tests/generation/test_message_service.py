import asyncio

import pytest

from app.core.config import Settings
from app.llm.fake_client import FakeLLMClient
from app.models.pydantic import Candidate, Channel, Claims, Verdict
from app.services.catalog.in_memory_catalog import InMemoryCatalog
from app.services.generation.candidate_generator import LLMCandidateGenerator
from app.services.generation import message_service as ms
from app.services.recommendation.recommendation_strategy import RecommendationService
from app.services.verification_service import VerificationService


class StubGenerator:
    """Liefert feste Kandidaten und merkt sich die Requests."""

    def __init__(self, candidates):
        self.candidates = candidates
        self.requests = []

    def generate(self, request):
        self.requests.append(request)
        return list(self.candidates)


@pytest.fixture
def build_service(catalog, now):
    def _build(generator=None, source=None):
        source = source or catalog
        return ms.MessageService(
            source,
            VerificationService(source, policy_version="v-test"),
            RecommendationService(source, clock=lambda: now),
            generator or LLMCandidateGenerator(FakeLLMClient()),
            settings=Settings(push_max_len=90, email_max_len=500, llm_candidates=3),
            clock=lambda: now,
        )

    return _build


def run(coro):
    return asyncio.run(coro)


# ---------------------------------------------------------------------------
# Push
# ---------------------------------------------------------------------------


def test_push_picks_url_free_candidate_and_verifies_it(build_service):
    push = run(build_service().generate_push("user_001"))

    assert push.main_text == "Your next favorite gear is waiting. Take a look today!"
    assert push.cta == "Shop Now"
    assert push.image_url.startswith("https://")
    assert push.verification.verdict == Verdict.ALLOW
    assert push.verification.candidate.text == push.main_text
    assert push.attribution.model == "fake-llm"
    assert push.attribution.max_len == 90


def test_push_fallback_when_only_url_candidates(build_service):
    generator = StubGenerator([Candidate(text="Go to www.example.com now", model="m")])
    push = run(build_service(generator).generate_push("user_001"))

    assert push.main_text == ms.PUSH_FALLBACK_NO_CANDIDATE
    assert push.verification.verdict == Verdict.ALLOW
    assert push.verification.candidate.model == ms.FALLBACK_MODEL
    assert push.attribution.model == ms.FALLBACK_MODEL


def test_push_fallback_without_recommendations(build_service):
    empty = InMemoryCatalog(items=[], user_events={}, holidays=[])
    generator = StubGenerator([])
    push = run(build_service(generator, source=empty).generate_push("user_001"))

    assert push.main_text == ms.PUSH_FALLBACK_NO_ITEMS
    # ohne Items wird gar nicht erst generiert
    assert generator.requests == []


def test_push_passes_recommendations_and_signals_to_generator(build_service):
    generator = StubGenerator([])
    run(build_service(generator).generate_push("user_001", locale="de-DE"))

    [request] = generator.requests
    assert request.channel == Channel.PUSH
    assert request.locale == "de-DE"
    assert request.constraints.no_url is True
    assert 5 <= len(request.items) <= ms.PUSH_RECOMMENDATIONS
    assert request.signals.recent_view > 0


# ---------------------------------------------------------------------------
# Email
# ---------------------------------------------------------------------------


def test_email_selects_best_verified_candidate(build_service):
    email = run(build_service().generate_email("user_001"))

    assert email.subject == "Picked for you this week"
    assert email.cta == "Shop Now"
    assert email.bullets == ["Free shipping on selected items", "Easy returns"]
    assert email.verification.verdict == Verdict.ALLOW
    assert email.attribution.channel == Channel.EMAIL


def test_email_defaults_for_missing_fields(build_service):
    text = "A short note about new cameras that fit your style"
    generator = StubGenerator([Candidate(text=text, model="m")])
    email = run(build_service(generator).generate_email("user_001"))

    assert email.subject == ms.EMAIL_DEFAULT_SUBJECT
    assert email.cta == ms.EMAIL_DEFAULT_CTA
    assert email.body == text
    assert email.preview == text[: ms.EMAIL_PREVIEW_LEN]


def test_email_drops_invented_item_ids(build_service):
    candidate = Candidate(
        text="A short note about new cameras that fit your style",
        claims=Claims(referenced_item_ids=["v1|itm|does-not-exist"]),
        model="m",
    )
    email = run(build_service(StubGenerator([candidate])).generate_email("user_001"))

    assert email.attribution.claims.referenced_item_ids == []
    assert email.verification.scores.fact == 1.0


def test_email_fallback_when_no_candidates(build_service):
    email = run(build_service(StubGenerator([])).generate_email("user_001"))

    assert email.subject == ms.EMAIL_FALLBACK_SUBJECT
    assert email.body == ms.EMAIL_FALLBACK_BODY
    assert email.verification.candidate.model == ms.FALLBACK_MODEL
    assert email.verification.audit.policy_version == "v-test"


# ---------------------------------------------------------------------------
# generate
# ---------------------------------------------------------------------------


def test_generate_success_returns_best_message(build_service):
    response = run(build_service().generate("user_001", Channel.PUSH))

    assert response.success is True
    assert response.message == "Your next favorite gear is waiting. Take a look today!"
    assert response.verification.verdict == Verdict.ALLOW
    assert response.error is None


def test_generate_all_rejected(build_service):
    generator = StubGenerator([Candidate(text="This offer is a total scam deal", model="m")])
    response = run(build_service(generator).generate("user_001", Channel.PUSH))

    assert response.success is False
    assert response.error == "All candidates failed verification"
    assert response.verification.verdict == Verdict.REJECT


def test_generate_without_candidates(build_service):
    response = run(build_service(StubGenerator([])).generate("user_001", Channel.EMAIL))

    assert response.success is False
    assert response.error == "LLM failed to generate candidates"
    assert response.verification is None


def test_generate_uses_requested_items(build_service, catalog):
    items = run(catalog.list_items())
    wanted = [items[0].item_id, "v1|itm|unknown", items[1].item_id]
    generator = StubGenerator([])

    run(build_service(generator).generate("user_001", Channel.PUSH, item_ids=wanted))

    assert [i.item_id for i in generator.requests[0].items] == [items[0].item_id, items[1].item_id]


def test_generate_returns_suggested_fix_for_revise(build_service):
    text = "Thanks for buying again, here is something new for you"
    candidate = Candidate(text=text, claims=Claims(referenced_events=["recent_purchase"]), model="m")
    response = run(build_service(StubGenerator([candidate])).generate("user_005", Channel.PUSH))

    assert response.verification.verdict == Verdict.REVISE
    assert response.success is True
    assert response.message == text
    assert response.verification.auto_fix.remove_claims == ["recent_purchase"]


# ---------------------------------------------------------------------------
# abgelehnte Kandidaten werden nie ausgeliefert
# ---------------------------------------------------------------------------

DENYLISTED = "This is no scam, grab your new camera today"


def test_push_rejected_candidate_falls_back(build_service):
    push = run(build_service(StubGenerator([Candidate(text=DENYLISTED, model="m")])).generate_push("user_001"))

    assert push.main_text == ms.PUSH_FALLBACK_NO_CANDIDATE
    assert push.verification.verdict == Verdict.ALLOW
    assert push.attribution.model == ms.FALLBACK_MODEL


def test_email_rejected_candidate_falls_back(build_service):
    email = run(build_service(StubGenerator([Candidate(text=DENYLISTED, model="m")])).generate_email("user_001"))

    assert email.body == ms.EMAIL_FALLBACK_BODY
    assert email.subject == ms.EMAIL_FALLBACK_SUBJECT
    assert email.verification.candidate.model == ms.FALLBACK_MODEL
