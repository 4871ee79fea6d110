"""
Zentrale Datenmodelle der Copy-Verifikation.

- Claims / Candidate: was eine generierte Nachricht über Katalog, Marken,
  Nutzerverhalten und Feiertage behauptet.
- VerifyContext: request-bezogene Fakten (Nutzer, Kanal, Locale, Constraints).
- Violation / ScoreResult / VerifyResult / AutoFix: Ergebnis der drei
  Prüfschichten (Fact, Compliance, Quality) inkl. Verdict und Audit.
- Item / UserEvent / Holiday: Sicht des Kerns auf den Katalog.
- PushContent / EmailContent: Kanal-Payloads mit gemeinsamer Attribution.

Alle Modelle, die gescored werden, sind frozen. Scoring verändert den Input
nie, nur der AutoFix leitet einen neuen Textvorschlag ab.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Channel(str, Enum):
    PUSH = "PUSH"
    EMAIL = "EMAIL"


class Verdict(str, Enum):
    ALLOW = "ALLOW"
    REVISE = "REVISE"
    REJECT = "REJECT"


class Severity(str, Enum):
    ERROR = "ERROR"
    WARNING = "WARNING"


class ViolationCode(str, Enum):
    # Fact
    FACT_USER_EVENT_MISS = "FACT_USER_EVENT_MISS"
    FACT_ITEM_INVALID = "FACT_ITEM_INVALID"
    FACT_BRAND_MISMATCH = "FACT_BRAND_MISMATCH"
    FACT_HOLIDAY_INVALID = "FACT_HOLIDAY_INVALID"
    # Compliance
    COMPLIANCE_URL_FORBIDDEN = "COMPLIANCE_URL_FORBIDDEN"
    COMPLIANCE_ABSOLUTE_WORDS = "COMPLIANCE_ABSOLUTE_WORDS"
    COMPLIANCE_FORBIDDEN_WORDS = "COMPLIANCE_FORBIDDEN_WORDS"
    COMPLIANCE_EXCESSIVE_PUNCTUATION = "COMPLIANCE_EXCESSIVE_PUNCTUATION"
    COMPLIANCE_PRICE_FORBIDDEN = "COMPLIANCE_PRICE_FORBIDDEN"
    # Quality
    QUALITY_LEN_OVER = "QUALITY_LEN_OVER"
    QUALITY_LEN_TOO_SHORT = "QUALITY_LEN_TOO_SHORT"
    QUALITY_PUNCT_EXCESS = "QUALITY_PUNCT_EXCESS"
    QUALITY_EMOJI_EXCESS = "QUALITY_EMOJI_EXCESS"
    QUALITY_LANG_MISMATCH = "QUALITY_LANG_MISMATCH"
    QUALITY_LOW_READABILITY = "QUALITY_LOW_READABILITY"


# Semantische Verhaltens-Tags, die eine Nachricht behaupten darf
BehaviorTag = Literal["recent_view", "recent_add_to_cart", "recent_purchase"]
EventType = Literal["view", "add_to_cart", "purchase"]


def _as_utc(value: datetime) -> datetime:
    # naive Zeitstempel gelten als UTC, alle anderen werden nach UTC umgerechnet
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ---------------------------------------------------------------------------
# Claims / Candidate
# ---------------------------------------------------------------------------


class Claims(BaseModel):
    """
    Strukturierte Behauptungen einer Nachricht.

    Fehlende oder null-Felder werden zu leeren Listen bzw. None normalisiert;
    das Fehlen eines Claims ist nie selbst eine Violation.
    """

    model_config = ConfigDict(frozen=True)

    referenced_item_ids: List[str] = Field(default_factory=list)
    referenced_brands: List[str] = Field(default_factory=list)
    referenced_events: List[str] = Field(default_factory=list)
    referenced_holiday: Optional[str] = None
    mentioned_benefits: List[str] = Field(default_factory=list)

    @field_validator(
        "referenced_item_ids",
        "referenced_brands",
        "referenced_events",
        "mentioned_benefits",
        mode="before",
    )
    @classmethod
    def _none_to_empty(cls, v):
        if v is None:
            return []
        return v

    @field_validator("referenced_item_ids")
    @classmethod
    def _unique_item_ids(cls, v: List[str]) -> List[str]:
        # Reihenfolge trägt keine Bedeutung, Duplikate werden trotzdem stabil entfernt
        return list(dict.fromkeys(v))

    @field_validator("referenced_holiday", mode="before")
    @classmethod
    def _blank_holiday(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class Candidate(BaseModel):
    """Eine generierte Nachrichtenvariante (gehört exklusiv zum Verify-Call)."""

    model_config = ConfigDict(frozen=True)

    text: str = ""
    claims: Claims = Field(default_factory=Claims)
    model: str = "unknown"
    token_count: Optional[int] = None

    # optionale Email-Felder (nur EMAIL-Kanal)
    subject: Optional[str] = None
    preview: Optional[str] = None
    body: Optional[str] = None
    bullets: Optional[List[str]] = None
    cta: Optional[str] = None

    @field_validator("claims", mode="before")
    @classmethod
    def _none_claims(cls, v):
        if v is None:
            return Claims()
        return v

    @field_validator("text", mode="before")
    @classmethod
    def _none_text(cls, v):
        return v or ""


# ---------------------------------------------------------------------------
# Kontext
# ---------------------------------------------------------------------------


class Constraints(BaseModel):
    max_len: int = Field(gt=0)
    no_url: bool = False
    no_price: bool = False


class VerifyContext(BaseModel):
    """Request-bezogene Fakten zur Bewertung; wird nicht persistiert."""

    user_id: str
    market: str = "US"
    now: datetime
    channel: Channel
    locale: str = "en-US"
    constraints: Constraints

    @field_validator("now")
    @classmethod
    def _now_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)


# ---------------------------------------------------------------------------
# Ergebnisse
# ---------------------------------------------------------------------------


class Violation(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: ViolationCode
    message: str
    severity: Severity
    # Claim, auf den sich die Violation bezieht (z.B. Verhaltens-Tag oder Item-ID)
    claim: Optional[str] = None


class QualityMetrics(BaseModel):
    effective_length: int = 0
    punctuation_ratio: float = 0.0
    emoji_count: int = 0
    readability: float = 1.0


class ScoreResult(BaseModel):
    score: float = Field(ge=0.0, le=1.0)
    violations: List[Violation] = Field(default_factory=list)
    metrics: Optional[QualityMetrics] = None

    def has(self, code: ViolationCode) -> bool:
        return any(v.code == code for v in self.violations)


class Scores(BaseModel):
    fact: float
    compliance: float
    quality: float

    @property
    def mean(self) -> float:
        return (self.fact + self.compliance + self.quality) / 3.0


class AutoFix(BaseModel):
    """Rein beratend: wird nie automatisch auf candidate.text angewendet."""

    truncate_to: Optional[int] = None
    remove_urls: Optional[bool] = None
    remove_claims: Optional[List[str]] = None
    suggested: Optional[str] = None

    def is_empty(self) -> bool:
        return (
            self.truncate_to is None
            and self.remove_urls is None
            and not self.remove_claims
            and self.suggested is None
        )


class Audit(BaseModel):
    policy_version: str
    catalog_snapshot_date: date
    timestamp: datetime


class VerifyResult(BaseModel):
    verdict: Verdict
    scores: Scores
    violations: List[Violation] = Field(default_factory=list)
    auto_fix: Optional[AutoFix] = None
    audit: Audit
    candidate: Candidate
    metrics: Optional[QualityMetrics] = None


# ---------------------------------------------------------------------------
# Katalog-Entitäten
# ---------------------------------------------------------------------------


class Item(BaseModel):
    model_config = ConfigDict(frozen=True)

    item_id: str
    title: str
    price: float
    currency: str = "USD"
    brand: Optional[str] = None
    category: str
    is_active: bool = True
    image_url: Optional[str] = None
    free_shipping: bool = False

    # Empfehlungslogik
    item_type: Literal["device", "accessory"] = "device"
    compatible_brands: List[str] = Field(default_factory=list)
    device_category: Optional[str] = None


class UserEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_type: EventType
    item_id: str
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def _ts_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)


class Holiday(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    start_date: date
    end_date: date
    locale: str = "en-US"


class UserSignals(BaseModel):
    recent_view: int = 0
    recent_add_to_cart: int = 0
    recent_purchase: int = 0
    tags: List[str] = Field(default_factory=list)
    favorite_brands: List[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Kanal-Payloads (Push | Email) mit gemeinsamer Attribution
# ---------------------------------------------------------------------------


class Attribution(BaseModel):
    model: str
    token_count: Optional[int] = None
    claims: Claims = Field(default_factory=Claims)
    locale: str
    channel: Channel
    max_len: int


class PushContent(BaseModel):
    type: Literal["PUSH"] = "PUSH"
    main_text: str
    sub_text: Optional[str] = None
    cta: Optional[str] = None
    image_url: Optional[str] = None
    verification: VerifyResult
    attribution: Attribution


class EmailContent(BaseModel):
    type: Literal["EMAIL"] = "EMAIL"
    subject: str
    preview: str
    body: str
    bullets: Optional[List[str]] = None
    cta: Optional[str] = None
    verification: VerifyResult
    attribution: Attribution


ChannelContent = Annotated[Union[PushContent, EmailContent], Field(discriminator="type")]


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------


class VerifyRequest(BaseModel):
    """Request-Body für den /verify-Endpoint."""

    context: VerifyContext
    candidates: List[Candidate] = Field(default_factory=list)


class VerifyResponse(BaseModel):
    results: List[VerifyResult]


class GenerateRequest(BaseModel):
    user_id: str
    channel: Channel
    locale: Optional[str] = None
    item_ids: Optional[List[str]] = None


class GenerateResponse(BaseModel):
    success: bool
    channel: Channel
    message: Optional[str] = None
    verification: Optional[VerifyResult] = None
    error: Optional[str] = None


class UserRequest(BaseModel):
    user_id: str


class UserProfile(BaseModel):
    user_id: str
    signals: UserSignals
    recent_events: List[UserEvent]
    recommended_items: List[Item]


class RateLimitStatus(BaseModel):
    allowed: bool
    remaining: int
    reset_at: Optional[datetime] = None
    call_count: int = 0
    max_calls: int = 0
    enabled: bool = False
