import pytest

from app.models.pydantic import Verdict
from app.services.policy.verdict_policy import decide


@pytest.mark.parametrize(
    "fact, compliance, quality, expected",
    [
        (1.0, 1.0, 1.0, Verdict.ALLOW),
        (0.8, 0.8, 0.7, Verdict.ALLOW),
        # Compliance zuerst
        (1.0, 0.0, 1.0, Verdict.REJECT),
        (1.0, 0.79, 1.0, Verdict.REVISE),
        (0.0, 0.5, 0.0, Verdict.REVISE),
        # Fact
        (0.59, 1.0, 1.0, Verdict.REJECT),
        (0.6, 1.0, 1.0, Verdict.REVISE),
        (0.79, 1.0, 0.0, Verdict.REVISE),
        # Quality
        (1.0, 1.0, 0.49, Verdict.REJECT),
        (1.0, 1.0, 0.5, Verdict.REVISE),
        (1.0, 1.0, 0.69, Verdict.REVISE),
    ],
)
def test_decide_thresholds(fact, compliance, quality, expected):
    assert decide(fact, compliance, quality) == expected


def test_zero_compliance_always_rejects():
    for fact in (0.0, 0.5, 1.0):
        for quality in (0.0, 0.5, 1.0):
            assert decide(fact, 0.0, quality) == Verdict.REJECT
