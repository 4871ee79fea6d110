import pytest

from app.models.pydantic import ViolationCode
from app.services.agents.quality import quality_agent
from app.services.agents.quality.quality_agent import QualityAgent, compute_metrics, readability


@pytest.fixture
def agent():
    return QualityAgent()


def test_good_text_scores_full_and_reports_metrics(agent, make_candidate, make_context):
    res = agent.run(make_candidate("Your new camera deserves a great lens"), make_context())

    assert res.score == 1.0
    assert res.metrics is not None
    assert res.metrics.effective_length == 35
    assert res.metrics.emoji_count == 0


def test_length_over_limit_en(agent, make_candidate, make_context):
    text = " ".join(["word"] * 30)
    res = agent.run(make_candidate(text), make_context(max_len=90))

    assert res.has(ViolationCode.QUALITY_LEN_OVER)
    assert res.score == pytest.approx(0.7)


def test_too_short(agent, make_candidate, make_context):
    res = agent.run(make_candidate("Hi"), make_context())

    assert res.has(ViolationCode.QUALITY_LEN_TOO_SHORT)
    assert res.score == pytest.approx(0.8)


def test_emoji_excess(agent, make_candidate, make_context):
    res = agent.run(make_candidate("Great picks for you today \U0001F389\U0001F389\U0001F389\U0001F389"), make_context())

    assert res.metrics.emoji_count == 4
    assert res.has(ViolationCode.QUALITY_EMOJI_EXCESS)
    assert res.score == pytest.approx(0.9)


def test_punctuation_ratio(agent, make_candidate, make_context):
    res = agent.run(make_candidate("Hi, ok. Yes! No? Go."), make_context())

    assert res.metrics.punctuation_ratio == pytest.approx(0.25)
    assert res.has(ViolationCode.QUALITY_PUNCT_EXCESS)
    assert res.score == pytest.approx(0.85)


def test_language_mismatch_only_for_zh(agent, make_candidate, make_context):
    c = make_candidate("Check out these great deals today")

    res = agent.run(c, make_context(locale="zh-CN"))
    assert res.has(ViolationCode.QUALITY_LANG_MISMATCH)
    assert res.score == pytest.approx(0.8)

    assert not agent.run(c, make_context(locale="en-US")).has(ViolationCode.QUALITY_LANG_MISMATCH)


def test_zh_text_uses_character_length(agent, make_candidate, make_context):
    res = agent.run(make_candidate("这款相机非常适合旅行拍摄"), make_context(locale="zh-CN"))

    assert res.metrics.effective_length == 12
    assert res.score == 1.0


def test_readability_heuristic():
    assert readability("Short and sweet.") == 1.0
    assert readability("THIS IS LOUD") == pytest.approx(0.7)
    long_sentence = "a" * 150
    assert readability(long_sentence) == pytest.approx(0.8)


def test_low_readability_flagged(agent, make_candidate, make_context, monkeypatch):
    monkeypatch.setattr(quality_agent, "readability", lambda text: 0.4)
    res = agent.run(make_candidate("Some perfectly normal text here"), make_context())

    assert res.metrics.readability == 0.4
    assert res.has(ViolationCode.QUALITY_LOW_READABILITY)
    assert res.score == pytest.approx(0.85)


def test_compute_metrics_empty_text():
    m = compute_metrics("", "en-US")
    assert m.effective_length == 0
    assert m.punctuation_ratio == 0.0
    assert m.readability == 1.0
