import json
import math
import threading

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from app.core.sentiment.analyzer import (
    ChainedSentimentAnalyzer,
    KeywordSentimentAnalyzer,
    RemoteSentimentAnalyzer,
    VaderSentimentAnalyzer,
    analyzer_for,
)
from app.core.sentiment.base import (
    SentimentLabel,
    clamp_score,
    label_to_class,
    normalize_label,
)
from app.core.sentiment.config import SentimentConfig
from app.tests.fakes import FailingAnalyzer
from app.utils.exceptions import AnalyzerError


# -------------------------------------
# Keyword analyzer
# -------------------------------------
@pytest.mark.asyncio
async def test_keyword_positive_review(keyword_analyzer):
    out = await keyword_analyzer.analyze("This was an amazing trip, loved every moment")
    assert out.label == SentimentLabel.POSITIVE
    assert out.score > 0.2
    assert out.sentiment_class == 1


@pytest.mark.asyncio
async def test_keyword_negative_review(keyword_analyzer):
    out = await keyword_analyzer.analyze("Terrible experience, a complete waste of money")
    assert out.label == SentimentLabel.NEGATIVE
    assert out.score < -0.2
    assert out.sentiment_class == -1


@pytest.mark.asyncio
async def test_keyword_empty_text_is_neutral(keyword_analyzer):
    out = await keyword_analyzer.analyze("")
    assert out.label == SentimentLabel.NEUTRAL
    assert out.score == 0.0
    assert out.sentiment_class == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "text",
    [
        "",
        "   ",
        "The venue was a venue.",
        "good good good bad",
        "worst worst worst worst, but the coffee was great",
        "!!!???",
        "LOVED IT. AMAZING. BEST. EVER.",
        "x" * 5000,
    ],
)
async def test_keyword_output_stays_in_range(keyword_analyzer, text):
    out = await keyword_analyzer.analyze(text)
    assert -1.0 <= out.score <= 1.0
    assert out.label in set(SentimentLabel)


# -------------------------------------
# Normalization helpers
# -------------------------------------
@pytest.mark.parametrize(
    "raw, expected",
    [(0.4, 0.4), (5, 1.0), (-3.2, -1.0), ("0.9", 0.0), (None, 0.0), (True, 0.0), (math.nan, 0.0)],
)
def test_clamp_score(raw, expected):
    assert clamp_score(raw) == expected


def test_normalize_label_accepts_any_case():
    assert normalize_label("positive") == SentimentLabel.POSITIVE
    assert normalize_label(" Negative ") == SentimentLabel.NEGATIVE


@pytest.mark.parametrize("raw", ["MIXED", "", None, 1])
def test_normalize_label_rejects_unknown(raw):
    with pytest.raises(AnalyzerError):
        normalize_label(raw)


def test_label_to_class():
    assert label_to_class("POSITIVE") == 1
    assert label_to_class(SentimentLabel.NEGATIVE) == -1
    assert label_to_class("NEUTRAL") == 0
    assert label_to_class("SOMETHING_ELSE") == 0


# -------------------------------------
# Remote response parsing
# -------------------------------------
def test_parse_rich_positive_response():
    out = RemoteSentimentAnalyzer.parse_response(
        {
            "positive_reviews": [{"label": "positive", "confidence": 0.93}],
            "negative_reviews": [],
            "negative_summary": None,
        }
    )
    assert out.label == SentimentLabel.POSITIVE
    assert out.score == pytest.approx(0.93)
    assert out.negative_summary is None


def test_parse_rich_negative_response_keeps_summary():
    out = RemoteSentimentAnalyzer.parse_response(
        {
            "positive_reviews": [],
            "negative_reviews": [{"label": "NEGATIVE", "confidence": 1.7}],
            "negative_summary": "Guests complained about the queue.",
        }
    )
    assert out.label == SentimentLabel.NEGATIVE
    assert out.score == 1.0
    assert out.negative_summary == "Guests complained about the queue."


def test_parse_flat_response():
    out = RemoteSentimentAnalyzer.parse_response({"label": "NEUTRAL", "score": -0.01})
    assert out.label == SentimentLabel.NEUTRAL
    assert out.score == pytest.approx(-0.01)


@pytest.mark.parametrize(
    "body",
    [
        {"positive_reviews": [], "negative_reviews": []},
        {"unexpected": True},
        {"positive_reviews": ["not-a-dict"]},
        {"positive_reviews": [{"label": "MIXED", "confidence": 0.5}]},
        [],
        "POSITIVE",
    ],
)
def test_parse_rejects_unusable_bodies(body):
    with pytest.raises(AnalyzerError):
        RemoteSentimentAnalyzer.parse_response(body)


def test_remote_requires_url():
    with pytest.raises(ValueError):
        RemoteSentimentAnalyzer(SentimentConfig(method="remote", api_url=None))


# -------------------------------------
# Remote analyzer over HTTP
# -------------------------------------
class FakeSentimentApi:
    def __init__(self):
        self.requests = []
        self.status = 200
        self.body = json.dumps(
            {
                "positive_reviews": [{"label": "POSITIVE", "confidence": 0.8}],
                "negative_reviews": [],
                "negative_summary": None,
            }
        )

    async def handler(self, request: web.Request) -> web.Response:
        self.requests.append(await request.json())
        return web.Response(
            status=self.status, text=self.body, content_type="application/json"
        )


@pytest_asyncio.fixture
async def sentiment_api():
    api = FakeSentimentApi()
    app = web.Application()
    app.router.add_post("/analyze", api.handler)
    server = TestServer(app)
    await server.start_server()
    api.url = str(server.make_url("/analyze"))
    yield api
    await server.close()


@pytest.mark.asyncio
async def test_remote_posts_batch_payload(sentiment_api):
    analyzer = RemoteSentimentAnalyzer(
        SentimentConfig(method="remote", api_url=sentiment_api.url)
    )
    try:
        out = await analyzer.analyze("Great show")
    finally:
        await analyzer.aclose()

    assert sentiment_api.requests == [{"reviews": ["Great show"]}]
    assert out.label == SentimentLabel.POSITIVE
    assert out.score == pytest.approx(0.8)


@pytest.mark.asyncio
async def test_remote_simple_payload_style(sentiment_api):
    sentiment_api.body = json.dumps({"label": "negative", "score": -0.6})
    analyzer = RemoteSentimentAnalyzer(
        SentimentConfig(method="remote", api_url=sentiment_api.url, payload_style="simple")
    )
    try:
        out = await analyzer.analyze("Meh")
    finally:
        await analyzer.aclose()

    assert sentiment_api.requests == [{"text": "Meh"}]
    assert out.label == SentimentLabel.NEGATIVE
    assert out.score == pytest.approx(-0.6)


@pytest.mark.asyncio
async def test_remote_non_2xx_is_analyzer_error(sentiment_api):
    sentiment_api.status = 503
    sentiment_api.body = json.dumps({"error": "overloaded"})
    analyzer = RemoteSentimentAnalyzer(
        SentimentConfig(method="remote", api_url=sentiment_api.url)
    )
    try:
        with pytest.raises(AnalyzerError) as exc:
            await analyzer.analyze("Great show")
    finally:
        await analyzer.aclose()
    assert "503" in exc.value.message


@pytest.mark.asyncio
async def test_remote_malformed_body_is_analyzer_error(sentiment_api):
    sentiment_api.body = "<html>oops</html>"
    analyzer = RemoteSentimentAnalyzer(
        SentimentConfig(method="remote", api_url=sentiment_api.url)
    )
    try:
        with pytest.raises(AnalyzerError):
            await analyzer.analyze("Great show")
    finally:
        await analyzer.aclose()


@pytest.mark.asyncio
async def test_remote_empty_text_never_calls_api(sentiment_api):
    analyzer = RemoteSentimentAnalyzer(
        SentimentConfig(method="remote", api_url=sentiment_api.url)
    )
    with pytest.raises(AnalyzerError):
        await analyzer.analyze("   ")
    await analyzer.aclose()
    assert sentiment_api.requests == []


# -------------------------------------
# Chain
# -------------------------------------
@pytest.mark.asyncio
async def test_chain_falls_back_to_next_analyzer(keyword_analyzer):
    failing = FailingAnalyzer()
    chain = ChainedSentimentAnalyzer([("remote", failing), ("keyword", keyword_analyzer)])

    out = await chain.analyze("amazing night")

    assert failing.calls == 1
    assert out.label == SentimentLabel.POSITIVE


@pytest.mark.asyncio
async def test_chain_returns_neutral_when_everything_fails():
    chain = ChainedSentimentAnalyzer([("a", FailingAnalyzer()), ("b", FailingAnalyzer())])

    out = await chain.analyze("amazing night")

    assert out.label == SentimentLabel.NEUTRAL
    assert out.score == 0.0


def test_chain_needs_analyzers():
    with pytest.raises(ValueError):
        ChainedSentimentAnalyzer([])


# -------------------------------------
# VADER (lexicon stubbed, no download)
# -------------------------------------
class _FakeSia:
    def __init__(self, compound):
        self.compound = compound

    def polarity_scores(self, text):
        return {"compound": self.compound}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "compound, label",
    [(0.7, SentimentLabel.POSITIVE), (-0.4, SentimentLabel.NEGATIVE), (0.01, SentimentLabel.NEUTRAL)],
)
async def test_vader_thresholds(compound, label):
    analyzer = VaderSentimentAnalyzer(SentimentConfig(method="vader"))
    analyzer._sia = _FakeSia(compound)

    out = await analyzer.analyze("whatever")

    assert out.label == label
    assert out.score == pytest.approx(compound)


@pytest.mark.asyncio
async def test_vader_loads_lexicon_off_the_event_loop():
    analyzer = VaderSentimentAnalyzer(SentimentConfig(method="vader"))
    loader_threads = []

    def load():
        loader_threads.append(threading.get_ident())
        analyzer._sia = _FakeSia(0.6)

    analyzer._ensure_sia = load

    out = await analyzer.analyze("lovely")

    assert out.label == SentimentLabel.POSITIVE
    assert loader_threads and loader_threads[0] != threading.get_ident()


# -------------------------------------
# Factory
# -------------------------------------
def test_factory_builds_and_caches():
    first = analyzer_for("keyword")
    assert isinstance(first, KeywordSentimentAnalyzer)
    assert analyzer_for(SentimentConfig(method="keyword")) is first


def test_factory_builds_chain_in_order():
    chain = analyzer_for(
        SentimentConfig(method="chain", api_url="http://sentiment.local/analyze")
    )
    assert isinstance(chain, ChainedSentimentAnalyzer)
    assert [name for name, _ in chain.analyzers] == ["remote", "keyword"]
    assert isinstance(chain.analyzers[0][1], RemoteSentimentAnalyzer)


def test_factory_rejects_unknown_method():
    with pytest.raises(ValueError):
        analyzer_for(SentimentConfig(method="bert"))
